"""Throttled, per-refresh animation loop for one pattern."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from enum import Enum

from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.api.frame_host import FrameHost
from sacred_geometry.api.surface import DrawingSurface
from sacred_geometry.rendering.patterns import DEFAULT_COLOR, PatternLibrary
from sacred_geometry.rendering.viewport import pattern_radius, place
from sacred_geometry.runtime.config import LoopConfig, get_geometry_config
from sacred_geometry.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable
from sacred_geometry.runtime.metrics import FrameRateMonitor

_LOG = logging.getLogger("sacred_geometry.draw_loop")

TAU = math.pi * 2.0

SurfaceProvider = Callable[[], DrawingSurface | None]
UnstableCallback = Callable[[float], None]


class DrawLoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class DrawLoop:
    """Draws a pattern on host refresh callbacks, gated to the bundle interval.

    The host decides the callback cadence; the loop only accepts a callback
    as a frame once `target_frame_interval_ms` has elapsed since the last
    accepted one. Rotation advances by `rotation_speed_rad_per_ms` times the
    real elapsed time, so throttling changes smoothness, not angular speed.
    """

    def __init__(
        self,
        *,
        host: FrameHost,
        surface_provider: SurfaceProvider,
        variant: str,
        bundle: ParameterBundle,
        size: float,
        position: str = "center",
        intensity: str = "medium",
        animated: bool = True,
        color: str = DEFAULT_COLOR,
        patterns: PatternLibrary | None = None,
        monitor: FrameRateMonitor | None = None,
        on_frame_unstable: UnstableCallback | None = None,
        config: LoopConfig | None = None,
    ) -> None:
        loop_config = config if config is not None else get_geometry_config().loop
        self._host = host
        self._surface_provider = surface_provider
        self._variant = variant
        self._bundle = bundle
        self._size = float(size)
        self._position = position
        self._intensity = intensity
        self._animated = bool(animated)
        self._color = color
        self._patterns = patterns if patterns is not None else PatternLibrary()
        self._monitor = (
            monitor
            if monitor is not None
            else FrameRateMonitor(
                threshold_fps=loop_config.stability_threshold_fps,
                window_ms=loop_config.monitor_window_ms,
            )
        )
        self._on_frame_unstable = on_frame_unstable
        self._state = DrawLoopState.IDLE
        self._surface: DrawingSurface | None = None
        self._handle: int | None = None
        self._angle = 0.0
        self._last_accepted_ms: float | None = None
        self._live_frame_stable = True
        self._achieved_fps = 0.0

    @property
    def state(self) -> DrawLoopState:
        return self._state

    @property
    def angle(self) -> float:
        return self._angle

    @property
    def bundle(self) -> ParameterBundle:
        return self._bundle

    @property
    def variant(self) -> str:
        return self._variant

    @property
    def animated(self) -> bool:
        return self._animated

    @property
    def surface(self) -> DrawingSurface | None:
        return self._surface

    @property
    def live_frame_stable(self) -> bool:
        return self._live_frame_stable

    @property
    def frames_accepted(self) -> int:
        return self._monitor.snapshot().frames_accepted

    @property
    def callbacks_seen(self) -> int:
        return self._monitor.snapshot().callbacks_seen

    @property
    def achieved_fps(self) -> float:
        return self._achieved_fps

    def start(self) -> DrawLoopState:
        """Mount the loop; a start after a stop resets the rotation."""
        if self._state is DrawLoopState.RUNNING:
            return self._state
        self._angle = 0.0
        self._last_accepted_ms = None
        self._live_frame_stable = True
        self._achieved_fps = 0.0
        self._monitor.reset()
        surface = self._acquire_surface()
        if surface is None:
            self._state = DrawLoopState.STOPPED
            return self._state
        self._surface = surface
        if not self._animated:
            self._state = DrawLoopState.RUNNING
            self._render()
            self._state = DrawLoopState.STOPPED
            return self._state
        self._state = DrawLoopState.RUNNING
        _LOG.debug(
            "draw_loop_started variant=%s interval_ms=%.1f",
            self._variant,
            self._bundle.target_frame_interval_ms,
        )
        self._schedule()
        return self._state

    def stop(self) -> None:
        if self._handle is not None:
            self._host.cancel_frame(self._handle)
            self._handle = None
        if self._state is not DrawLoopState.STOPPED:
            _LOG.debug("draw_loop_stopped variant=%s", self._variant)
        self._state = DrawLoopState.STOPPED

    def reconfigure(self, bundle: ParameterBundle) -> None:
        """Swap the bundle in place; the new interval gates the next tick."""
        self._bundle = bundle
        _LOG.debug(
            "draw_loop_reconfigured variant=%s interval_ms=%.1f depth=%d",
            self._variant,
            bundle.target_frame_interval_ms,
            bundle.fractal_depth,
        )

    def set_animated(self, animated: bool) -> None:
        animated = bool(animated)
        if animated == self._animated:
            return
        self._animated = animated
        if not animated:
            if self._state is DrawLoopState.RUNNING:
                if self._handle is not None:
                    self._host.cancel_frame(self._handle)
                    self._handle = None
                self._render()
                self._state = DrawLoopState.STOPPED
            return
        if self._state is DrawLoopState.STOPPED and self._surface is not None:
            self._last_accepted_ms = None
            self._state = DrawLoopState.RUNNING
            self._schedule()

    def _acquire_surface(self) -> DrawingSurface | None:
        try:
            surface = self._surface_provider()
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(
                _LOG,
                "draw_loop_surface_unavailable variant=%s",
                self._variant,
                level=logging.WARNING,
            )
            return None
        if surface is None:
            _LOG.warning("draw_loop_surface_unavailable variant=%s", self._variant)
        return surface

    def _schedule(self) -> None:
        self._handle = self._host.request_frame(self._tick)

    def _tick(self, timestamp_ms: float) -> None:
        self._handle = None
        if self._state is not DrawLoopState.RUNNING:
            return
        self._observe(timestamp_ms)
        if self._state is not DrawLoopState.RUNNING:
            return
        last = self._last_accepted_ms
        if last is not None and timestamp_ms - last < self._bundle.target_frame_interval_ms:
            self._schedule()
            return
        elapsed_ms = 0.0 if last is None else max(0.0, timestamp_ms - last)
        self._angle = (self._angle + self._bundle.rotation_speed_rad_per_ms * elapsed_ms) % TAU
        self._last_accepted_ms = timestamp_ms
        if not self._render():
            return
        if self._state is DrawLoopState.RUNNING:
            self._schedule()

    def _observe(self, timestamp_ms: float) -> None:
        sample = self._monitor.record_callback(timestamp_ms)
        if sample is None:
            return
        self._achieved_fps = sample.fps
        if sample.stable or not self._live_frame_stable:
            return
        self._live_frame_stable = False
        _LOG.info(
            "draw_loop_frame_unstable variant=%s fps=%.1f threshold=%.1f",
            self._variant,
            sample.fps,
            self._monitor.threshold_fps,
        )
        if self._on_frame_unstable is not None:
            self._on_frame_unstable(sample.fps)

    def _render(self) -> bool:
        surface = self._surface
        if surface is None:
            self.stop()
            return False
        try:
            surface.clear()
            center = place(self._position, self._size, surface.size)
            drawn = self._patterns.draw(
                surface,
                self._variant,
                center,
                pattern_radius(self._size),
                self._angle,
                self._bundle,
                intensity=self._intensity,
                color=self._color,
            )
            if not drawn:
                self.stop()
                return False
            surface.present()
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(
                _LOG, "draw_loop_draw_failed variant=%s", self._variant, level=logging.WARNING
            )
            self.stop()
            return False
        self._monitor.record_accepted_frame()
        return True


__all__ = ["DrawLoop", "DrawLoopState", "SurfaceProvider", "UnstableCallback"]
