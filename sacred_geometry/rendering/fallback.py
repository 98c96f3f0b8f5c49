"""Precomputed low-cost renderer for constrained or unstable devices.

Each variant is a fixed list of primitives in a 100x100 box. Rendering only
scales and positions them; when animated, a uniform slow rotation and a
pulsing centre dot are the sole per-frame work.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from sacred_geometry.api.frame_host import FrameHost
from sacred_geometry.api.surface import DrawingSurface, Point
from sacred_geometry.rendering.draw_loop import DrawLoopState, SurfaceProvider
from sacred_geometry.rendering.patterns import DEFAULT_COLOR
from sacred_geometry.rendering.viewport import place
from sacred_geometry.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable

_LOG = logging.getLogger("sacred_geometry.fallback")

VIEW_BOX = 100.0
ROTATION_PERIOD_MS = 120_000.0
PULSE_PERIOD_MS = 4_000.0
PULSE_AMPLITUDE = 0.15
CENTER_DOT_RADIUS = 2.0
FALLBACK_FRAME_INTERVAL_MS = 100.0
TAU = math.pi * 2.0


class PathKind(Enum):
    POLYLINE = "polyline"
    CIRCLE = "circle"
    DOT = "dot"


@dataclass(frozen=True, slots=True)
class FallbackPath:
    """One table primitive in view-box coordinates."""

    kind: PathKind
    points: tuple[Point, ...] = ()
    closed: bool = False
    center: Point = (50.0, 50.0)
    radius: float = 0.0


@dataclass(frozen=True, slots=True)
class IntensityStyle:
    opacity: float
    stroke_width: float


INTENSITY_STYLES: dict[str, IntensityStyle] = {
    "subtle": IntensityStyle(opacity=0.3, stroke_width=0.8),
    "medium": IntensityStyle(opacity=0.6, stroke_width=1.2),
    "vivid": IntensityStyle(opacity=0.9, stroke_width=1.6),
}


def _shape(*points: Point, closed: bool = True) -> FallbackPath:
    return FallbackPath(PathKind.POLYLINE, points=points, closed=closed)


def _line(start: Point, end: Point) -> FallbackPath:
    return FallbackPath(PathKind.POLYLINE, points=(start, end), closed=False)


def _ring(x: float, y: float, radius: float) -> FallbackPath:
    return FallbackPath(PathKind.CIRCLE, center=(x, y), radius=radius)


def _dot(x: float, y: float, radius: float) -> FallbackPath:
    return FallbackPath(PathKind.DOT, center=(x, y), radius=radius)


_PENTAGON = (
    (50.0, 15.0),
    (83.29, 39.18),
    (70.57, 78.32),
    (29.43, 78.32),
    (16.71, 39.18),
)
_INNER_PENTAGON = (
    (50.0, 28.4),
    (70.55, 43.32),
    (62.7, 67.48),
    (37.3, 67.48),
    (29.45, 43.32),
)
_INNER_HEX = (
    (67.5, 50.0),
    (58.75, 65.16),
    (41.25, 65.16),
    (32.5, 50.0),
    (41.25, 34.84),
    (58.75, 34.84),
)
_OUTER_HEX = (
    (85.0, 50.0),
    (67.5, 80.31),
    (32.5, 80.31),
    (15.0, 50.0),
    (32.5, 19.69),
    (67.5, 19.69),
)

FALLBACK_PATHS: dict[str, tuple[FallbackPath, ...]] = {
    "flower-of-life": (
        _ring(50.0, 50.0, 20.0),
        _ring(50.0, 30.0, 20.0),
        _ring(67.0, 40.0, 20.0),
        _ring(67.0, 60.0, 20.0),
        _ring(50.0, 70.0, 20.0),
        _ring(33.0, 60.0, 20.0),
        _ring(33.0, 40.0, 20.0),
    ),
    "seed-of-life": (
        _ring(50.0, 50.0, 15.0),
        _ring(65.0, 50.0, 15.0),
        _ring(57.5, 63.0, 15.0),
        _ring(42.5, 63.0, 15.0),
        _ring(35.0, 50.0, 15.0),
        _ring(42.5, 37.0, 15.0),
        _ring(57.5, 37.0, 15.0),
        _ring(50.0, 50.0, 30.0),
    ),
    "merkaba": (
        _shape((50.0, 15.0), (25.0, 75.0), (75.0, 75.0)),
        _shape((50.0, 85.0), (25.0, 25.0), (75.0, 25.0)),
        _ring(50.0, 50.0, 8.0),
    ),
    "sri-yantra": (
        _shape((20.0, 20.0), (80.0, 20.0), (80.0, 80.0), (20.0, 80.0)),
        _shape((50.0, 25.0), (35.0, 65.0), (65.0, 65.0)),
        _shape((50.0, 75.0), (35.0, 35.0), (65.0, 35.0)),
        _dot(50.0, 50.0, 3.0),
    ),
    "golden-spiral": (
        _shape(
            (50.0, 50.0),
            (62.0, 42.0),
            (75.0, 50.0),
            (72.0, 68.0),
            (60.0, 85.0),
            (38.0, 90.0),
            (20.0, 50.0),
            (28.0, 22.0),
            (50.0, 10.0),
            (78.0, 12.0),
            (95.0, 50.0),
            closed=False,
        ),
    ),
    "hexagon": (
        _shape((50.0, 15.0), (75.0, 32.5), (75.0, 67.5), (50.0, 85.0), (25.0, 67.5), (25.0, 32.5)),
        _line((50.0, 15.0), (50.0, 85.0)),
        _line((25.0, 32.5), (75.0, 67.5)),
        _line((25.0, 67.5), (75.0, 32.5)),
    ),
    "vesica-piscis": (
        _ring(40.0, 50.0, 20.0),
        _ring(60.0, 50.0, 20.0),
    ),
    "dodecahedron": (
        _shape(*_PENTAGON),
        _shape((50.0, 71.6), (29.45, 56.68), (37.3, 32.52), (62.7, 32.52), (70.55, 56.68)),
    ),
    "icosahedron": (
        _shape(
            (50.0, 15.0), (80.31, 32.5), (80.31, 67.5), (50.0, 85.0), (19.69, 67.5), (19.69, 32.5)
        ),
        _shape((50.0, 15.0), (80.31, 67.5), (19.69, 67.5)),
        _shape((50.0, 85.0), (19.69, 32.5), (80.31, 32.5)),
    ),
    "pentagon-star": (
        _shape(_PENTAGON[0], _PENTAGON[2], _PENTAGON[4], _PENTAGON[1], _PENTAGON[3]),
        _ring(50.0, 50.0, 35.0),
    ),
    "metatron-cube": (
        _shape(*_OUTER_HEX),
        _shape(_OUTER_HEX[0], _OUTER_HEX[2], _OUTER_HEX[4]),
        _shape(_OUTER_HEX[1], _OUTER_HEX[3], _OUTER_HEX[5]),
        _shape(*_INNER_HEX),
        _dot(50.0, 50.0, 2.0),
        *(_dot(x, y, 2.0) for x, y in _INNER_HEX),
        *(_dot(x, y, 2.0) for x, y in _OUTER_HEX),
    ),
    "triangle": (
        _shape((50.0, 20.0), (80.0, 70.0), (20.0, 70.0)),
        _shape((50.0, 35.0), (65.0, 55.0), (35.0, 55.0)),
    ),
    "square": (
        _shape((20.0, 20.0), (80.0, 20.0), (80.0, 80.0), (20.0, 80.0)),
        _shape((50.0, 28.0), (72.0, 50.0), (50.0, 72.0), (28.0, 50.0)),
    ),
    "pentagon": (
        _shape(*_PENTAGON),
        _shape(*_INNER_PENTAGON),
    ),
    "octagon": (
        _shape(
            (50.0, 15.0),
            (74.75, 25.25),
            (85.0, 50.0),
            (74.75, 74.75),
            (50.0, 85.0),
            (25.25, 74.75),
            (15.0, 50.0),
            (25.25, 25.25),
        ),
        _ring(50.0, 50.0, 12.0),
    ),
}


@dataclass(frozen=True, slots=True)
class FallbackPrimitive:
    """A table primitive after scaling, rotation and placement."""

    kind: PathKind
    color: str
    alpha: float
    width: float
    points: tuple[Point, ...] = ()
    closed: bool = False
    center: Point | None = None
    radius: float = 0.0


@dataclass(frozen=True, slots=True)
class FallbackFrame:
    variant: str
    size: float
    center: Point
    rotation: float
    pulse: float
    primitives: tuple[FallbackPrimitive, ...]


class FallbackRenderer:
    """Stateless renderer over the precomputed path table."""

    def __init__(self, *, color: str = DEFAULT_COLOR) -> None:
        self._color = color

    def describe(self, variant: str) -> tuple[FallbackPath, ...] | None:
        return FALLBACK_PATHS.get(str(variant).strip().lower())

    def render(
        self,
        variant: str,
        size: float,
        intensity: str,
        animated: bool,
        position: str,
        *,
        surface: DrawingSurface | None = None,
        timestamp_ms: float = 0.0,
    ) -> FallbackFrame | None:
        paths = self.describe(variant)
        if paths is None:
            _LOG.warning("fallback_unknown_variant variant=%r", variant)
            return None
        style = INTENSITY_STYLES.get(intensity, INTENSITY_STYLES["medium"])
        size = max(0.0, float(size))
        bounds = surface.size if surface is not None else (size, size)
        center = place(position, size, bounds)
        if animated:
            rotation = TAU * (float(timestamp_ms) % ROTATION_PERIOD_MS) / ROTATION_PERIOD_MS
            pulse = 1.0 + PULSE_AMPLITUDE * math.sin(TAU * float(timestamp_ms) / PULSE_PERIOD_MS)
        else:
            rotation = 0.0
            pulse = 1.0
        scale = size / VIEW_BOX
        transform = _Transform(center=center, scale=scale, rotation=rotation)
        primitives = [
            transform.apply(path, color=self._color, style=style) for path in paths
        ]
        primitives.append(
            FallbackPrimitive(
                kind=PathKind.DOT,
                color=self._color,
                alpha=style.opacity * 0.5,
                width=0.0,
                center=center,
                radius=CENTER_DOT_RADIUS * scale * pulse,
            )
        )
        frame = FallbackFrame(
            variant=str(variant).strip().lower(),
            size=size,
            center=center,
            rotation=rotation,
            pulse=pulse,
            primitives=tuple(primitives),
        )
        if surface is not None:
            draw_frame(surface, frame)
        return frame


@dataclass(frozen=True, slots=True)
class _Transform:
    center: Point
    scale: float
    rotation: float

    def point(self, raw: Point) -> Point:
        dx = (raw[0] - VIEW_BOX / 2.0) * self.scale
        dy = (raw[1] - VIEW_BOX / 2.0) * self.scale
        cos_a = math.cos(self.rotation)
        sin_a = math.sin(self.rotation)
        return (
            self.center[0] + dx * cos_a - dy * sin_a,
            self.center[1] + dx * sin_a + dy * cos_a,
        )

    def apply(self, path: FallbackPath, *, color: str, style: IntensityStyle) -> FallbackPrimitive:
        if path.kind is PathKind.POLYLINE:
            return FallbackPrimitive(
                kind=path.kind,
                color=color,
                alpha=style.opacity,
                width=style.stroke_width,
                points=tuple(self.point(point) for point in path.points),
                closed=path.closed,
            )
        return FallbackPrimitive(
            kind=path.kind,
            color=color,
            alpha=style.opacity,
            width=style.stroke_width if path.kind is PathKind.CIRCLE else 0.0,
            center=self.point(path.center),
            radius=path.radius * self.scale,
        )


def draw_frame(surface: DrawingSurface, frame: FallbackFrame) -> None:
    surface.clear()
    for primitive in frame.primitives:
        if primitive.kind is PathKind.POLYLINE:
            surface.stroke_polyline(
                primitive.points,
                closed=primitive.closed,
                color=primitive.color,
                alpha=primitive.alpha,
                width=primitive.width,
            )
        elif primitive.kind is PathKind.CIRCLE and primitive.center is not None:
            surface.stroke_circle(
                primitive.center[0],
                primitive.center[1],
                primitive.radius,
                color=primitive.color,
                alpha=primitive.alpha,
                width=primitive.width,
            )
        elif primitive.center is not None:
            surface.fill_circle(
                primitive.center[0],
                primitive.center[1],
                primitive.radius,
                color=primitive.color,
                alpha=primitive.alpha,
            )
    surface.present()


class FallbackLoop:
    """Drives the fallback renderer from host frame callbacks.

    Shares the draw loop's start/stop/reconfigure surface so the selector
    can swap between them. Animated fallback redraws at a fixed cheap
    cadence; static fallback draws once.
    """

    def __init__(
        self,
        *,
        host: FrameHost,
        surface_provider: SurfaceProvider,
        variant: str,
        size: float,
        position: str = "center",
        intensity: str = "medium",
        animated: bool = False,
        renderer: FallbackRenderer | None = None,
        frame_interval_ms: float = FALLBACK_FRAME_INTERVAL_MS,
    ) -> None:
        self._host = host
        self._surface_provider = surface_provider
        self._variant = variant
        self._size = float(size)
        self._position = position
        self._intensity = intensity
        self._animated = bool(animated)
        self._renderer = renderer if renderer is not None else FallbackRenderer()
        self._frame_interval_ms = max(1.0, float(frame_interval_ms))
        self._state = DrawLoopState.IDLE
        self._surface: DrawingSurface | None = None
        self._handle: int | None = None
        self._start_ms: float | None = None
        self._last_drawn_ms: float | None = None
        self._frames_drawn = 0
        self._last_frame: FallbackFrame | None = None

    @property
    def state(self) -> DrawLoopState:
        return self._state

    @property
    def animated(self) -> bool:
        return self._animated

    @property
    def frames_drawn(self) -> int:
        return self._frames_drawn

    @property
    def last_frame(self) -> FallbackFrame | None:
        return self._last_frame

    def start(self) -> DrawLoopState:
        if self._state is DrawLoopState.RUNNING:
            return self._state
        self._start_ms = None
        self._last_drawn_ms = None
        try:
            surface = self._surface_provider()
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(_LOG, "fallback_surface_unavailable", level=logging.WARNING)
            surface = None
        if surface is None:
            self._state = DrawLoopState.STOPPED
            return self._state
        self._surface = surface
        if not self._animated:
            self._draw(0.0)
            self._state = DrawLoopState.STOPPED
            return self._state
        self._state = DrawLoopState.RUNNING
        self._handle = self._host.request_frame(self._tick)
        return self._state

    def stop(self) -> None:
        if self._handle is not None:
            self._host.cancel_frame(self._handle)
            self._handle = None
        self._state = DrawLoopState.STOPPED

    def reconfigure(self, bundle: object) -> None:
        """Fallback output does not depend on the bundle."""

    def set_animated(self, animated: bool) -> None:
        animated = bool(animated)
        if animated == self._animated:
            return
        self._animated = animated
        if not animated and self._state is DrawLoopState.RUNNING:
            self.stop()
            return
        if animated and self._state is DrawLoopState.STOPPED and self._surface is not None:
            self._state = DrawLoopState.RUNNING
            self._handle = self._host.request_frame(self._tick)

    def _tick(self, timestamp_ms: float) -> None:
        self._handle = None
        if self._state is not DrawLoopState.RUNNING:
            return
        if self._start_ms is None:
            self._start_ms = timestamp_ms
        last = self._last_drawn_ms
        if last is None or timestamp_ms - last >= self._frame_interval_ms:
            self._last_drawn_ms = timestamp_ms
            if not self._draw(timestamp_ms - self._start_ms):
                return
        if self._state is DrawLoopState.RUNNING:
            self._handle = self._host.request_frame(self._tick)

    def _draw(self, elapsed_ms: float) -> bool:
        try:
            frame = self._renderer.render(
                self._variant,
                self._size,
                self._intensity,
                self._animated,
                self._position,
                surface=self._surface,
                timestamp_ms=elapsed_ms,
            )
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(
                _LOG, "fallback_draw_failed variant=%s", self._variant, level=logging.WARNING
            )
            self.stop()
            return False
        if frame is None:
            self.stop()
            return False
        self._last_frame = frame
        self._frames_drawn += 1
        return True


__all__ = [
    "FALLBACK_PATHS",
    "FallbackFrame",
    "FallbackLoop",
    "FallbackPath",
    "FallbackPrimitive",
    "FallbackRenderer",
    "INTENSITY_STYLES",
    "PathKind",
    "ROTATION_PERIOD_MS",
    "draw_frame",
]
