"""Adaptive selection between the throttled draw loop and the fallback renderer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum

from sacred_geometry.api.advisory import AdvisoryOptimizer, AdvisoryResult
from sacred_geometry.api.bundle import ParameterBundle, clamp_bundle
from sacred_geometry.api.device import ConnectionClass, DeviceCapability, DeviceTier
from sacred_geometry.api.frame_host import FrameHost
from sacred_geometry.api.request import RenderRequest
from sacred_geometry.rendering.draw_loop import DrawLoop, DrawLoopState, SurfaceProvider
from sacred_geometry.rendering.fallback import FallbackLoop, FallbackRenderer
from sacred_geometry.rendering.patterns import PatternLibrary, known_variants, natural_sides
from sacred_geometry.runtime.config import (
    MAX_ADVISORY_TIMEOUT_SECONDS,
    GeometryConfig,
    get_geometry_config,
)
from sacred_geometry.runtime.errors import log_recoverable
from sacred_geometry.runtime.policy import DEFAULT_REQUESTED_SIDES, PerformanceTierPolicy
from sacred_geometry.runtime.probe import (
    HIGH_END_MIN_CORES,
    HIGH_END_MIN_MEMORY_GB,
    CapabilityProbe,
)

_LOG = logging.getLogger("sacred_geometry.selector")

LOW_MEMORY_GB = 4.0

type Renderer = DrawLoop | FallbackLoop


class SelectionKind(Enum):
    DRAW_LOOP = "draw-loop"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class Decision:
    """Pure outcome of the selection rules for one request and capability."""

    kind: SelectionKind
    bundle: ParameterBundle
    size: float
    intensity: str
    animated: bool
    reason: str


@dataclass(frozen=True, slots=True)
class Selection:
    """Decision plus the renderer mounted for it."""

    kind: SelectionKind
    bundle: ParameterBundle
    size: float
    renderer: Renderer | None
    capability: DeviceCapability
    reason: str


def _fallback_reason(
    request: RenderRequest,
    capability: DeviceCapability,
    live_frame_stable: bool,
) -> str | None:
    if request.force_simplified:
        return "force_simplified"
    if capability.low_power_mode:
        return "low_power"
    if capability.tier is DeviceTier.MOBILE and capability.approx_memory_gb < LOW_MEMORY_GB:
        return "low_memory_mobile"
    if capability.connection_class is ConnectionClass.SLOW:
        return "slow_connection"
    if not live_frame_stable:
        return "frame_unstable"
    return None


def _qualifies_for_quality(capability: DeviceCapability) -> bool:
    return (
        capability.tier is DeviceTier.HIGH_END
        and capability.approx_memory_gb >= HIGH_END_MIN_MEMORY_GB
        and capability.cpu_cores >= HIGH_END_MIN_CORES
        and capability.has_gpu_context
    )


def _validated(result: object) -> AdvisoryResult | None:
    if not isinstance(result, AdvisoryResult):
        _LOG.info("advisory_invalid_result type=%s", type(result).__name__)
        return None
    bundle = result.bundle
    if isinstance(bundle, Mapping):
        bundle = ParameterBundle.from_mapping(bundle)
    if not isinstance(bundle, ParameterBundle):
        _LOG.info("advisory_invalid_bundle type=%s", type(bundle).__name__)
        return None
    return replace(result, bundle=clamp_bundle(bundle))


class AdaptiveSelector:
    """Chooses and mounts a renderer for a request, re-evaluating on change.

    Re-evaluation happens on `select()`, on probe capability changes and when
    the mounted draw loop reports unstable frames. An optional advisory
    optimizer may refine the bundle once per mount; its answer is only a
    hint and never blocks or breaks rendering.
    """

    def __init__(
        self,
        *,
        probe: CapabilityProbe,
        host: FrameHost,
        surface_provider: SurfaceProvider,
        policy: PerformanceTierPolicy | None = None,
        patterns: PatternLibrary | None = None,
        fallback: FallbackRenderer | None = None,
        advisory: AdvisoryOptimizer | None = None,
        config: GeometryConfig | None = None,
    ) -> None:
        self._config = config if config is not None else get_geometry_config()
        self._probe = probe
        self._host = host
        self._surface_provider = surface_provider
        self._policy = policy if policy is not None else PerformanceTierPolicy()
        self._patterns = patterns if patterns is not None else PatternLibrary()
        self._fallback = (
            fallback
            if fallback is not None
            else FallbackRenderer(color=self._config.render.default_color)
        )
        self._advisory = advisory
        self._alive = True
        self._generation = 0
        self._request: RenderRequest | None = None
        self._selection: Selection | None = None
        self._renderer: Renderer | None = None
        self._mount_key: tuple[object, ...] | None = None
        self._live_frame_stable = True
        self._advisory_result: AdvisoryResult | None = None
        self._advisory_task: asyncio.Task[AdvisoryResult | None] | None = None
        self._unsubscribe: Callable[[], None] | None = probe.subscribe(self._on_capability_changed)

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def probe(self) -> CapabilityProbe:
        return self._probe

    @property
    def selection(self) -> Selection | None:
        return self._selection

    @property
    def renderer(self) -> Renderer | None:
        return self._renderer

    @property
    def live_frame_stable(self) -> bool:
        return self._live_frame_stable

    @property
    def advisory_result(self) -> AdvisoryResult | None:
        return self._advisory_result

    @property
    def generation(self) -> int:
        return self._generation

    def decide(
        self,
        request: RenderRequest,
        capability: DeviceCapability,
        live_frame_stable: bool = True,
    ) -> Decision:
        """Apply the selection rules without touching any renderer."""
        render = self._config.render
        if request.variant not in known_variants():
            _LOG.warning("selector_unknown_variant variant=%r", request.variant)
            return Decision(
                kind=SelectionKind.NONE,
                bundle=self._policy.resolve(DeviceTier.MOBILE, override="simplified"),
                size=request.size,
                intensity=request.intensity,
                animated=False,
                reason="unknown_variant",
            )
        sides = natural_sides(request.variant) or DEFAULT_REQUESTED_SIDES
        reason = _fallback_reason(request, capability, live_frame_stable)
        if reason is not None:
            bundle = self._policy.resolve(
                capability.tier,
                live_frame_stable,
                "simplified" if request.force_simplified else None,
                requested_sides=sides,
            )
            return Decision(
                kind=SelectionKind.FALLBACK,
                bundle=bundle,
                size=request.size * render.fallback_size_scale,
                intensity="medium" if request.intensity == "vivid" else request.intensity,
                animated=request.animated and live_frame_stable,
                reason=reason,
            )
        bundle = self._policy.resolve(
            capability.tier,
            live_frame_stable,
            self._advisory_result,
            requested_sides=sides,
        )
        if _qualifies_for_quality(capability):
            return Decision(
                kind=SelectionKind.DRAW_LOOP,
                bundle=self._policy.boost(bundle),
                size=request.size * render.high_end_size_boost,
                intensity=request.intensity,
                animated=request.animated,
                reason="quality",
            )
        return Decision(
            kind=SelectionKind.DRAW_LOOP,
            bundle=bundle,
            size=request.size,
            intensity=request.intensity,
            animated=request.animated,
            reason="tier",
        )

    def select(self, request: RenderRequest) -> Selection:
        """Evaluate `request` and mount (or update) the matching renderer."""
        if not self._alive:
            raise RuntimeError("selector has been unmounted")
        if request != self._request:
            self._generation += 1
            self._live_frame_stable = True
            self._advisory_result = None
            self._cancel_advisory_task()
        self._request = request
        selection = self._evaluate(self._probe.detect())
        if request.enable_advisory and self._advisory is not None and self._advisory_task is None:
            self.schedule_advisory()
        return selection

    def reconfigure_request(self, request: RenderRequest) -> Selection:
        return self.select(request)

    def unmount(self) -> None:
        """Stop the renderer and discard any advisory still in flight."""
        if not self._alive:
            return
        self._alive = False
        self._generation += 1
        self._cancel_advisory_task()
        self._stop_renderer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        _LOG.debug("selector_unmounted")

    def schedule_advisory(self) -> asyncio.Task[AdvisoryResult | None] | None:
        """Start `refresh_advisory()` on the running event loop, if there is one."""
        if self._advisory is None or not self._alive:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _LOG.debug("advisory_deferred reason=no_running_loop")
            return None
        self._advisory_task = loop.create_task(self.refresh_advisory())
        return self._advisory_task

    async def refresh_advisory(self) -> AdvisoryResult | None:
        """Ask the advisory optimizer once; apply the answer if still current."""
        if self._advisory is None or not self._alive or self._request is None:
            return None
        generation = self._generation
        snapshot = self._probe.detect().snapshot
        timeout = min(MAX_ADVISORY_TIMEOUT_SECONDS, self._config.advisory.timeout_seconds)
        try:
            result = await asyncio.wait_for(self._advisory.optimize(snapshot), timeout=timeout)
            accepted = _validated(result)
        except asyncio.CancelledError:
            _LOG.debug("advisory_cancelled generation=%d", generation)
            raise
        except Exception:  # optimizer code and output are untrusted
            log_recoverable(_LOG, "advisory_failed generation=%d", generation, level=logging.INFO)
            return None
        if accepted is None:
            return None
        if not self._alive or generation != self._generation:
            _LOG.debug("advisory_discarded generation=%d current=%d", generation, self._generation)
            return None
        self._advisory_result = accepted
        _LOG.info(
            "advisory_applied source=%s confidence=%.2f", accepted.source, accepted.confidence
        )
        self._evaluate(self._probe.detect())
        return accepted

    def _cancel_advisory_task(self) -> None:
        task = self._advisory_task
        self._advisory_task = None
        if task is not None and not task.done():
            task.cancel()

    def _on_capability_changed(self, capability: DeviceCapability) -> None:
        if not self._alive or self._request is None:
            return
        # a fresh probe is the only path back from the unstable-frame fallback
        self._live_frame_stable = True
        self._evaluate(capability)

    def _on_frame_unstable(self, fps: float) -> None:
        if not self._alive or self._request is None:
            return
        self._live_frame_stable = False
        _LOG.info("selector_frame_unstable fps=%.1f", fps)
        self._evaluate(self._probe.detect())

    def _evaluate(self, capability: DeviceCapability) -> Selection:
        request = self._request
        if request is None:
            raise RuntimeError("no request to evaluate")
        decision = self.decide(request, capability, self._live_frame_stable)
        renderer = self._mount(request, decision)
        selection = Selection(
            kind=decision.kind,
            bundle=decision.bundle,
            size=decision.size,
            renderer=renderer,
            capability=capability,
            reason=decision.reason,
        )
        if self._selection is None or self._selection.kind is not selection.kind:
            _LOG.info(
                "selector_selected kind=%s tier=%s reason=%s",
                selection.kind.value,
                capability.tier.value,
                selection.reason,
            )
        self._selection = selection
        return selection

    def _mount(self, request: RenderRequest, decision: Decision) -> Renderer | None:
        if decision.kind is SelectionKind.NONE:
            self._stop_renderer()
            return None
        key: tuple[object, ...] = (
            self._generation,
            decision.kind,
            request.variant,
            decision.size,
            request.position,
            decision.intensity,
        )
        renderer = self._renderer
        if renderer is not None and key == self._mount_key:
            if renderer.state is DrawLoopState.RUNNING:
                renderer.reconfigure(decision.bundle)
                renderer.set_animated(decision.animated)
                return renderer
            previous = self._selection
            if (
                not decision.animated
                and not renderer.animated
                and previous is not None
                and previous.bundle == decision.bundle
            ):
                return renderer
        self._stop_renderer()
        renderer = self._build(request, decision)
        self._renderer = renderer
        self._mount_key = key
        renderer.start()
        return renderer

    def _build(self, request: RenderRequest, decision: Decision) -> Renderer:
        if decision.kind is SelectionKind.FALLBACK:
            return FallbackLoop(
                host=self._host,
                surface_provider=self._surface_provider,
                variant=request.variant,
                size=decision.size,
                position=request.position,
                intensity=decision.intensity,
                animated=decision.animated,
                renderer=self._fallback,
            )
        return DrawLoop(
            host=self._host,
            surface_provider=self._surface_provider,
            variant=request.variant,
            bundle=decision.bundle,
            size=decision.size,
            position=request.position,
            intensity=decision.intensity,
            animated=decision.animated,
            color=self._config.render.default_color,
            patterns=self._patterns,
            on_frame_unstable=self._on_frame_unstable,
            config=self._config.loop,
        )

    def _stop_renderer(self) -> None:
        renderer = self._renderer
        self._renderer = None
        self._mount_key = None
        if renderer is not None:
            renderer.stop()


__all__ = [
    "AdaptiveSelector",
    "Decision",
    "Renderer",
    "Selection",
    "SelectionKind",
]
