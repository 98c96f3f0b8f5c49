from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from sacred_geometry.advisory.static import StaticAdvisoryOptimizer
from sacred_geometry.api.advisory import AdvisoryResult, AdvisoryUnavailableError
from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.api.device import DeviceSnapshot
from sacred_geometry.api.request import RenderRequest
from sacred_geometry.rendering.draw_loop import DrawLoop, DrawLoopState
from sacred_geometry.rendering.fallback import FallbackLoop
from sacred_geometry.rendering.recording import RecordingSurface
from sacred_geometry.runtime.config import GeometryConfig, load_geometry_config
from sacred_geometry.runtime.environment import StaticEnvironmentProbe
from sacred_geometry.runtime.policy import POLICY_MAX_FRACTAL_DEPTH
from sacred_geometry.runtime.selector import AdaptiveSelector, SelectionKind
from tests.conftest import (
    DESKTOP_SNAPSHOT,
    PHONE_SNAPSHOT,
    TABLET_SNAPSHOT,
    WORKSTATION_SNAPSHOT,
    ManualFrameHost,
    make_probe,
)


class _Harness:
    def __init__(
        self,
        snapshot: DeviceSnapshot,
        *,
        advisory=None,
        config: GeometryConfig | None = None,
    ) -> None:
        self.probe, self.environment = make_probe(snapshot)
        self.host = ManualFrameHost()
        self.surface = RecordingSurface()
        self.selector = AdaptiveSelector(
            probe=self.probe,
            host=self.host,
            surface_provider=lambda: self.surface,
            advisory=advisory,
            config=config,
        )

    def change_snapshot(self, snapshot: DeviceSnapshot) -> None:
        assert isinstance(self.environment, StaticEnvironmentProbe)
        self.environment.set_snapshot(snapshot)
        self.probe.refresh()


class _FailingAdvisory:
    def __init__(self) -> None:
        self.calls = 0

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        self.calls += 1
        raise AdvisoryUnavailableError("advisor offline")


class _BrokenAdvisory:
    def __init__(self, error: Exception) -> None:
        self._error = error

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        raise self._error


class _ReturnsAdvisory:
    def __init__(self, value: object) -> None:
        self._value = value

    async def optimize(self, snapshot: DeviceSnapshot) -> object:
        return self._value


_ADVICE = AdvisoryResult(
    bundle=ParameterBundle(
        target_frame_interval_ms=50.0,
        rotation_speed_rad_per_ms=0.0002,
        polygon_sides=8,
        particle_count=40,
        fractal_depth=3,
        effects_enabled=True,
    ),
    confidence=0.8,
    source="static",
)


def test_workstation_selects_boosted_draw_loop() -> None:
    harness = _Harness(WORKSTATION_SNAPSHOT)

    selection = harness.selector.select(RenderRequest("flower-of-life"))

    assert selection.kind is SelectionKind.DRAW_LOOP
    assert selection.reason == "quality"
    assert selection.bundle.fractal_depth == POLICY_MAX_FRACTAL_DEPTH
    assert selection.size == pytest.approx(144.0)
    assert isinstance(selection.renderer, DrawLoop)
    assert selection.renderer.state is DrawLoopState.RUNNING

    harness.host.fire(0.0)
    assert harness.surface.present_count == 1


def test_force_simplified_wins_on_workstation() -> None:
    harness = _Harness(WORKSTATION_SNAPSHOT)

    selection = harness.selector.select(RenderRequest("flower-of-life", force_simplified=True))

    assert selection.kind is SelectionKind.FALLBACK
    assert selection.reason == "force_simplified"
    assert selection.size == pytest.approx(96.0)
    assert isinstance(selection.renderer, FallbackLoop)


def test_phone_selects_fallback_for_low_memory() -> None:
    harness = _Harness(PHONE_SNAPSHOT)

    selection = harness.selector.select(RenderRequest("hexagon"))

    assert selection.kind is SelectionKind.FALLBACK
    assert selection.reason == "low_memory_mobile"
    assert selection.capability.tier.value == "mobile"
    assert selection.bundle.target_frame_interval_ms == 100.0


def test_desktop_selects_tier_draw_loop() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)

    selection = harness.selector.select(RenderRequest("merkaba", size=200))

    assert selection.kind is SelectionKind.DRAW_LOOP
    assert selection.reason == "tier"
    assert selection.size == 200.0
    assert selection.bundle.target_frame_interval_ms == 33.0


def test_decide_fallback_tones_down_vivid_and_is_pure() -> None:
    harness = _Harness(WORKSTATION_SNAPSHOT)
    capability = harness.probe.detect()

    decision = harness.selector.decide(
        RenderRequest("square", intensity="vivid", force_simplified=True), capability
    )

    assert decision.kind is SelectionKind.FALLBACK
    assert decision.intensity == "medium"
    assert harness.selector.renderer is None
    assert harness.host.requests == 0


def test_unknown_variant_selects_nothing() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)

    selection = harness.selector.select(RenderRequest("spirograph"))

    assert selection.kind is SelectionKind.NONE
    assert selection.reason == "unknown_variant"
    assert selection.renderer is None
    assert harness.host.pending == {}


def test_unstable_frames_switch_to_static_fallback() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    first = harness.selector.select(RenderRequest("flower-of-life"))
    draw_loop = first.renderer
    assert isinstance(draw_loop, DrawLoop)

    harness.host.run(index * 100.0 for index in range(12))

    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.FALLBACK
    assert selection.reason == "frame_unstable"
    assert selection.bundle.target_frame_interval_ms == 66.0
    assert draw_loop.state is DrawLoopState.STOPPED
    assert harness.selector.live_frame_stable is False
    fallback = harness.selector.renderer
    assert isinstance(fallback, FallbackLoop)
    assert fallback.animated is False
    assert fallback.frames_drawn == 1
    assert harness.host.pending == {}


def test_fresh_probe_after_unstable_frames_restores_draw_loop() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    harness.selector.select(RenderRequest("flower-of-life"))
    harness.host.run(index * 100.0 for index in range(12))
    assert harness.selector.live_frame_stable is False

    harness.change_snapshot(replace(DESKTOP_SNAPSHOT, viewport_width=1280))

    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.DRAW_LOOP
    assert selection.reason == "tier"
    assert harness.selector.live_frame_stable is True
    assert isinstance(selection.renderer, DrawLoop)
    assert selection.renderer.state is DrawLoopState.RUNNING


def test_new_request_after_unstable_frames_restores_draw_loop() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    harness.selector.select(RenderRequest("flower-of-life"))
    harness.host.run(index * 100.0 for index in range(12))

    selection = harness.selector.select(RenderRequest("hexagon"))

    assert selection.kind is SelectionKind.DRAW_LOOP
    assert harness.selector.live_frame_stable is True


def test_capability_change_to_same_kind_reconfigures_in_place() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    first = harness.selector.select(RenderRequest("hexagon"))

    harness.change_snapshot(TABLET_SNAPSHOT)

    selection = harness.selector.selection
    assert selection is not None
    assert selection.renderer is first.renderer
    assert isinstance(selection.renderer, DrawLoop)
    assert selection.renderer.bundle.target_frame_interval_ms == 66.0
    assert selection.renderer.state is DrawLoopState.RUNNING


def test_capability_change_to_phone_swaps_renderer() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    first = harness.selector.select(RenderRequest("hexagon"))

    harness.change_snapshot(PHONE_SNAPSHOT)

    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.FALLBACK
    assert isinstance(selection.renderer, FallbackLoop)
    assert isinstance(first.renderer, DrawLoop)
    assert first.renderer.state is DrawLoopState.STOPPED


def test_reselecting_same_request_keeps_renderer() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    request = RenderRequest("triangle")
    first = harness.selector.select(request)
    generation = harness.selector.generation

    second = harness.selector.select(request)

    assert second.renderer is first.renderer
    assert harness.selector.generation == generation


def test_new_request_remounts() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    first = harness.selector.select(RenderRequest("triangle"))

    second = harness.selector.reconfigure_request(RenderRequest("triangle", position="top-left"))

    assert second.renderer is not first.renderer
    assert isinstance(first.renderer, DrawLoop)
    assert first.renderer.state is DrawLoopState.STOPPED


def test_unmount_stops_renderer_and_rejects_select() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT)
    selection = harness.selector.select(RenderRequest("octagon"))

    harness.selector.unmount()
    harness.selector.unmount()

    assert harness.selector.alive is False
    assert harness.selector.renderer is None
    assert isinstance(selection.renderer, DrawLoop)
    assert selection.renderer.state is DrawLoopState.STOPPED
    assert harness.host.pending == {}
    with pytest.raises(RuntimeError):
        harness.selector.select(RenderRequest("octagon"))

    harness.change_snapshot(PHONE_SNAPSHOT)
    assert harness.selector.selection is selection


def test_schedule_advisory_without_running_loop_is_deferred() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=StaticAdvisoryOptimizer(_ADVICE))

    selection = harness.selector.select(RenderRequest("hexagon", enable_advisory=True))

    assert selection.bundle.target_frame_interval_ms == 33.0
    assert harness.selector.schedule_advisory() is None


def test_advisory_result_reconfigures_running_loop() -> None:
    optimizer = StaticAdvisoryOptimizer(_ADVICE)
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=optimizer)
    mounted: list[object] = []

    async def _run() -> None:
        selection = harness.selector.select(RenderRequest("hexagon", enable_advisory=True))
        assert selection.bundle.target_frame_interval_ms == 33.0
        mounted.append(selection.renderer)
        await asyncio.sleep(0.01)

    asyncio.run(_run())

    accepted = harness.selector.advisory_result
    assert accepted is not None
    assert accepted.source == "static"
    assert optimizer.calls == [harness.probe.detect().snapshot]
    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.DRAW_LOOP
    assert selection.renderer is mounted[0]
    assert selection.bundle.target_frame_interval_ms == 50.0
    assert isinstance(selection.renderer, DrawLoop)
    assert selection.renderer.bundle.polygon_sides == 8


def test_advisory_never_overrides_fallback() -> None:
    harness = _Harness(PHONE_SNAPSHOT, advisory=StaticAdvisoryOptimizer(_ADVICE))

    async def _run() -> None:
        harness.selector.select(RenderRequest("hexagon"))
        await harness.selector.refresh_advisory()

    asyncio.run(_run())

    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.FALLBACK
    assert selection.bundle.target_frame_interval_ms == 100.0


def test_advisory_timeout_keeps_tier_bundle() -> None:
    config = load_geometry_config(env={"GEOMETRY_ADVISORY_TIMEOUT_SECONDS": "0.05"})
    optimizer = StaticAdvisoryOptimizer(_ADVICE, delay_seconds=1.0)
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=optimizer, config=config)

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        return await harness.selector.refresh_advisory()

    assert asyncio.run(_run()) is None
    selection = harness.selector.selection
    assert selection is not None
    assert selection.bundle.target_frame_interval_ms == 33.0
    assert harness.selector.advisory_result is None


def test_advisory_failure_is_tolerated() -> None:
    optimizer = _FailingAdvisory()
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=optimizer)

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        return await harness.selector.refresh_advisory()

    assert asyncio.run(_run()) is None
    assert optimizer.calls == 1
    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.DRAW_LOOP
    assert selection.bundle.target_frame_interval_ms == 33.0


def test_advisory_arriving_after_unmount_is_discarded() -> None:
    harness = _Harness(
        DESKTOP_SNAPSHOT, advisory=StaticAdvisoryOptimizer(_ADVICE, delay_seconds=0.01)
    )

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        pending = asyncio.ensure_future(harness.selector.refresh_advisory())
        await asyncio.sleep(0)
        harness.selector.unmount()
        return await pending

    assert asyncio.run(_run()) is None
    assert harness.selector.advisory_result is None
    assert harness.selector.renderer is None


def test_advisory_for_superseded_request_is_discarded() -> None:
    harness = _Harness(
        DESKTOP_SNAPSHOT, advisory=StaticAdvisoryOptimizer(_ADVICE, delay_seconds=0.01)
    )

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        pending = asyncio.ensure_future(harness.selector.refresh_advisory())
        await asyncio.sleep(0)
        harness.selector.select(RenderRequest("pentagon"))
        return await pending

    assert asyncio.run(_run()) is None
    selection = harness.selector.selection
    assert selection is not None
    assert selection.bundle.target_frame_interval_ms == 33.0


def test_new_request_cancels_scheduled_advisory() -> None:
    harness = _Harness(
        DESKTOP_SNAPSHOT, advisory=StaticAdvisoryOptimizer(_ADVICE, delay_seconds=1.0)
    )

    async def _run() -> None:
        harness.selector.select(RenderRequest("hexagon"))
        task = harness.selector.schedule_advisory()
        assert task is not None
        await asyncio.sleep(0)
        harness.selector.select(RenderRequest("square"))
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())
    assert harness.selector.advisory_result is None


def test_advisory_unexpected_error_is_tolerated() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=_BrokenAdvisory(KeyError("bundle")))

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        task = harness.selector.schedule_advisory()
        assert task is not None
        return await task

    assert asyncio.run(_run()) is None
    selection = harness.selector.selection
    assert selection is not None
    assert selection.kind is SelectionKind.DRAW_LOOP
    assert selection.bundle.target_frame_interval_ms == 33.0


def test_advisory_result_of_wrong_type_is_ignored() -> None:
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=_ReturnsAdvisory({"polygonSides": 99}))

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        return await harness.selector.refresh_advisory()

    assert asyncio.run(_run()) is None
    assert harness.selector.advisory_result is None


def test_advisory_mapping_bundle_is_clamped() -> None:
    advice = AdvisoryResult(
        bundle={"renderInterval": 50, "polygonSides": 99},  # type: ignore[arg-type]
        source="remote",
    )
    harness = _Harness(DESKTOP_SNAPSHOT, advisory=_ReturnsAdvisory(advice))

    async def _run() -> AdvisoryResult | None:
        harness.selector.select(RenderRequest("hexagon"))
        return await harness.selector.refresh_advisory()

    accepted = asyncio.run(_run())

    assert accepted is not None
    assert accepted.bundle.polygon_sides == 20
    selection = harness.selector.selection
    assert selection is not None
    assert selection.bundle.target_frame_interval_ms == 50.0
