from __future__ import annotations

import asyncio

import pytest

from sacred_geometry.advisory.blend import (
    BlendedAdvisoryOptimizer,
    WeightedSource,
    blend_results,
)
from sacred_geometry.advisory.static import StaticAdvisoryOptimizer
from sacred_geometry.api.advisory import AdvisoryResult, AdvisoryUnavailableError
from sacred_geometry.api.bundle import ComplexityLevel, ParameterBundle
from sacred_geometry.api.device import DeviceSnapshot
from tests.conftest import DESKTOP_SNAPSHOT


def _result(
    interval: float,
    sides: int,
    complexity: ComplexityLevel,
    *,
    effects: bool = True,
    confidence: float = 0.5,
) -> AdvisoryResult:
    return AdvisoryResult(
        bundle=ParameterBundle(
            target_frame_interval_ms=interval,
            polygon_sides=sides,
            complexity_level=complexity,
            effects_enabled=effects,
        ),
        confidence=confidence,
    )


def _static(*args, **kwargs) -> StaticAdvisoryOptimizer:
    return StaticAdvisoryOptimizer(_result(*args, **kwargs))


class _Raising:
    def __init__(self, error: Exception) -> None:
        self._error = error

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        raise self._error


def test_blend_results_weighted_mean_and_votes() -> None:
    bundle = blend_results(
        [
            (_result(30.0, 6, ComplexityLevel.SIMPLE, effects=False), 0.4),
            (_result(60.0, 8, ComplexityLevel.STANDARD, effects=True), 0.4),
            (_result(90.0, 10, ComplexityLevel.COMPLEX, effects=True), 0.2),
        ]
    )

    assert bundle.target_frame_interval_ms == 54.0
    assert bundle.polygon_sides == 8
    assert bundle.complexity_level is ComplexityLevel.SIMPLE
    assert bundle.effects_enabled is True


def test_blend_vote_tie_goes_to_heaviest_source() -> None:
    bundle = blend_results(
        [
            (_result(30.0, 6, ComplexityLevel.SIMPLE), 0.25),
            (_result(30.0, 6, ComplexityLevel.SIMPLE), 0.25),
            (_result(30.0, 6, ComplexityLevel.MAXIMUM), 0.5),
        ]
    )

    assert bundle.complexity_level is ComplexityLevel.MAXIMUM


def test_blend_results_requires_input() -> None:
    with pytest.raises(AdvisoryUnavailableError):
        blend_results([])


def test_blended_optimizer_combines_sources() -> None:
    optimizer = BlendedAdvisoryOptimizer(
        [
            WeightedSource("a", _static(30.0, 6, ComplexityLevel.SIMPLE, confidence=0.9), 0.4),
            WeightedSource("b", _static(60.0, 8, ComplexityLevel.STANDARD, confidence=0.6), 0.4),
            WeightedSource("c", _static(90.0, 10, ComplexityLevel.COMPLEX, confidence=0.3), 0.2),
        ]
    )

    result = asyncio.run(optimizer.optimize(DESKTOP_SNAPSHOT))

    assert result.bundle.target_frame_interval_ms == 54.0
    assert result.confidence == pytest.approx(0.66)
    assert result.rationale == "weighted blend of a, b, c"
    assert result.source == "blend"


def test_blended_optimizer_skips_failed_sources() -> None:
    optimizer = BlendedAdvisoryOptimizer(
        [
            WeightedSource("down", _Raising(AdvisoryUnavailableError("offline")), 0.5),
            WeightedSource("slow", _Raising(TimeoutError("timed out")), 0.3),
            WeightedSource("ok", _static(40.0, 5, ComplexityLevel.STANDARD), 0.2),
        ]
    )

    result = asyncio.run(optimizer.optimize(DESKTOP_SNAPSHOT))

    assert result.bundle.target_frame_interval_ms == 40.0
    assert result.rationale == "weighted blend of ok"


def test_blended_optimizer_all_failed_is_unavailable() -> None:
    optimizer = BlendedAdvisoryOptimizer(
        [WeightedSource("down", _Raising(AdvisoryUnavailableError("offline")), 1.0)]
    )

    with pytest.raises(AdvisoryUnavailableError):
        asyncio.run(optimizer.optimize(DESKTOP_SNAPSHOT))


def test_blended_optimizer_skips_sources_with_unexpected_errors() -> None:
    optimizer = BlendedAdvisoryOptimizer(
        [
            WeightedSource("bug", _Raising(KeyError("missing")), 0.5),
            WeightedSource("ok", _static(40.0, 5, ComplexityLevel.STANDARD), 0.5),
        ]
    )

    result = asyncio.run(optimizer.optimize(DESKTOP_SNAPSHOT))

    assert result.bundle.target_frame_interval_ms == 40.0
    assert result.rationale == "weighted blend of ok"


def test_blended_optimizer_requires_positive_weight() -> None:
    with pytest.raises(ValueError):
        BlendedAdvisoryOptimizer(
            [WeightedSource("zero", _static(40.0, 5, ComplexityLevel.SIMPLE), 0.0)]
        )
