"""Weighted blend over several advisory sources."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass

from sacred_geometry.api.advisory import (
    AdvisoryOptimizer,
    AdvisoryResult,
    AdvisoryUnavailableError,
)
from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.api.device import DeviceSnapshot

_LOG = logging.getLogger("sacred_geometry.advisory")


@dataclass(frozen=True, slots=True)
class WeightedSource:
    name: str
    optimizer: AdvisoryOptimizer
    weight: float


def _weighted_vote[T](votes: Sequence[tuple[T, float]]) -> T:
    """Return the value with the largest total weight.

    Ties go to the value backed by the single heaviest vote; `votes` is
    ordered heaviest first, so that is the earliest tied value.
    """
    totals: dict[T, float] = defaultdict(float)
    for value, weight in votes:
        totals[value] += weight
    best = max(totals.values())
    for value, _ in votes:
        if totals[value] == best:
            return value
    return votes[0][0]


def blend_results(results: Sequence[tuple[AdvisoryResult, float]]) -> ParameterBundle:
    """Weighted mean of numeric fields, weighted votes for the rest."""
    if not results:
        raise AdvisoryUnavailableError("no advisory results to blend")
    ordered = sorted(results, key=lambda item: item[1], reverse=True)
    total = sum(weight for _, weight in ordered)
    if total <= 0.0:
        raise AdvisoryUnavailableError("advisory weights sum to zero")

    def mean(name: str) -> float:
        weighted = sum(float(getattr(result.bundle, name)) * weight for result, weight in ordered)
        return weighted / total

    return ParameterBundle(
        complexity_level=_weighted_vote(
            [(result.bundle.complexity_level, weight) for result, weight in ordered]
        ),
        rotation_speed_rad_per_ms=mean("rotation_speed_rad_per_ms"),
        target_frame_interval_ms=round(mean("target_frame_interval_ms")),
        polygon_sides=round(mean("polygon_sides")),
        particle_count=round(mean("particle_count")),
        fractal_depth=round(mean("fractal_depth")),
        effects_enabled=_weighted_vote(
            [(result.bundle.effects_enabled, weight) for result, weight in ordered]
        ),
        gpu_hint=_weighted_vote([(result.bundle.gpu_hint, weight) for result, weight in ordered]),
    )


class BlendedAdvisoryOptimizer:
    """Queries every source concurrently and blends the successful answers."""

    def __init__(self, sources: Sequence[WeightedSource], *, source: str = "blend") -> None:
        usable = [item for item in sources if item.weight > 0.0]
        if not usable:
            raise ValueError("at least one source with a positive weight is required")
        self._sources = tuple(usable)
        self._source = source

    @property
    def sources(self) -> tuple[WeightedSource, ...]:
        return self._sources

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        outcomes = await asyncio.gather(
            *(item.optimizer.optimize(snapshot) for item in self._sources),
            return_exceptions=True,
        )
        accepted: list[tuple[AdvisoryResult, float]] = []
        names: list[str] = []
        for item, outcome in zip(self._sources, outcomes, strict=True):
            if isinstance(outcome, AdvisoryResult):
                accepted.append((outcome, item.weight))
                names.append(item.name)
                continue
            if isinstance(outcome, Exception):
                _LOG.debug("advisory_source_failed source=%s error=%r", item.name, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            _LOG.debug(
                "advisory_source_invalid source=%s type=%s", item.name, type(outcome).__name__
            )
        if not accepted:
            raise AdvisoryUnavailableError("every advisory source failed")
        total = sum(weight for _, weight in accepted)
        confidence = sum(result.confidence * weight for result, weight in accepted) / total
        bundle = blend_results(accepted)
        _LOG.debug(
            "advisory_blend_result sources=%s confidence=%.2f", ",".join(names), confidence
        )
        return AdvisoryResult(
            bundle=bundle,
            confidence=confidence,
            rationale="weighted blend of " + ", ".join(names),
            source=self._source,
        )


__all__ = ["BlendedAdvisoryOptimizer", "WeightedSource", "blend_results"]
