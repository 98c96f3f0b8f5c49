"""Tier to parameter-bundle resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from sacred_geometry.api.advisory import AdvisoryResult
from sacred_geometry.api.bundle import ComplexityLevel, ParameterBundle, clamp_bundle
from sacred_geometry.api.device import DeviceTier

_LOG = logging.getLogger("sacred_geometry.policy")

POLICY_MAX_FRACTAL_DEPTH = 6
DEFAULT_REQUESTED_SIDES = 6

type PolicyOverride = Literal["simplified"] | AdvisoryResult | None


@dataclass(frozen=True, slots=True)
class TierProfile:
    """One row of the tier table."""

    interval_ms: float
    rotation_speed_rad_per_ms: float
    sides_cap: int | None
    sides_scale: float
    particle_count: int
    fractal_depth: int
    effects_enabled: bool
    gpu_hint: bool
    complexity_level: ComplexityLevel

    def sides_for(self, requested_sides: int) -> int:
        sides = int(round(requested_sides * self.sides_scale))
        if self.sides_cap is not None:
            sides = min(sides, self.sides_cap)
        return sides


TIER_PROFILES: dict[DeviceTier, TierProfile] = {
    DeviceTier.MOBILE: TierProfile(
        interval_ms=100.0,
        rotation_speed_rad_per_ms=0.00003,
        sides_cap=4,
        sides_scale=1.0,
        particle_count=15,
        fractal_depth=1,
        effects_enabled=False,
        gpu_hint=False,
        complexity_level=ComplexityLevel.MINIMAL,
    ),
    DeviceTier.TABLET: TierProfile(
        interval_ms=66.0,
        rotation_speed_rad_per_ms=0.00006,
        sides_cap=6,
        sides_scale=1.0,
        particle_count=30,
        fractal_depth=2,
        effects_enabled=True,
        gpu_hint=False,
        complexity_level=ComplexityLevel.SIMPLE,
    ),
    DeviceTier.DESKTOP: TierProfile(
        interval_ms=33.0,
        rotation_speed_rad_per_ms=0.0001,
        sides_cap=None,
        sides_scale=1.0,
        particle_count=50,
        fractal_depth=4,
        effects_enabled=True,
        gpu_hint=False,
        complexity_level=ComplexityLevel.STANDARD,
    ),
    DeviceTier.HIGH_END: TierProfile(
        interval_ms=25.0,
        rotation_speed_rad_per_ms=0.00015,
        sides_cap=None,
        sides_scale=1.5,
        particle_count=100,
        fractal_depth=POLICY_MAX_FRACTAL_DEPTH,
        effects_enabled=True,
        gpu_hint=True,
        complexity_level=ComplexityLevel.COMPLEX,
    ),
}


class PerformanceTierPolicy:
    """Pure table lookup from device tier to a clamped parameter bundle."""

    def resolve(
        self,
        tier: DeviceTier,
        live_frame_stable: bool = True,
        override: PolicyOverride = None,
        *,
        requested_sides: int = DEFAULT_REQUESTED_SIDES,
    ) -> ParameterBundle:
        if override == "simplified":
            return self._table_bundle(DeviceTier.MOBILE, requested_sides)
        if not live_frame_stable:
            downgraded = tier.downgraded()
            _LOG.debug("policy_downgrade tier=%s resolved=%s", tier.value, downgraded.value)
            return self._table_bundle(downgraded, requested_sides)
        if isinstance(override, AdvisoryResult):
            return clamp_bundle(override.bundle)
        return self._table_bundle(tier, requested_sides)

    def boost(self, bundle: ParameterBundle) -> ParameterBundle:
        """Raise depth to the policy maximum for the quality path."""
        return bundle.with_changes(
            fractal_depth=max(bundle.fractal_depth, POLICY_MAX_FRACTAL_DEPTH),
            complexity_level=ComplexityLevel.MAXIMUM,
        )

    def _table_bundle(self, tier: DeviceTier, requested_sides: int) -> ParameterBundle:
        profile = TIER_PROFILES[tier]
        return ParameterBundle(
            complexity_level=profile.complexity_level,
            rotation_speed_rad_per_ms=profile.rotation_speed_rad_per_ms,
            target_frame_interval_ms=profile.interval_ms,
            polygon_sides=profile.sides_for(_coerce_sides(requested_sides)),
            particle_count=profile.particle_count,
            fractal_depth=profile.fractal_depth,
            effects_enabled=profile.effects_enabled,
            gpu_hint=profile.gpu_hint,
        )


def _coerce_sides(raw: object) -> int:
    if isinstance(raw, bool):
        return DEFAULT_REQUESTED_SIDES
    try:
        value = int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_REQUESTED_SIDES
    return max(3, value)


__all__ = [
    "DEFAULT_REQUESTED_SIDES",
    "POLICY_MAX_FRACTAL_DEPTH",
    "PerformanceTierPolicy",
    "PolicyOverride",
    "TIER_PROFILES",
    "TierProfile",
]
