from __future__ import annotations

import pytest

from sacred_geometry.api.advisory import AdvisoryResult
from sacred_geometry.api.bundle import ComplexityLevel, ParameterBundle
from sacred_geometry.api.device import DeviceTier
from sacred_geometry.runtime.policy import POLICY_MAX_FRACTAL_DEPTH, PerformanceTierPolicy
from tests.conftest import PHONE_SNAPSHOT, make_probe


@pytest.mark.parametrize(
    ("tier", "interval", "sides", "particles", "depth", "gpu"),
    [
        (DeviceTier.MOBILE, 100.0, 4, 15, 1, False),
        (DeviceTier.TABLET, 66.0, 6, 30, 2, False),
        (DeviceTier.DESKTOP, 33.0, 6, 50, 4, False),
        (DeviceTier.HIGH_END, 25.0, 9, 100, 6, True),
    ],
)
def test_resolve_tier_table(
    tier: DeviceTier,
    interval: float,
    sides: int,
    particles: int,
    depth: int,
    gpu: bool,
) -> None:
    bundle = PerformanceTierPolicy().resolve(tier)

    assert bundle.target_frame_interval_ms == interval
    assert bundle.polygon_sides == sides
    assert bundle.particle_count == particles
    assert bundle.fractal_depth == depth
    assert bundle.gpu_hint is gpu


def test_resolve_is_deterministic() -> None:
    policy = PerformanceTierPolicy()

    assert policy.resolve(DeviceTier.TABLET) == policy.resolve(DeviceTier.TABLET)


def test_mobile_caps_requested_sides() -> None:
    policy = PerformanceTierPolicy()

    assert policy.resolve(DeviceTier.MOBILE, requested_sides=12).polygon_sides == 4
    assert policy.resolve(DeviceTier.TABLET, requested_sides=12).polygon_sides == 6
    assert policy.resolve(DeviceTier.DESKTOP, requested_sides=12).polygon_sides == 12
    assert policy.resolve(DeviceTier.HIGH_END, requested_sides=12).polygon_sides == 18
    assert policy.resolve(DeviceTier.DESKTOP, requested_sides=1).polygon_sides == 3


def test_unstable_frames_downgrade_never_upgrade() -> None:
    policy = PerformanceTierPolicy()
    for tier in DeviceTier:
        stable = policy.resolve(tier)
        unstable = policy.resolve(tier, live_frame_stable=False)
        assert unstable.target_frame_interval_ms >= stable.target_frame_interval_ms
        assert unstable.complexity_level <= stable.complexity_level
        assert unstable.fractal_depth <= stable.fractal_depth

    assert policy.resolve(DeviceTier.DESKTOP, live_frame_stable=False) == policy.resolve(
        DeviceTier.TABLET
    )
    assert policy.resolve(DeviceTier.MOBILE, live_frame_stable=False) == policy.resolve(
        DeviceTier.MOBILE
    )


def test_simplified_override_returns_mobile_bundle() -> None:
    policy = PerformanceTierPolicy()

    bundle = policy.resolve(DeviceTier.HIGH_END, override="simplified")

    assert bundle == policy.resolve(DeviceTier.MOBILE)


def test_advisory_override_applies_only_while_stable() -> None:
    policy = PerformanceTierPolicy()
    advisory = AdvisoryResult(
        bundle=ParameterBundle(target_frame_interval_ms=50.0, polygon_sides=7),
        confidence=0.9,
    )

    assert policy.resolve(DeviceTier.DESKTOP, override=advisory).target_frame_interval_ms == 50.0
    unstable = policy.resolve(DeviceTier.DESKTOP, live_frame_stable=False, override=advisory)
    assert unstable == policy.resolve(DeviceTier.TABLET)


def test_advisory_override_is_reclamped() -> None:
    policy = PerformanceTierPolicy()
    bundle = ParameterBundle()
    object.__setattr__(bundle, "target_frame_interval_ms", 0.5)
    object.__setattr__(bundle, "particle_count", 10_000)

    resolved = policy.resolve(DeviceTier.DESKTOP, override=AdvisoryResult(bundle=bundle))

    assert resolved.target_frame_interval_ms == 8.0
    assert resolved.particle_count == 200


def test_boost_raises_depth_to_policy_max() -> None:
    policy = PerformanceTierPolicy()

    boosted = policy.boost(policy.resolve(DeviceTier.DESKTOP))

    assert boosted.fractal_depth == POLICY_MAX_FRACTAL_DEPTH
    assert boosted.complexity_level is ComplexityLevel.MAXIMUM
    assert policy.boost(ParameterBundle(fractal_depth=9)).fractal_depth == 9


def test_phone_snapshot_resolves_to_throttled_bundle() -> None:
    probe, _ = make_probe(PHONE_SNAPSHOT)
    capability = probe.detect()

    bundle = PerformanceTierPolicy().resolve(capability.tier)

    assert capability.tier is DeviceTier.MOBILE
    assert bundle.target_frame_interval_ms == pytest.approx(100.0)
    assert bundle.polygon_sides <= 4
    assert bundle.effects_enabled is False
