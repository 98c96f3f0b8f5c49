"""Rendering parameter bundle and its clamping trust boundary."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import IntEnum


class ComplexityLevel(IntEnum):
    """Ordinal complexity of a resolved bundle."""

    MINIMAL = 0
    SIMPLE = 1
    STANDARD = 2
    COMPLEX = 3
    MAXIMUM = 4

    @classmethod
    def parse(cls, raw: object, default: "ComplexityLevel") -> "ComplexityLevel":
        if isinstance(raw, ComplexityLevel):
            return raw
        if isinstance(raw, str):
            member = cls.__members__.get(raw.strip().upper())
            return member if member is not None else default
        if isinstance(raw, (int, float)) and not isinstance(raw, bool) and math.isfinite(raw):
            index = int(max(cls.MINIMAL, min(cls.MAXIMUM, int(raw))))
            return cls(index)
        return default


ROTATION_SPEED_RANGE: tuple[float, float] = (0.0, 0.005)
FRAME_INTERVAL_RANGE_MS: tuple[float, float] = (8.0, 1000.0)
POLYGON_SIDES_RANGE: tuple[int, int] = (3, 20)
PARTICLE_COUNT_RANGE: tuple[int, int] = (0, 200)
FRACTAL_DEPTH_RANGE: tuple[int, int] = (1, 10)


def _clamp_float(raw: object, bounds: tuple[float, float], fallback: float) -> float:
    low, high = bounds
    if isinstance(raw, bool):
        value = fallback
    else:
        try:
            value = float(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            value = fallback
    if not math.isfinite(value):
        value = fallback
    return max(low, min(high, value))


def _clamp_int(raw: object, bounds: tuple[int, int], fallback: int) -> int:
    low, high = bounds
    value = _clamp_float(raw, (float(low), float(high)), float(fallback))
    return max(low, min(high, int(round(value))))


def _coerce_bool(raw: object, fallback: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in {"1", "true", "yes", "on"}:
            return True
        if value in {"0", "false", "no", "off"}:
            return False
        return fallback
    if isinstance(raw, (int, float)) and math.isfinite(raw):
        return bool(raw)
    return fallback


@dataclass(frozen=True, slots=True)
class ParameterBundle:
    """Resolved rendering knobs; every field is clamped on construction.

    Out-of-range numbers are pulled to the nearest bound. Values that are not
    numbers at all (or NaN/inf) fall back to the conservative end of the
    range: slowest cadence, fewest sides, no particles, shallowest depth.
    """

    complexity_level: ComplexityLevel = ComplexityLevel.MINIMAL
    rotation_speed_rad_per_ms: float = 0.0
    target_frame_interval_ms: float = 100.0
    polygon_sides: int = 3
    particle_count: int = 0
    fractal_depth: int = 1
    effects_enabled: bool = False
    gpu_hint: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "complexity_level",
            ComplexityLevel.parse(self.complexity_level, ComplexityLevel.MINIMAL),
        )
        object.__setattr__(
            self,
            "rotation_speed_rad_per_ms",
            _clamp_float(self.rotation_speed_rad_per_ms, ROTATION_SPEED_RANGE, 0.0),
        )
        object.__setattr__(
            self,
            "target_frame_interval_ms",
            _clamp_float(
                self.target_frame_interval_ms,
                FRAME_INTERVAL_RANGE_MS,
                FRAME_INTERVAL_RANGE_MS[1],
            ),
        )
        object.__setattr__(
            self,
            "polygon_sides",
            _clamp_int(self.polygon_sides, POLYGON_SIDES_RANGE, POLYGON_SIDES_RANGE[0]),
        )
        object.__setattr__(
            self,
            "particle_count",
            _clamp_int(self.particle_count, PARTICLE_COUNT_RANGE, PARTICLE_COUNT_RANGE[0]),
        )
        object.__setattr__(
            self,
            "fractal_depth",
            _clamp_int(self.fractal_depth, FRACTAL_DEPTH_RANGE, FRACTAL_DEPTH_RANGE[0]),
        )
        object.__setattr__(self, "effects_enabled", _coerce_bool(self.effects_enabled, False))
        object.__setattr__(self, "gpu_hint", _coerce_bool(self.gpu_hint, False))

    @property
    def target_fps(self) -> float:
        return 1000.0 / self.target_frame_interval_ms

    def with_changes(self, **changes: object) -> "ParameterBundle":
        """Return a copy with `changes` applied and re-clamped."""
        return replace(self, **changes)  # type: ignore[arg-type]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object]) -> "ParameterBundle":
        """Build a clamped bundle from an untrusted mapping.

        Accepts both snake_case field names and the camelCase names used by
        remote tuning services (``renderInterval``, ``rotationSpeed`` ...).
        Missing keys take the conservative defaults.
        """
        values: dict[str, object] = {}
        for field_name, aliases in _FIELD_ALIASES.items():
            for key in (field_name, *aliases):
                if key in raw:
                    values[field_name] = raw[key]
                    break
        return cls(**values)  # type: ignore[arg-type]

    def to_payload(self) -> dict[str, object]:
        return {
            "complexity_level": self.complexity_level.name.lower(),
            "rotation_speed_rad_per_ms": self.rotation_speed_rad_per_ms,
            "target_frame_interval_ms": self.target_frame_interval_ms,
            "polygon_sides": self.polygon_sides,
            "particle_count": self.particle_count,
            "fractal_depth": self.fractal_depth,
            "effects_enabled": self.effects_enabled,
            "gpu_hint": self.gpu_hint,
        }


_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "complexity_level": ("complexityLevel", "complexity"),
    "rotation_speed_rad_per_ms": ("rotationSpeedRadPerMs", "rotation_speed", "rotationSpeed"),
    "target_frame_interval_ms": (
        "targetFrameIntervalMs",
        "render_interval",
        "renderInterval",
    ),
    "polygon_sides": ("polygonSides",),
    "particle_count": ("particleCount",),
    "fractal_depth": ("fractalDepth",),
    "effects_enabled": ("effectsEnabled", "enableEffects"),
    "gpu_hint": ("gpuHint", "useGPUAcceleration"),
}


def clamp_bundle(bundle: ParameterBundle) -> ParameterBundle:
    """Re-run the clamp on an existing bundle (e.g. one built via object.__setattr__)."""
    return ParameterBundle(
        complexity_level=bundle.complexity_level,
        rotation_speed_rad_per_ms=bundle.rotation_speed_rad_per_ms,
        target_frame_interval_ms=bundle.target_frame_interval_ms,
        polygon_sides=bundle.polygon_sides,
        particle_count=bundle.particle_count,
        fractal_depth=bundle.fractal_depth,
        effects_enabled=bundle.effects_enabled,
        gpu_hint=bundle.gpu_hint,
    )


__all__ = [
    "ComplexityLevel",
    "FRACTAL_DEPTH_RANGE",
    "FRAME_INTERVAL_RANGE_MS",
    "PARTICLE_COUNT_RANGE",
    "POLYGON_SIDES_RANGE",
    "ParameterBundle",
    "ROTATION_SPEED_RANGE",
    "clamp_bundle",
]
