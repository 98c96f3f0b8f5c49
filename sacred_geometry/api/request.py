"""Caller-facing render request contract."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

type Intensity = Literal["subtle", "medium", "vivid"]
type Position = Literal["center", "top-left", "top-right", "bottom-left", "bottom-right"]

GEOMETRY_VARIANTS: tuple[str, ...] = (
    "flower-of-life",
    "merkaba",
    "sri-yantra",
    "golden-spiral",
    "hexagon",
    "vesica-piscis",
    "dodecahedron",
    "icosahedron",
    "seed-of-life",
    "pentagon-star",
    "metatron-cube",
    "triangle",
    "square",
    "pentagon",
    "octagon",
)

INTENSITIES: tuple[str, ...] = ("subtle", "medium", "vivid")
POSITIONS: tuple[str, ...] = ("center", "top-left", "top-right", "bottom-left", "bottom-right")

DEFAULT_SIZE = 120.0
SIZE_RANGE: tuple[float, float] = (8.0, 4096.0)


def normalize_intensity(raw: object) -> Intensity:
    value = str(raw).strip().lower()
    if value in INTENSITIES:
        return value  # type: ignore[return-value]
    return "medium"


def normalize_position(raw: object) -> Position:
    value = str(raw).strip().lower().replace("_", "-")
    if value in POSITIONS:
        return value  # type: ignore[return-value]
    return "center"


def normalize_size(raw: object) -> float:
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_SIZE
    if not math.isfinite(value):
        return DEFAULT_SIZE
    return max(SIZE_RANGE[0], min(SIZE_RANGE[1], value))


@dataclass(frozen=True, slots=True)
class RenderRequest:
    """Declarative shape request; immutable once handed to the selector."""

    variant: str
    size: float = DEFAULT_SIZE
    position: Position = "center"
    intensity: Intensity = "medium"
    animated: bool = True
    force_simplified: bool = False
    enable_advisory: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "variant", str(self.variant).strip().lower())
        object.__setattr__(self, "size", normalize_size(self.size))
        object.__setattr__(self, "position", normalize_position(self.position))
        object.__setattr__(self, "intensity", normalize_intensity(self.intensity))
        object.__setattr__(self, "animated", bool(self.animated))
        object.__setattr__(self, "force_simplified", bool(self.force_simplified))
        object.__setattr__(self, "enable_advisory", bool(self.enable_advisory))


__all__ = [
    "DEFAULT_SIZE",
    "GEOMETRY_VARIANTS",
    "INTENSITIES",
    "Intensity",
    "POSITIONS",
    "Position",
    "RenderRequest",
    "SIZE_RANGE",
    "normalize_intensity",
    "normalize_position",
    "normalize_size",
]
