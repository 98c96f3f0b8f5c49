"""Placement of a pattern box inside a drawing surface."""

from __future__ import annotations

from sacred_geometry.api.request import normalize_position
from sacred_geometry.api.surface import Point

PLACEMENT_MARGIN = 20.0
PATTERN_RADIUS_SCALE = 0.4


def place(
    position: str,
    size: float,
    surface_size: tuple[float, float],
    *,
    margin: float = PLACEMENT_MARGIN,
) -> Point:
    """Return the center point of a `size`-sided box anchored at `position`.

    The margin shrinks when the surface is too small to hold it, so a box the
    size of the surface is always centered.
    """
    width, height = float(surface_size[0]), float(surface_size[1])
    half = float(size) / 2.0
    margin_x = max(0.0, min(margin, (width - size) / 2.0))
    margin_y = max(0.0, min(margin, (height - size) / 2.0))
    anchor = normalize_position(position)
    if anchor == "center":
        return (width / 2.0, height / 2.0)
    x = margin_x + half if anchor.endswith("left") else width - margin_x - half
    y = margin_y + half if anchor.startswith("top") else height - margin_y - half
    return (x, y)


def pattern_radius(size: float) -> float:
    return float(size) * PATTERN_RADIUS_SCALE


__all__ = ["PATTERN_RADIUS_SCALE", "PLACEMENT_MARGIN", "pattern_radius", "place"]
