"""Procedural sacred-geometry pattern library.

Every variant maps onto one of a handful of generic draw procedures plus a
small amount of per-variant data. Drawing is pure with respect to its inputs:
the rotation angle is supplied by the caller and nothing is cached between
calls.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sacred_geometry.api.bundle import ComplexityLevel, ParameterBundle
from sacred_geometry.api.surface import DrawingSurface, Point

_LOG = logging.getLogger("sacred_geometry.patterns")

PHI = 1.6180339887498949
INVERSE_PHI = 1.0 / PHI
DEFAULT_COLOR = "#7c3aed"
INTENSITY_ALPHA: dict[str, float] = {"subtle": 0.3, "medium": 0.6, "vivid": 1.0}
PARTICLE_RING_SCALE = 1.2
LAYER_TWIST_RAD = 0.1
LAYER_ALPHA_DECAY = 0.7
TAU = math.pi * 2.0


@dataclass(frozen=True, slots=True)
class VariantSpec:
    """Per-variant data fed to a generic draw procedure."""

    procedure: str
    natural_sides: int
    fixed_topology: bool = False
    layer_cap: int | None = None


VARIANT_SPECS: dict[str, VariantSpec] = {
    "flower-of-life": VariantSpec("rosette", 6),
    "seed-of-life": VariantSpec("rosette", 6, layer_cap=1),
    "triangle": VariantSpec("polygon", 3),
    "square": VariantSpec("polygon", 4),
    "pentagon": VariantSpec("polygon", 5),
    "hexagon": VariantSpec("polygon", 6),
    "octagon": VariantSpec("polygon", 8),
    "dodecahedron": VariantSpec("polygon", 12),
    "icosahedron": VariantSpec("polygon", 20),
    "pentagon-star": VariantSpec("star", 5),
    "metatron-cube": VariantSpec("lattice", 6, layer_cap=3),
    "merkaba": VariantSpec("merkaba", 6, fixed_topology=True),
    "vesica-piscis": VariantSpec("vesica", 2, fixed_topology=True),
    "sri-yantra": VariantSpec("sri-yantra", 3, fixed_topology=True),
    "golden-spiral": VariantSpec("golden-spiral", 4, fixed_topology=True),
}


@dataclass(frozen=True, slots=True)
class _Pen:
    surface: DrawingSurface
    center: Point
    rotation: float
    color: str
    alpha: float
    width: float

    def point(self, x: float, y: float) -> Point:
        """Rotate an unrotated point about the pattern center."""
        cx, cy = self.center
        dx = x - cx
        dy = y - cy
        cos_a = math.cos(self.rotation)
        sin_a = math.sin(self.rotation)
        return (cx + dx * cos_a - dy * sin_a, cy + dx * sin_a + dy * cos_a)

    def polar(self, distance: float, angle: float) -> Point:
        cx, cy = self.center
        return (
            cx + distance * math.cos(angle + self.rotation),
            cy + distance * math.sin(angle + self.rotation),
        )

    def polyline(
        self,
        points: Sequence[Point],
        *,
        closed: bool = True,
        alpha: float | None = None,
    ) -> None:
        self.surface.stroke_polyline(
            list(points),
            closed=closed,
            color=self.color,
            alpha=self.alpha if alpha is None else alpha,
            width=self.width,
        )

    def circle(self, at: Point, radius: float, *, alpha: float | None = None) -> None:
        self.surface.stroke_circle(
            at[0],
            at[1],
            radius,
            color=self.color,
            alpha=self.alpha if alpha is None else alpha,
            width=self.width,
        )

    def dot(self, at: Point, radius: float, *, alpha: float | None = None) -> None:
        self.surface.fill_circle(
            at[0],
            at[1],
            radius,
            color=self.color,
            alpha=self.alpha if alpha is None else alpha,
        )


def _regular_points(pen: _Pen, radius: float, sides: int, offset: float) -> list[Point]:
    return [pen.polar(radius, offset + TAU * index / sides) for index in range(sides)]


def _layers(spec: VariantSpec, bundle: ParameterBundle) -> int:
    if spec.layer_cap is None:
        return bundle.fractal_depth
    return max(1, min(bundle.fractal_depth, spec.layer_cap))


def _draw_rosette(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    layers = _layers(spec, bundle)
    sides = bundle.polygon_sides
    petal = radius / (layers + 1)
    pen.circle(pen.center, petal)
    for layer in range(1, layers + 1):
        count = sides * layer
        distance = petal * layer
        offset = (layer - 1) * math.pi / sides
        alpha = pen.alpha * LAYER_ALPHA_DECAY ** (layer - 1)
        for index in range(count):
            pen.circle(pen.polar(distance, offset + TAU * index / count), petal, alpha=alpha)


def _draw_polygon(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    sides = bundle.polygon_sides
    for layer in range(_layers(spec, bundle)):
        layer_radius = radius * INVERSE_PHI**layer
        twist = -math.pi / 2.0 + LAYER_TWIST_RAD * layer
        alpha = pen.alpha * LAYER_ALPHA_DECAY**layer
        pen.polyline(_regular_points(pen, layer_radius, sides, twist), alpha=alpha)


def _star_cycles(points: int) -> list[list[int]]:
    step = max(2, (points - 1) // 2) if points >= 5 else 1
    visited: set[int] = set()
    cycles: list[list[int]] = []
    for start in range(points):
        if start in visited:
            continue
        cycle: list[int] = []
        index = start
        while index not in visited:
            visited.add(index)
            cycle.append(index)
            index = (index + step) % points
        cycles.append(cycle)
    return cycles


def _draw_star(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    sides = bundle.polygon_sides
    cycles = _star_cycles(sides)
    for layer in range(_layers(spec, bundle)):
        layer_radius = radius * INVERSE_PHI**layer
        offset = -math.pi / 2.0 + LAYER_TWIST_RAD * layer
        outer = _regular_points(pen, layer_radius, sides, offset)
        alpha = pen.alpha * LAYER_ALPHA_DECAY**layer
        for cycle in cycles:
            pen.polyline([outer[index] for index in cycle], alpha=alpha)


_LATTICE_CONNECTION_CAP: dict[ComplexityLevel, int | None] = {
    ComplexityLevel.MINIMAL: 7,
    ComplexityLevel.SIMPLE: 15,
}


def _draw_lattice(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    sides = bundle.polygon_sides
    rings = _layers(spec, bundle)
    nodes: list[Point] = [pen.center]
    for ring in range(1, rings + 1):
        ring_radius = radius * 0.85 * ring / rings
        offset = (ring - 1) * math.pi / sides
        nodes.extend(_regular_points(pen, ring_radius, sides, offset))
    node_radius = max(1.5, radius * 0.025)
    for node in nodes:
        pen.dot(node, node_radius)
    cap = _LATTICE_CONNECTION_CAP.get(bundle.complexity_level)
    linked = nodes if cap is None else nodes[:cap]
    for first in range(len(linked)):
        for second in range(first + 1, len(linked)):
            pen.polyline([linked[first], linked[second]], closed=False)


def _nested_radii(radius: float, bundle: ParameterBundle) -> list[tuple[float, int]]:
    return [(radius * INVERSE_PHI**layer, layer) for layer in range(bundle.fractal_depth)]


def _draw_merkaba(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    for layer_radius, layer in _nested_radii(radius, bundle):
        alpha = pen.alpha * LAYER_ALPHA_DECAY**layer
        up = _regular_points(pen, layer_radius, 3, -math.pi / 2.0)
        down = _regular_points(pen, layer_radius, 3, math.pi / 2.0)
        pen.polyline(up, alpha=alpha)
        pen.polyline(down, alpha=alpha)
        pen.circle(pen.center, layer_radius * 0.3, alpha=alpha)


def _draw_vesica(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    for layer_radius, layer in _nested_radii(radius, bundle):
        alpha = pen.alpha * LAYER_ALPHA_DECAY**layer
        circle_radius = layer_radius * 0.6
        half = circle_radius / 2.0
        pen.circle(pen.polar(half, math.pi), circle_radius, alpha=alpha)
        pen.circle(pen.polar(half, 0.0), circle_radius, alpha=alpha)


def _draw_sri_yantra(pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle) -> None:
    levels = bundle.fractal_depth
    cx, cy = pen.center
    for level in range(levels):
        r = radius * (1.0 - 0.75 * level / levels)
        alpha = pen.alpha * LAYER_ALPHA_DECAY**level
        down = [
            pen.point(cx - r, cy + r * 0.577),
            pen.point(cx + r, cy + r * 0.577),
            pen.point(cx, cy - r * 1.155),
        ]
        up = [
            pen.point(cx - r, cy - r * 0.577),
            pen.point(cx + r, cy - r * 0.577),
            pen.point(cx, cy + r * 1.155),
        ]
        pen.polyline(down, alpha=alpha)
        pen.polyline(up, alpha=alpha)
    pen.dot(pen.center, max(1.5, radius * 0.04))


def _draw_golden_spiral(
    pen: _Pen, spec: VariantSpec, radius: float, bundle: ParameterBundle
) -> None:
    cx, cy = pen.center
    side = radius * 0.7
    x = cx - side / 2.0
    y = cy - side / 2.0
    for index in range(bundle.fractal_depth):
        corners = [(x, y), (x + side, y), (x + side, y + side), (x, y + side)]
        pen.polyline([pen.point(px, py) for px, py in corners])
        next_side = side / PHI
        quadrant = index % 4
        if quadrant == 0:
            y -= next_side
        elif quadrant == 1:
            x -= next_side
        elif quadrant == 2:
            y += side - next_side
        else:
            x += side - next_side
        side = next_side


_PROCEDURES: dict[str, Callable[[_Pen, VariantSpec, float, ParameterBundle], None]] = {
    "rosette": _draw_rosette,
    "polygon": _draw_polygon,
    "star": _draw_star,
    "lattice": _draw_lattice,
    "merkaba": _draw_merkaba,
    "vesica": _draw_vesica,
    "sri-yantra": _draw_sri_yantra,
    "golden-spiral": _draw_golden_spiral,
}


def _draw_particles(pen: _Pen, radius: float, bundle: ParameterBundle) -> None:
    count = bundle.particle_count
    ring = radius * PARTICLE_RING_SCALE
    dot_radius = max(1.0, radius * 0.015)
    for index in range(count):
        angle = TAU * index / count
        pulse = 0.5 + 0.5 * math.sin(pen.rotation * 8.0 + index)
        pen.dot(pen.polar(ring, angle), dot_radius, alpha=pen.alpha * pulse)


def line_width_for(complexity: ComplexityLevel) -> float:
    if complexity <= ComplexityLevel.MINIMAL:
        return 1.0
    if complexity <= ComplexityLevel.SIMPLE:
        return 1.5
    return 2.0


def natural_sides(variant: str) -> int | None:
    """Return the side count a variant is drawn with by default."""
    spec = VARIANT_SPECS.get(str(variant).strip().lower())
    return None if spec is None else spec.natural_sides


def known_variants() -> tuple[str, ...]:
    return tuple(VARIANT_SPECS)


class PatternLibrary:
    """Draws one variant per call onto an injected surface."""

    def draw(
        self,
        surface: DrawingSurface,
        variant: str,
        center: Point,
        radius: float,
        rotation: float,
        bundle: ParameterBundle,
        *,
        intensity: str = "medium",
        color: str = DEFAULT_COLOR,
    ) -> bool:
        """Draw `variant`; return False without drawing when it is unknown."""
        key = str(variant).strip().lower()
        spec = VARIANT_SPECS.get(key)
        if spec is None:
            _LOG.warning("pattern_unknown_variant variant=%r", variant)
            return False
        pen = _Pen(
            surface=surface,
            center=(float(center[0]), float(center[1])),
            rotation=float(rotation),
            color=color,
            alpha=INTENSITY_ALPHA.get(intensity, INTENSITY_ALPHA["medium"]),
            width=line_width_for(bundle.complexity_level),
        )
        radius = max(0.0, float(radius))
        _PROCEDURES[spec.procedure](pen, spec, radius, bundle)
        if bundle.effects_enabled and bundle.particle_count > 0:
            _draw_particles(pen, radius, bundle)
        return True


__all__ = [
    "DEFAULT_COLOR",
    "INTENSITY_ALPHA",
    "PHI",
    "PatternLibrary",
    "VARIANT_SPECS",
    "VariantSpec",
    "known_variants",
    "line_width_for",
    "natural_sides",
]
