"""Drawing surface backed by a pygfx scene on a rendercanvas window."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from sacred_geometry.api.surface import Point

_gfx_import_error: Exception | None
try:
    import pygfx as gfx
except Exception as exc:  # pragma: no cover - import guard for environments without graphics deps
    gfx = None
    _gfx_import_error = exc
else:
    _gfx_import_error = None

CIRCLE_SEGMENTS = 48
BACKGROUND_COLOR = "#0b0614"


def rgba(color: str, alpha: float) -> tuple[float, float, float, float]:
    """Convert ``#rrggbb`` plus alpha to a float RGBA tuple."""
    value = color.strip().lstrip("#")
    if len(value) != 6:
        raise ValueError(f"unsupported color: {color!r}")
    red = int(value[0:2], 16) / 255.0
    green = int(value[2:4], 16) / 255.0
    blue = int(value[4:6], 16) / 255.0
    return (red, green, blue, max(0.0, min(1.0, float(alpha))))


def circle_points(
    cx: float, cy: float, radius: float, segments: int = CIRCLE_SEGMENTS
) -> list[Point]:
    return [
        (
            cx + radius * math.cos(math.tau * index / segments),
            cy + radius * math.sin(math.tau * index / segments),
        )
        for index in range(segments)
    ]


@dataclass(slots=True)
class PygfxSurface:
    """Immediate-mode facade over a retained pygfx scene.

    Each frame rebuilds the children of one group; `present()` renders the
    scene through an orthographic camera whose y axis is flipped so callers
    keep top-left, y-down coordinates.
    """

    canvas: Any
    renderer: Any = field(init=False)
    scene: Any = field(init=False)
    camera: Any = field(init=False)
    _group: Any = field(init=False)
    _size: tuple[float, float] = field(init=False, default=(0.0, 0.0))

    def __post_init__(self) -> None:
        if gfx is None:
            raise RuntimeError(
                f"pygfx dependency unavailable: {_gfx_import_error!r}. Install 'pygfx' and 'wgpu'."
            )
        self.renderer = gfx.WgpuRenderer(self.canvas)
        self.scene = gfx.Scene()
        self.scene.add(gfx.Background.from_color(BACKGROUND_COLOR))
        self._group = gfx.Group()
        self.scene.add(self._group)
        width, height = self._canvas_size()
        self.camera = gfx.OrthographicCamera(width, height)
        self._size = (width, height)

    @property
    def size(self) -> tuple[float, float]:
        return self._size

    def clear(self) -> None:
        self._sync_size()
        self._group.clear()

    def stroke_polyline(
        self,
        points: Sequence[Point],
        *,
        closed: bool,
        color: str,
        alpha: float,
        width: float,
    ) -> None:
        if len(points) < 2:
            return
        path = list(points)
        if closed:
            path.append(path[0])
        line = gfx.Line(
            gfx.Geometry(positions=self._positions(path)),
            gfx.LineMaterial(thickness=max(0.5, float(width)), color=rgba(color, alpha)),
        )
        self._group.add(line)

    def stroke_circle(
        self,
        cx: float,
        cy: float,
        radius: float,
        *,
        color: str,
        alpha: float,
        width: float,
    ) -> None:
        self.stroke_polyline(
            circle_points(cx, cy, radius),
            closed=True,
            color=color,
            alpha=alpha,
            width=width,
        )

    def fill_circle(
        self,
        cx: float,
        cy: float,
        radius: float,
        *,
        color: str,
        alpha: float,
    ) -> None:
        points = gfx.Points(
            gfx.Geometry(positions=self._positions([(cx, cy)])),
            gfx.PointsMaterial(size=max(1.0, float(radius) * 2.0), color=rgba(color, alpha)),
        )
        self._group.add(points)

    def present(self) -> None:
        self.renderer.render(self.scene, self.camera)

    def _positions(self, points: Sequence[Point]) -> np.ndarray:
        width, height = self._size
        array = np.zeros((len(points), 3), dtype=np.float32)
        for index, (x, y) in enumerate(points):
            array[index, 0] = x - width / 2.0
            array[index, 1] = height / 2.0 - y
        return array

    def _canvas_size(self) -> tuple[float, float]:
        get_size = getattr(self.canvas, "get_logical_size", None)
        if callable(get_size):
            width, height = get_size()
            return (max(1.0, float(width)), max(1.0, float(height)))
        return (1.0, 1.0)

    def _sync_size(self) -> None:
        size = self._canvas_size()
        if size == self._size:
            return
        self._size = size
        self.camera.width = size[0]
        self.camera.height = size[1]


__all__ = ["PygfxSurface", "circle_points", "rgba"]
