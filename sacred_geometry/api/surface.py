"""Immediate-mode 2D drawing surface contract."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

Point = tuple[float, float]


class DrawingSurface(Protocol):
    """Drawing target the pattern library and renderers paint onto.

    Coordinates are logical pixels with the origin at the top-left corner and
    y growing downwards. Colors are ``#rrggbb`` strings; alpha is 0..1.
    """

    @property
    def size(self) -> tuple[float, float]:
        """Return logical (width, height)."""

    def clear(self) -> None:
        """Erase everything drawn since the last clear."""

    def stroke_polyline(
        self,
        points: Sequence[Point],
        *,
        closed: bool,
        color: str,
        alpha: float,
        width: float,
    ) -> None:
        """Stroke connected line segments through `points`."""

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
        """Stroke a circle outline."""

    def fill_circle(
        self,
        cx: float,
        cy: float,
        radius: float,
        *,
        color: str,
        alpha: float,
    ) -> None:
        """Fill a solid disc."""

    def present(self) -> None:
        """Flush the current frame to the display."""


__all__ = ["DrawingSurface", "Point"]
