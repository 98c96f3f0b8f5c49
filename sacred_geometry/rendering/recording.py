"""Headless drawing surface that records draw commands."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from sacred_geometry.api.surface import Point


@dataclass(frozen=True, slots=True)
class DrawCommand:
    """One recorded primitive."""

    kind: str
    color: str
    alpha: float
    width: float = 0.0
    points: tuple[Point, ...] = ()
    closed: bool = False
    center: Point | None = None
    radius: float = 0.0

    def to_payload(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "color": self.color,
            "alpha": self.alpha,
            "width": self.width,
            "points": [list(point) for point in self.points],
            "closed": self.closed,
            "center": None if self.center is None else list(self.center),
            "radius": self.radius,
        }


@dataclass(slots=True)
class RecordingSurface:
    """In-memory surface used for tests and headless rendering.

    `commands` holds the frame being drawn; `present()` moves a copy of it to
    `frames`.
    """

    width: float = 400.0
    height: float = 400.0
    commands: list[DrawCommand] = field(default_factory=list)
    frames: list[tuple[DrawCommand, ...]] = field(default_factory=list)
    clear_count: int = 0

    @property
    def size(self) -> tuple[float, float]:
        return (self.width, self.height)

    @property
    def present_count(self) -> int:
        return len(self.frames)

    @property
    def last_frame(self) -> tuple[DrawCommand, ...]:
        return self.frames[-1] if self.frames else ()

    def resize(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)

    def clear(self) -> None:
        self.commands.clear()
        self.clear_count += 1

    def stroke_polyline(
        self,
        points: Sequence[Point],
        *,
        closed: bool,
        color: str,
        alpha: float,
        width: float,
    ) -> None:
        self.commands.append(
            DrawCommand(
                kind="polyline",
                color=color,
                alpha=float(alpha),
                width=float(width),
                points=tuple((float(x), float(y)) for x, y in points),
                closed=bool(closed),
            )
        )

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
        self.commands.append(
            DrawCommand(
                kind="circle",
                color=color,
                alpha=float(alpha),
                width=float(width),
                center=(float(cx), float(cy)),
                radius=float(radius),
            )
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
        self.commands.append(
            DrawCommand(
                kind="dot",
                color=color,
                alpha=float(alpha),
                center=(float(cx), float(cy)),
                radius=float(radius),
            )
        )

    def present(self) -> None:
        self.frames.append(tuple(self.commands))

    def to_payload(self) -> dict[str, object]:
        return {
            "size": list(self.size),
            "frames": [[command.to_payload() for command in frame] for frame in self.frames],
        }


__all__ = ["DrawCommand", "RecordingSurface"]
