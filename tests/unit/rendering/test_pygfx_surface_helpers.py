from __future__ import annotations

import pytest

from sacred_geometry.rendering.pygfx_surface import circle_points, rgba
from tests.conftest import distance


def test_rgba_parses_hex_and_clamps_alpha() -> None:
    assert rgba("#ff8000", 0.5) == pytest.approx((1.0, 128 / 255.0, 0.0, 0.5))
    assert rgba("000000", 3.0)[3] == 1.0
    assert rgba("#ffffff", -1.0)[3] == 0.0


def test_rgba_rejects_short_colors() -> None:
    with pytest.raises(ValueError):
        rgba("#fff", 1.0)


def test_circle_points_lie_on_radius() -> None:
    points = circle_points(10.0, 20.0, 5.0, segments=12)

    assert len(points) == 12
    assert points[0] == pytest.approx((15.0, 20.0))
    assert all(distance(point, (10.0, 20.0)) == pytest.approx(5.0) for point in points)
