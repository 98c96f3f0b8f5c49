from __future__ import annotations

from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.diagnostics.json_codec import dumps_bytes, dumps_text, loads
from sacred_geometry.rendering.patterns import PatternLibrary
from sacred_geometry.rendering.recording import RecordingSurface
from tests.conftest import PHONE_SNAPSHOT


def test_dumps_text_compact() -> None:
    raw = dumps_text({"k": "v", "n": 1, "arr": [1, 2, 3]})

    assert isinstance(raw, str)
    assert '"k":"v"' in raw


def test_dumps_bytes_pretty_and_sorted() -> None:
    text = dumps_bytes({"b": 1, "a": {"c": 2}}, pretty=True, sort_keys=True).decode("utf-8")

    assert "\n" in text
    assert text.index('"a"') < text.index('"b"')


def test_objects_with_payload_serialize_through_it() -> None:
    decoded = loads(dumps_text({"device": PHONE_SNAPSHOT, "tags": {"b", "a"}, 3: object()}))

    assert decoded["device"]["connection_class"] == "slow"
    assert decoded["tags"] == ["a", "b"]
    assert decoded["3"].startswith("<object object")


def test_recorded_frames_export_as_json() -> None:
    surface = RecordingSurface(width=200.0, height=200.0)
    surface.clear()
    PatternLibrary().draw(
        surface, "triangle", (100.0, 100.0), 40.0, 0.0, ParameterBundle(polygon_sides=3)
    )
    surface.present()

    decoded = loads(dumps_bytes(surface.to_payload()))

    assert decoded["size"] == [200.0, 200.0]
    assert decoded["frames"][0][0]["kind"] == "polyline"
    assert len(decoded["frames"][0][0]["points"]) == 3
