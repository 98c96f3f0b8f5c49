"""Pattern drawing and renderer loops."""

from sacred_geometry.rendering.draw_loop import DrawLoop, DrawLoopState
from sacred_geometry.rendering.fallback import FallbackFrame, FallbackLoop, FallbackRenderer
from sacred_geometry.rendering.patterns import PatternLibrary, known_variants, natural_sides
from sacred_geometry.rendering.recording import DrawCommand, RecordingSurface
from sacred_geometry.rendering.viewport import place

__all__ = [
    "DrawCommand",
    "DrawLoop",
    "DrawLoopState",
    "FallbackFrame",
    "FallbackLoop",
    "FallbackRenderer",
    "PatternLibrary",
    "RecordingSurface",
    "known_variants",
    "natural_sides",
    "place",
]
