"""Optional advisory optimizers that suggest alternate parameter bundles."""

from sacred_geometry.advisory.blend import BlendedAdvisoryOptimizer, WeightedSource, blend_results
from sacred_geometry.advisory.http import HttpAdvisoryOptimizer, parse_advisory_payload
from sacred_geometry.advisory.static import StaticAdvisoryOptimizer

__all__ = [
    "BlendedAdvisoryOptimizer",
    "HttpAdvisoryOptimizer",
    "StaticAdvisoryOptimizer",
    "WeightedSource",
    "blend_results",
    "parse_advisory_payload",
]
