"""Public contracts shared by the geometry runtime and its hosts."""

from sacred_geometry.api.advisory import (
    AdvisoryOptimizer,
    AdvisoryResult,
    AdvisoryUnavailableError,
)
from sacred_geometry.api.bundle import ComplexityLevel, ParameterBundle, clamp_bundle
from sacred_geometry.api.device import (
    BatteryStatus,
    CONSERVATIVE_SNAPSHOT,
    ConnectionClass,
    DeviceCapability,
    DeviceSnapshot,
    DeviceTier,
    EnvironmentProbe,
)
from sacred_geometry.api.frame_host import FrameCallback, FrameHost
from sacred_geometry.api.logging import GeometryLoggingConfig
from sacred_geometry.api.request import GEOMETRY_VARIANTS, Intensity, Position, RenderRequest
from sacred_geometry.api.surface import DrawingSurface, Point

__all__ = [
    "AdvisoryOptimizer",
    "AdvisoryResult",
    "AdvisoryUnavailableError",
    "BatteryStatus",
    "CONSERVATIVE_SNAPSHOT",
    "ComplexityLevel",
    "ConnectionClass",
    "DeviceCapability",
    "DeviceSnapshot",
    "DeviceTier",
    "DrawingSurface",
    "EnvironmentProbe",
    "FrameCallback",
    "FrameHost",
    "GEOMETRY_VARIANTS",
    "GeometryLoggingConfig",
    "Intensity",
    "ParameterBundle",
    "Point",
    "Position",
    "RenderRequest",
    "clamp_bundle",
]
