"""Geometry runtime services."""

from sacred_geometry.runtime.config import (
    GeometryConfig,
    get_geometry_config,
    initialize_geometry_config,
    load_geometry_config,
    set_geometry_config,
)
from sacred_geometry.runtime.environment import StaticEnvironmentProbe, SystemEnvironmentProbe
from sacred_geometry.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable
from sacred_geometry.runtime.logging import (
    configure_geometry_logging,
    load_logging_config,
    setup_geometry_logging,
)
from sacred_geometry.runtime.metrics import FrameRateMonitor, FrameRateSample, FrameStats
from sacred_geometry.runtime.policy import POLICY_MAX_FRACTAL_DEPTH, PerformanceTierPolicy
from sacred_geometry.runtime.probe import CapabilityProbe, classify_tier
from sacred_geometry.runtime.scheduler import Scheduler

__all__ = [
    "CapabilityProbe",
    "FrameRateMonitor",
    "FrameRateSample",
    "FrameStats",
    "GeometryConfig",
    "POLICY_MAX_FRACTAL_DEPTH",
    "PerformanceTierPolicy",
    "RECOVERABLE_RUNTIME_ERRORS",
    "Scheduler",
    "StaticEnvironmentProbe",
    "SystemEnvironmentProbe",
    "classify_tier",
    "configure_geometry_logging",
    "get_geometry_config",
    "initialize_geometry_config",
    "load_geometry_config",
    "load_logging_config",
    "log_recoverable",
    "set_geometry_config",
    "setup_geometry_logging",
]
