"""Advisory optimizer contracts."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.api.device import DeviceSnapshot


class AdvisoryUnavailableError(RuntimeError):
    """Raised inside the advisory layer when no usable suggestion exists."""


@dataclass(frozen=True, slots=True)
class AdvisoryResult:
    """Non-authoritative tuning hint."""

    bundle: ParameterBundle
    confidence: float = 0.5
    rationale: str = ""
    source: str = "unknown"

    def __post_init__(self) -> None:
        if isinstance(self.bundle, Mapping):
            object.__setattr__(self, "bundle", ParameterBundle.from_mapping(self.bundle))
        elif not isinstance(self.bundle, ParameterBundle):
            raise TypeError(f"unsupported advisory bundle: {type(self.bundle).__name__}")
        try:
            confidence = float(self.confidence)
        except (TypeError, ValueError):
            confidence = 0.0
        if not math.isfinite(confidence):
            confidence = 0.0
        object.__setattr__(self, "confidence", max(0.0, min(1.0, confidence)))
        object.__setattr__(self, "rationale", str(self.rationale))
        object.__setattr__(self, "source", str(self.source))


class AdvisoryOptimizer(Protocol):
    """Optional external service suggesting alternate parameter bundles."""

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        """Return a suggestion for `snapshot`; may raise or hang."""


__all__ = ["AdvisoryOptimizer", "AdvisoryResult", "AdvisoryUnavailableError"]
