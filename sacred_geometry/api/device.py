"""Device capability contracts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class DeviceTier(Enum):
    """Coarse device-capability class, ordered from least to most capable."""

    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"
    HIGH_END = "high-end"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def downgraded(self) -> "DeviceTier":
        """Return the tier one step down; mobile floors."""
        return _TIER_ORDER[max(0, self.rank - 1)]

    @classmethod
    def parse(cls, raw: object, default: "DeviceTier") -> "DeviceTier":
        if isinstance(raw, DeviceTier):
            return raw
        value = str(raw).strip().lower().replace("_", "-")
        for tier in cls:
            if tier.value == value:
                return tier
        return default


_TIER_ORDER: tuple[DeviceTier, ...] = (
    DeviceTier.MOBILE,
    DeviceTier.TABLET,
    DeviceTier.DESKTOP,
    DeviceTier.HIGH_END,
)


class ConnectionClass(Enum):
    FAST = "fast"
    SLOW = "slow"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> "ConnectionClass":
        value = str(raw).strip().lower()
        if value in {"slow", "slow-2g", "2g", "3g"}:
            return cls.SLOW
        if value in {"fast", "4g", "5g", "wifi", "ethernet"}:
            return cls.FAST
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class BatteryStatus:
    """Battery reading; `level` in 0..1."""

    level: float | None
    charging: bool | None


@dataclass(frozen=True, slots=True)
class DeviceSnapshot:
    """Raw environment readings the tier classification is computed from."""

    viewport_width: int
    viewport_height: int
    cpu_cores: int
    approx_memory_gb: float
    has_gpu_context: bool
    connection_class: ConnectionClass = ConnectionClass.UNKNOWN
    low_power_mode: bool | None = None
    battery_level: float | None = None

    def to_payload(self) -> dict[str, object]:
        return {
            "viewport_width": self.viewport_width,
            "viewport_height": self.viewport_height,
            "cpu_cores": self.cpu_cores,
            "approx_memory_gb": self.approx_memory_gb,
            "has_gpu_context": self.has_gpu_context,
            "connection_class": self.connection_class.value,
            "low_power_mode": self.low_power_mode,
            "battery_level": self.battery_level,
        }


CONSERVATIVE_SNAPSHOT = DeviceSnapshot(
    viewport_width=375,
    viewport_height=667,
    cpu_cores=2,
    approx_memory_gb=2.0,
    has_gpu_context=False,
    connection_class=ConnectionClass.UNKNOWN,
    low_power_mode=None,
    battery_level=None,
)


@dataclass(frozen=True, slots=True)
class DeviceCapability:
    """Classified tier together with the readings that produced it."""

    tier: DeviceTier
    snapshot: DeviceSnapshot

    @property
    def cpu_cores(self) -> int:
        return self.snapshot.cpu_cores

    @property
    def approx_memory_gb(self) -> float:
        return self.snapshot.approx_memory_gb

    @property
    def has_gpu_context(self) -> bool:
        return self.snapshot.has_gpu_context

    @property
    def connection_class(self) -> ConnectionClass:
        return self.snapshot.connection_class

    @property
    def low_power_mode(self) -> bool:
        return bool(self.snapshot.low_power_mode)


class EnvironmentProbe(Protocol):
    """Best-effort runtime introspection; any method may raise."""

    def viewport(self) -> tuple[int, int]:
        """Return logical viewport (width, height) in pixels."""

    def cpu_cores(self) -> int:
        """Return logical core count."""

    def memory_gb(self) -> float:
        """Return approximate total device memory in GB."""

    def gpu_available(self) -> bool:
        """Return whether a GPU-capable drawing context can be obtained."""

    def connection_class(self) -> ConnectionClass:
        """Return coarse network connection class."""

    def battery(self) -> BatteryStatus | None:
        """Return battery status, or None when the device has no battery."""


__all__ = [
    "BatteryStatus",
    "CONSERVATIVE_SNAPSHOT",
    "ConnectionClass",
    "DeviceCapability",
    "DeviceSnapshot",
    "DeviceTier",
    "EnvironmentProbe",
]
