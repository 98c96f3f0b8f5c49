"""Environment probe implementations."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from importlib import import_module
from typing import Any

from sacred_geometry.api.device import BatteryStatus, ConnectionClass, DeviceSnapshot
from sacred_geometry.runtime.config import ProbeConfig, get_geometry_config
from sacred_geometry.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable

_LOG = logging.getLogger("sacred_geometry.probe")
_BYTES_PER_GB = 1024.0 * 1024.0 * 1024.0
_FAST_LINK_MBPS = 100
_RENDERCANVAS_GLFW = "rendercanvas.glfw"


@dataclass(slots=True)
class SystemEnvironmentProbe:
    """Introspects the local machine through psutil, glfw and wgpu.

    Each reading may raise; the capability probe guards every call and
    substitutes its conservative default.
    """

    config: ProbeConfig | None = None
    psutil_mod: Any | None = None
    glfw_mod: Any | None = None
    _gpu_available: bool | None = field(default=None, init=False)
    _monitor_size: tuple[int, int] | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.config is None:
            self.config = get_geometry_config().probe

    def viewport(self) -> tuple[int, int]:
        override = self._config().viewport_override
        if override is not None:
            return override
        if self._monitor_size is None:
            self._monitor_size = self._read_primary_monitor()
        return self._monitor_size

    def cpu_cores(self) -> int:
        count = self._psutil().cpu_count(logical=True)
        if not count:
            raise RuntimeError("cpu count unavailable")
        return int(count)

    def memory_gb(self) -> float:
        total = self._psutil().virtual_memory().total
        return float(total) / _BYTES_PER_GB

    def gpu_available(self) -> bool:
        if self._gpu_available is None:
            wgpu = import_module("wgpu")
            adapter = wgpu.gpu.request_adapter_sync(power_preference="high-performance")
            self._gpu_available = adapter is not None
        return self._gpu_available

    def connection_class(self) -> ConnectionClass:
        override = self._config().connection_override
        if override is not None:
            return ConnectionClass.parse(override)
        stats = self._psutil().net_if_stats()
        speeds = [
            int(getattr(stat, "speed", 0) or 0)
            for name, stat in stats.items()
            if getattr(stat, "isup", False) and not name.lower().startswith("lo")
        ]
        known = [speed for speed in speeds if speed > 0]
        if not known:
            return ConnectionClass.UNKNOWN
        return ConnectionClass.FAST if max(known) >= _FAST_LINK_MBPS else ConnectionClass.SLOW

    def battery(self) -> BatteryStatus | None:
        sensors_battery = getattr(self._psutil(), "sensors_battery", None)
        if not callable(sensors_battery):
            return None
        reading = sensors_battery()
        if reading is None:
            return None
        percent = getattr(reading, "percent", None)
        plugged = getattr(reading, "power_plugged", None)
        level = float(percent) / 100.0 if isinstance(percent, (int, float)) else None
        return BatteryStatus(level=level, charging=plugged if isinstance(plugged, bool) else None)

    def _config(self) -> ProbeConfig:
        if self.config is None:
            self.config = get_geometry_config().probe
        return self.config

    def _read_primary_monitor(self) -> tuple[int, int]:
        glfw = self.glfw_mod if self.glfw_mod is not None else import_module("glfw")
        # rendercanvas owns the glfw lifetime once its backend is loaded
        owns_glfw = _RENDERCANVAS_GLFW not in sys.modules
        if not glfw.init():
            raise RuntimeError("glfw initialization failed")
        try:
            monitor = glfw.get_primary_monitor()
            if not monitor:
                raise RuntimeError("no primary monitor")
            mode = glfw.get_video_mode(monitor)
            if mode is None:
                raise RuntimeError("primary monitor reported no video mode")
            return int(mode.size.width), int(mode.size.height)
        finally:
            if owns_glfw:
                glfw.terminate()

    def _psutil(self) -> Any:
        if self.psutil_mod is None:
            try:
                self.psutil_mod = import_module("psutil")
            except RECOVERABLE_RUNTIME_ERRORS:
                log_recoverable(_LOG, "probe_psutil_unavailable")
                raise
        return self.psutil_mod


class StaticEnvironmentProbe:
    """Deterministic probe answering from a fixed snapshot.

    Field names listed in `failing` raise `RuntimeError`, which lets tests
    exercise the degrade-to-default path for individual readings.
    """

    def __init__(
        self,
        snapshot: DeviceSnapshot,
        *,
        failing: Iterable[str] = (),
        battery_charging: bool | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._failing = frozenset(failing)
        self._battery_charging = battery_charging
        self.calls: list[str] = []

    @property
    def snapshot(self) -> DeviceSnapshot:
        return self._snapshot

    def set_snapshot(self, snapshot: DeviceSnapshot) -> None:
        self._snapshot = snapshot

    def viewport(self) -> tuple[int, int]:
        self._enter("viewport")
        return self._snapshot.viewport_width, self._snapshot.viewport_height

    def cpu_cores(self) -> int:
        self._enter("cpu_cores")
        return self._snapshot.cpu_cores

    def memory_gb(self) -> float:
        self._enter("memory_gb")
        return self._snapshot.approx_memory_gb

    def gpu_available(self) -> bool:
        self._enter("gpu_available")
        return self._snapshot.has_gpu_context

    def connection_class(self) -> ConnectionClass:
        self._enter("connection_class")
        return self._snapshot.connection_class

    def battery(self) -> BatteryStatus | None:
        self._enter("battery")
        if self._snapshot.low_power_mode is None and self._snapshot.battery_level is None:
            return None
        level = self._snapshot.battery_level
        if level is None:
            level = 0.05 if self._snapshot.low_power_mode else 1.0
        charging = self._battery_charging
        if charging is None:
            charging = not bool(self._snapshot.low_power_mode)
        return BatteryStatus(level=level, charging=charging)

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self._failing:
            raise RuntimeError(f"probe field unavailable: {name}")


__all__ = ["StaticEnvironmentProbe", "SystemEnvironmentProbe"]
