"""Device capability probing and tier classification."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from sacred_geometry.api.device import (
    CONSERVATIVE_SNAPSHOT,
    BatteryStatus,
    ConnectionClass,
    DeviceCapability,
    DeviceSnapshot,
    DeviceTier,
    EnvironmentProbe,
)
from sacred_geometry.runtime.config import ProbeConfig, get_geometry_config
from sacred_geometry.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable
from sacred_geometry.runtime.scheduler import Scheduler

_LOG = logging.getLogger("sacred_geometry.probe")

TABLET_MIN_WIDTH = 768
DESKTOP_MIN_WIDTH = 1024
HIGH_END_MIN_WIDTH = 1920
HIGH_END_MIN_HEIGHT = 1080
HIGH_END_MIN_MEMORY_GB = 8.0
HIGH_END_MIN_CORES = 8

CapabilityListener = Callable[[DeviceCapability], None]


def classify_tier(snapshot: DeviceSnapshot) -> DeviceTier:
    """Ordered classification; the first matching rule wins."""
    if snapshot.low_power_mode:
        return DeviceTier.MOBILE
    if snapshot.viewport_width < TABLET_MIN_WIDTH:
        return DeviceTier.MOBILE
    if snapshot.viewport_width < DESKTOP_MIN_WIDTH:
        return DeviceTier.TABLET
    if (
        snapshot.viewport_width >= HIGH_END_MIN_WIDTH
        and snapshot.viewport_height >= HIGH_END_MIN_HEIGHT
        and snapshot.approx_memory_gb >= HIGH_END_MIN_MEMORY_GB
        and snapshot.cpu_cores >= HIGH_END_MIN_CORES
        and snapshot.has_gpu_context
    ):
        return DeviceTier.HIGH_END
    return DeviceTier.DESKTOP


class CapabilityProbe:
    """Caches one classified capability and re-probes on demand or resize.

    `detect()` never raises: every environment reading is guarded on its own
    and a failing reading takes its conservative default.
    """

    def __init__(
        self,
        environment: EnvironmentProbe,
        *,
        scheduler: Scheduler | None = None,
        config: ProbeConfig | None = None,
    ) -> None:
        self._environment = environment
        self._scheduler = scheduler
        self._config = config if config is not None else get_geometry_config().probe
        self._cached: DeviceCapability | None = None
        self._viewport_hint: tuple[int, int] | None = None
        self._listeners: list[CapabilityListener] = []

    @property
    def cached(self) -> DeviceCapability | None:
        return self._cached

    def detect(self) -> DeviceCapability:
        if self._cached is None:
            self._cached = self._probe()
        return self._cached

    def refresh(self) -> DeviceCapability:
        """Force a re-probe and notify listeners when the result changed."""
        previous = self._cached
        current = self._probe()
        self._cached = current
        if previous is not None and previous != current:
            _LOG.info(
                "capability_changed previous=%s current=%s",
                previous.tier.value,
                current.tier.value,
            )
            self._notify(current)
        return current

    def notify_resize(self, width: int, height: int) -> None:
        """Debounce a re-probe using the resized viewport."""
        self._viewport_hint = (max(0, int(width)), max(0, int(height)))
        if self._scheduler is None:
            self.refresh()
            return
        delay_seconds = max(0.0, self._config.resize_debounce_ms) / 1000.0
        self._scheduler.debounce("capability_probe.resize", delay_seconds, self._on_resize_settled)

    def subscribe(self, listener: CapabilityListener) -> Callable[[], None]:
        """Register `listener`; the returned callable unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _on_resize_settled(self) -> None:
        _LOG.debug("resize_settled viewport=%s", self._viewport_hint)
        self.refresh()

    def _notify(self, capability: DeviceCapability) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(capability)
            except RECOVERABLE_RUNTIME_ERRORS:
                log_recoverable(_LOG, "capability_listener_failed", level=logging.WARNING)

    def _probe(self) -> DeviceCapability:
        defaults = CONSERVATIVE_SNAPSHOT
        width, height = self._read_viewport()
        cores = self._read(
            "cpu_cores", self._environment.cpu_cores, defaults.cpu_cores, _valid_cores
        )
        memory = self._read(
            "memory_gb", self._environment.memory_gb, defaults.approx_memory_gb, _valid_memory
        )
        gpu = self._read(
            "gpu_available",
            self._environment.gpu_available,
            defaults.has_gpu_context,
            lambda value: isinstance(value, bool),
        )
        connection = self._read(
            "connection_class",
            self._environment.connection_class,
            defaults.connection_class,
            lambda value: isinstance(value, ConnectionClass),
        )
        battery = self._read(
            "battery",
            self._environment.battery,
            None,
            lambda value: value is None or isinstance(value, BatteryStatus),
        )
        snapshot = DeviceSnapshot(
            viewport_width=width,
            viewport_height=height,
            cpu_cores=int(cores),
            approx_memory_gb=float(memory),
            has_gpu_context=bool(gpu),
            connection_class=connection,
            low_power_mode=self._low_power(battery),
            battery_level=None if battery is None else battery.level,
        )
        capability = DeviceCapability(tier=classify_tier(snapshot), snapshot=snapshot)
        _LOG.debug(
            "capability_detected tier=%s viewport=%dx%d cores=%d memory_gb=%.1f gpu=%s",
            capability.tier.value,
            width,
            height,
            snapshot.cpu_cores,
            snapshot.approx_memory_gb,
            snapshot.has_gpu_context,
        )
        return capability

    def _read_viewport(self) -> tuple[int, int]:
        if self._viewport_hint is not None:
            return self._viewport_hint
        defaults = CONSERVATIVE_SNAPSHOT
        fallback = (defaults.viewport_width, defaults.viewport_height)
        value = self._read("viewport", self._environment.viewport, fallback, _valid_viewport)
        return int(value[0]), int(value[1])

    def _read[T](
        self,
        name: str,
        reader: Callable[[], T],
        default: T,
        valid: Callable[[object], bool],
    ) -> T:
        try:
            value = reader()
        except Exception:  # psutil.Error and glfw.GLFWError derive from Exception
            log_recoverable(_LOG, "probe_field_failed field=%s", name)
            return default
        if not valid(value):
            _LOG.debug("probe_field_invalid field=%s value=%r", name, value)
            return default
        return value

    def _low_power(self, battery: BatteryStatus | None) -> bool | None:
        if self._config.low_power_override is not None:
            return self._config.low_power_override
        if battery is None or battery.level is None:
            return None
        if battery.charging:
            return False
        return battery.level < self._config.low_battery_threshold


def _valid_cores(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _valid_memory(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def _valid_viewport(value: object) -> bool:
    if not isinstance(value, tuple) or len(value) != 2:
        return False
    return all(isinstance(item, int) and not isinstance(item, bool) and item > 0 for item in value)


__all__ = ["CapabilityListener", "CapabilityProbe", "classify_tier"]
