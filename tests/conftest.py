from __future__ import annotations

import math
from collections.abc import Iterable

import pytest

from sacred_geometry.api.device import ConnectionClass, DeviceSnapshot
from sacred_geometry.api.frame_host import FrameCallback
from sacred_geometry.rendering.recording import DrawCommand, RecordingSurface
from sacred_geometry.runtime.config import load_geometry_config, set_geometry_config
from sacred_geometry.runtime.environment import StaticEnvironmentProbe
from sacred_geometry.runtime.probe import CapabilityProbe
from sacred_geometry.runtime.scheduler import Scheduler

PHONE_SNAPSHOT = DeviceSnapshot(
    viewport_width=375,
    viewport_height=667,
    cpu_cores=2,
    approx_memory_gb=2.0,
    has_gpu_context=False,
    connection_class=ConnectionClass.SLOW,
)
TABLET_SNAPSHOT = DeviceSnapshot(
    viewport_width=800,
    viewport_height=1280,
    cpu_cores=4,
    approx_memory_gb=4.0,
    has_gpu_context=False,
    connection_class=ConnectionClass.FAST,
)
DESKTOP_SNAPSHOT = DeviceSnapshot(
    viewport_width=1440,
    viewport_height=900,
    cpu_cores=8,
    approx_memory_gb=8.0,
    has_gpu_context=False,
    connection_class=ConnectionClass.FAST,
)
WORKSTATION_SNAPSHOT = DeviceSnapshot(
    viewport_width=2560,
    viewport_height=1440,
    cpu_cores=12,
    approx_memory_gb=16.0,
    has_gpu_context=True,
    connection_class=ConnectionClass.FAST,
)


@pytest.fixture(autouse=True)
def _isolated_geometry_config() -> None:
    set_geometry_config(load_geometry_config(env={}))


class ManualFrameHost:
    """Frame host whose callbacks fire only when a test says so."""

    def __init__(self) -> None:
        self.pending: dict[int, FrameCallback] = {}
        self.cancelled: list[int] = []
        self.requests = 0
        self._next_handle = 1

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.pending[handle] = callback
        self.requests += 1
        return handle

    def cancel_frame(self, handle: int) -> None:
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def fire(self, timestamp_ms: float) -> int:
        callbacks = list(self.pending.values())
        self.pending.clear()
        for callback in callbacks:
            callback(timestamp_ms)
        return len(callbacks)

    def run(self, timestamps: Iterable[float]) -> None:
        for timestamp in timestamps:
            self.fire(timestamp)


class FailingSurface(RecordingSurface):
    """Recording surface that raises once `fail_after` frames were presented."""

    def __init__(self, fail_after: int = 0) -> None:
        super().__init__()
        self.fail_after = fail_after

    def clear(self) -> None:
        if self.present_count >= self.fail_after:
            raise RuntimeError("device lost")
        super().clear()


def make_probe(
    snapshot: DeviceSnapshot,
    *,
    failing: Iterable[str] = (),
    scheduler: Scheduler | None = None,
    battery_charging: bool | None = None,
) -> tuple[CapabilityProbe, StaticEnvironmentProbe]:
    environment = StaticEnvironmentProbe(
        snapshot, failing=failing, battery_charging=battery_charging
    )
    return CapabilityProbe(environment, scheduler=scheduler), environment


def polylines(commands: Iterable[DrawCommand]) -> list[DrawCommand]:
    return [command for command in commands if command.kind == "polyline"]


def distance(first: tuple[float, float], second: tuple[float, float]) -> float:
    return math.hypot(first[0] - second[0], first[1] - second[1])
