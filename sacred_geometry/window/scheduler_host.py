"""Deterministic frame host driven by the runtime scheduler clock."""

from __future__ import annotations

from sacred_geometry.api.frame_host import FrameCallback
from sacred_geometry.runtime.config import get_geometry_config
from sacred_geometry.runtime.scheduler import Scheduler


class SchedulerFrameHost:
    """Fires frame callbacks at a fixed refresh rate on a scheduler.

    Nothing happens until the owner advances the scheduler, which makes this
    host suitable for headless runs and tests.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        *,
        refresh_hz: float | None = None,
    ) -> None:
        self._scheduler = scheduler if scheduler is not None else Scheduler()
        if refresh_hz is None:
            refresh_hz = get_geometry_config().loop.host_refresh_hz
        self._refresh_hz = 60.0
        self.set_refresh_hz(refresh_hz)

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def refresh_hz(self) -> float:
        return self._refresh_hz

    @property
    def pending_count(self) -> int:
        return self._scheduler.queued_task_count

    def set_refresh_hz(self, refresh_hz: float) -> None:
        """Change the cadence for callbacks requested from now on."""
        if refresh_hz <= 0.0:
            raise ValueError("refresh_hz must be > 0")
        self._refresh_hz = float(refresh_hz)

    def request_frame(self, callback: FrameCallback) -> int:
        scheduler = self._scheduler
        return scheduler.call_later(1.0 / self._refresh_hz, lambda: callback(scheduler.now_ms))

    def cancel_frame(self, handle: int) -> None:
        self._scheduler.cancel(handle)

    def pump(self, seconds: float) -> int:
        """Advance the clock by `seconds`, running every callback that falls due."""
        return self._scheduler.advance(seconds)


__all__ = ["SchedulerFrameHost"]
