"""Deferred, repeating and debounced callback scheduler.

The scheduler owns a virtual clock that only moves when the host calls
`advance()` or `run_due()`. That keeps frame hosts and resize debouncing
deterministic under test while a real host can drive it from wall time.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from heapq import heappop, heappush

TaskCallback = Callable[[], None]


@dataclass(slots=True)
class _ScheduledCall:
    task_id: int
    due_seconds: float
    callback: TaskCallback
    interval_seconds: float | None = None
    cancelled: bool = False


class Scheduler:
    """Time-ordered callback queue over a host-advanced clock."""

    def __init__(self, *, start_seconds: float = 0.0) -> None:
        self._now_seconds = float(start_seconds)
        self._next_task_id = 1
        self._tasks: dict[int, _ScheduledCall] = {}
        self._queue: list[tuple[float, int]] = []
        self._debounced: dict[str, int] = {}

    @property
    def now_seconds(self) -> float:
        return self._now_seconds

    @property
    def now_ms(self) -> float:
        return self._now_seconds * 1000.0

    @property
    def queued_task_count(self) -> int:
        """Return count of active queued tasks."""
        return sum(1 for task in self._tasks.values() if not task.cancelled)

    def call_later(self, delay_seconds: float, callback: TaskCallback) -> int:
        """Schedule a one-shot callback after delay."""
        if delay_seconds < 0.0:
            raise ValueError("delay_seconds must be >= 0")
        due_seconds = self._now_seconds + delay_seconds
        return self._schedule(due_seconds=due_seconds, callback=callback, interval_seconds=None)

    def call_every(self, interval_seconds: float, callback: TaskCallback) -> int:
        """Schedule a recurring callback at fixed interval."""
        if interval_seconds <= 0.0:
            raise ValueError("interval_seconds must be > 0")
        due_seconds = self._now_seconds + interval_seconds
        return self._schedule(
            due_seconds=due_seconds,
            callback=callback,
            interval_seconds=interval_seconds,
        )

    def debounce(self, key: str, delay_seconds: float, callback: TaskCallback) -> int:
        """Schedule `callback` after `delay_seconds`, replacing any pending call for `key`."""
        previous = self._debounced.pop(key, None)
        if previous is not None:
            self.cancel(previous)

        def _fire() -> None:
            if self._debounced.get(key) == task_id:
                del self._debounced[key]
            callback()

        task_id = self.call_later(delay_seconds, _fire)
        self._debounced[key] = task_id
        return task_id

    def cancel(self, task_id: int) -> None:
        """Cancel a scheduled task if it exists."""
        task = self._tasks.get(task_id)
        if task is not None:
            task.cancelled = True

    def is_pending(self, task_id: int) -> bool:
        task = self._tasks.get(task_id)
        return task is not None and not task.cancelled

    def advance(self, delta_seconds: float) -> int:
        """Advance scheduler clock and run due callbacks."""
        if delta_seconds < 0.0:
            raise ValueError("delta_seconds must be >= 0")
        return self.run_due(self._now_seconds + delta_seconds)

    def run_due(self, now_seconds: float) -> int:
        """Run callbacks due at or before `now_seconds`.

        Callbacks scheduled with a zero delay from inside a running callback
        are executed in the same pass.
        """
        if now_seconds < self._now_seconds:
            raise ValueError("now_seconds cannot move backwards")
        target_seconds = now_seconds
        executed = 0
        while self._queue and self._queue[0][0] <= target_seconds:
            due_seconds, task_id = heappop(self._queue)
            task = self._tasks.get(task_id)
            if task is None or task.cancelled:
                self._tasks.pop(task_id, None)
                continue
            self._now_seconds = max(self._now_seconds, due_seconds)
            task.callback()
            executed += 1
            if task.cancelled or task.interval_seconds is None:
                self._tasks.pop(task_id, None)
                continue
            task.due_seconds += task.interval_seconds
            heappush(self._queue, (task.due_seconds, task.task_id))
        self._now_seconds = target_seconds
        return executed

    def _schedule(
        self,
        *,
        due_seconds: float,
        callback: TaskCallback,
        interval_seconds: float | None,
    ) -> int:
        task_id = self._next_task_id
        self._next_task_id += 1
        task = _ScheduledCall(
            task_id=task_id,
            due_seconds=due_seconds,
            callback=callback,
            interval_seconds=interval_seconds,
        )
        self._tasks[task_id] = task
        heappush(self._queue, (due_seconds, task_id))
        return task_id


__all__ = ["Scheduler", "TaskCallback"]
