"""Frame-rate monitoring for the throttled draw loop."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FrameRateSample:
    """Achieved host callback rate over one completed monitor window."""

    fps: float
    window_ms: float
    callbacks: int
    stable: bool


@dataclass(frozen=True, slots=True)
class FrameStats:
    """Read-only snapshot for logging and diagnostics."""

    last_sample: FrameRateSample | None
    rolling_fps: float
    frames_accepted: int
    callbacks_seen: int


class FrameRateMonitor:
    """Counts host callbacks and reports fps once per monitor window.

    Every host callback counts, not just accepted draws: the gate makes a
    mobile loop draw at ~10 fps by design, while stability is a property of
    the host refresh cadence.
    """

    def __init__(
        self,
        *,
        threshold_fps: float = 30.0,
        window_ms: float = 1000.0,
        history_size: int = 8,
    ) -> None:
        if window_ms <= 0.0:
            raise ValueError("window_ms must be > 0")
        self._threshold_fps = max(0.0, float(threshold_fps))
        self._window_ms = float(window_ms)
        self._history: deque[FrameRateSample] = deque(maxlen=max(1, int(history_size)))
        self._window_start_ms: float | None = None
        self._window_callbacks = 0
        self._callbacks_seen = 0
        self._frames_accepted = 0

    @property
    def threshold_fps(self) -> float:
        return self._threshold_fps

    def reset(self) -> None:
        self._history.clear()
        self._window_start_ms = None
        self._window_callbacks = 0
        self._callbacks_seen = 0
        self._frames_accepted = 0

    def record_callback(self, timestamp_ms: float) -> FrameRateSample | None:
        """Count one host callback; return a sample when a window completes."""
        self._callbacks_seen += 1
        if self._window_start_ms is None:
            self._window_start_ms = float(timestamp_ms)
            self._window_callbacks = 0
            return None
        self._window_callbacks += 1
        elapsed_ms = float(timestamp_ms) - self._window_start_ms
        if elapsed_ms < self._window_ms:
            return None
        fps = self._window_callbacks * 1000.0 / elapsed_ms
        sample = FrameRateSample(
            fps=fps,
            window_ms=elapsed_ms,
            callbacks=self._window_callbacks,
            stable=fps >= self._threshold_fps,
        )
        self._history.append(sample)
        self._window_start_ms = float(timestamp_ms)
        self._window_callbacks = 0
        return sample

    def record_accepted_frame(self) -> None:
        self._frames_accepted += 1

    def snapshot(self) -> FrameStats:
        rolling = (
            sum(sample.fps for sample in self._history) / len(self._history)
            if self._history
            else 0.0
        )
        return FrameStats(
            last_sample=self._history[-1] if self._history else None,
            rolling_fps=rolling,
            frames_accepted=self._frames_accepted,
            callbacks_seen=self._callbacks_seen,
        )


__all__ = ["FrameRateMonitor", "FrameRateSample", "FrameStats"]
