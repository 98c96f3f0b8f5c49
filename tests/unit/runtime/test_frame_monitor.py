from __future__ import annotations

import pytest

from sacred_geometry.runtime.metrics import FrameRateMonitor


def test_monitor_first_callback_opens_window_without_sample() -> None:
    monitor = FrameRateMonitor(threshold_fps=30.0)

    assert monitor.record_callback(0.0) is None
    assert monitor.snapshot().last_sample is None
    assert monitor.snapshot().callbacks_seen == 1


def test_monitor_reports_stable_window_at_host_refresh() -> None:
    monitor = FrameRateMonitor(threshold_fps=30.0)
    samples = [monitor.record_callback(index * 1000.0 / 60.0) for index in range(61)]
    completed = [sample for sample in samples if sample is not None]

    assert len(completed) == 1
    assert completed[0].fps == pytest.approx(60.0)
    assert completed[0].stable is True


def test_monitor_flags_unstable_window_below_threshold() -> None:
    monitor = FrameRateMonitor(threshold_fps=30.0)
    sample = None
    for index in range(11):
        sample = monitor.record_callback(index * 100.0) or sample

    assert sample is not None
    assert sample.fps == pytest.approx(10.0)
    assert sample.callbacks == 10
    assert sample.stable is False


def test_monitor_rolling_fps_and_reset() -> None:
    monitor = FrameRateMonitor(threshold_fps=30.0, window_ms=100.0, history_size=2)
    for timestamp in (0.0, 50.0, 100.0, 125.0, 150.0, 175.0, 200.0):
        monitor.record_callback(timestamp)
    monitor.record_accepted_frame()

    stats = monitor.snapshot()
    assert stats.rolling_fps == pytest.approx((20.0 + 40.0) / 2)
    assert stats.frames_accepted == 1

    monitor.reset()
    stats = monitor.snapshot()
    assert stats.rolling_fps == 0.0
    assert stats.callbacks_seen == 0
    assert stats.frames_accepted == 0


def test_monitor_rejects_empty_window() -> None:
    with pytest.raises(ValueError):
        FrameRateMonitor(window_ms=0.0)
