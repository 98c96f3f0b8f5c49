from __future__ import annotations

import pytest

from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.rendering.draw_loop import DrawLoop
from sacred_geometry.rendering.recording import RecordingSurface
from sacred_geometry.runtime.scheduler import Scheduler
from sacred_geometry.window.scheduler_host import SchedulerFrameHost


def test_request_frame_fires_after_one_refresh_period() -> None:
    host = SchedulerFrameHost(refresh_hz=50.0)
    stamps: list[float] = []
    host.request_frame(stamps.append)

    assert host.pump(0.01) == 0
    assert host.pump(0.01) == 1
    assert stamps == [pytest.approx(20.0)]


def test_cancel_frame_prevents_callback() -> None:
    host = SchedulerFrameHost(refresh_hz=60.0)
    stamps: list[float] = []
    handle = host.request_frame(stamps.append)

    host.cancel_frame(handle)
    host.pump(0.1)

    assert stamps == []
    assert host.pending_count == 0


def test_refresh_rate_defaults_from_config_and_validates() -> None:
    host = SchedulerFrameHost()

    assert host.refresh_hz == 60.0
    with pytest.raises(ValueError):
        host.set_refresh_hz(0.0)


def test_shared_scheduler_clock() -> None:
    scheduler = Scheduler(start_seconds=1.0)
    host = SchedulerFrameHost(scheduler, refresh_hz=10.0)
    stamps: list[float] = []
    host.request_frame(stamps.append)

    scheduler.advance(0.1)

    assert host.scheduler is scheduler
    assert stamps == [pytest.approx(1100.0)]


def test_draw_loop_on_sixty_hertz_host_is_throttled_to_bundle() -> None:
    host = SchedulerFrameHost(refresh_hz=60.0)
    surface = RecordingSurface()
    loop = DrawLoop(
        host=host,
        surface_provider=lambda: surface,
        variant="pentagon",
        bundle=ParameterBundle(polygon_sides=5, target_frame_interval_ms=100.0),
        size=120.0,
    )
    loop.start()

    host.pump(1.2)

    assert loop.callbacks_seen >= 70
    assert 9 <= loop.frames_accepted <= 13
    assert loop.achieved_fps > 55.0
    assert loop.live_frame_stable is True
    assert surface.present_count == loop.frames_accepted
