"""Adaptive sacred-geometry rendering runtime."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sacred_geometry.api.advisory import AdvisoryOptimizer
    from sacred_geometry.api.device import EnvironmentProbe
    from sacred_geometry.api.frame_host import FrameHost
    from sacred_geometry.api.request import RenderRequest
    from sacred_geometry.rendering.draw_loop import SurfaceProvider
    from sacred_geometry.runtime.scheduler import Scheduler
    from sacred_geometry.runtime.selector import AdaptiveSelector


def mount(
    request: "RenderRequest",
    *,
    host: "FrameHost",
    surface_provider: "SurfaceProvider",
    environment: "EnvironmentProbe | None" = None,
    scheduler: "Scheduler | None" = None,
    advisory: "AdvisoryOptimizer | None" = None,
) -> "AdaptiveSelector":
    """Compose probe and selector for one request and mount its renderer."""
    from sacred_geometry.runtime.environment import SystemEnvironmentProbe
    from sacred_geometry.runtime.logging import setup_geometry_logging
    from sacred_geometry.runtime.probe import CapabilityProbe
    from sacred_geometry.runtime.selector import AdaptiveSelector

    setup_geometry_logging()
    probe = CapabilityProbe(
        environment if environment is not None else SystemEnvironmentProbe(),
        scheduler=scheduler,
    )
    selector = AdaptiveSelector(
        probe=probe,
        host=host,
        surface_provider=surface_provider,
        advisory=advisory,
    )
    selector.select(request)
    return selector


__all__ = ["mount"]
