"""Frame host adapters."""

from sacred_geometry.window.rendercanvas_host import RenderCanvasFrameHost, create_canvas
from sacred_geometry.window.scheduler_host import SchedulerFrameHost

__all__ = ["RenderCanvasFrameHost", "SchedulerFrameHost", "create_canvas"]
