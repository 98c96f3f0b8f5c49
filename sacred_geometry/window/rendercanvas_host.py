"""Frame host backed by rendercanvas draw events."""

from __future__ import annotations

import logging
from collections.abc import Callable
from time import perf_counter
from typing import Any

from sacred_geometry.api.frame_host import FrameCallback
from sacred_geometry.runtime.errors import RECOVERABLE_RUNTIME_ERRORS, log_recoverable

_LOG = logging.getLogger("sacred_geometry.window")

ResizeListener = Callable[[int, int], None]


class RenderCanvasFrameHost:
    """Turns rendercanvas draw callbacks into per-refresh frame callbacks.

    The canvas runs in on-demand mode: every `request_frame` asks for one
    more draw, and all callbacks pending at draw time fire with the same
    millisecond timestamp.
    """

    def __init__(self, canvas: Any, *, clock: Callable[[], float] = perf_counter) -> None:
        self._canvas = canvas
        self._clock = clock
        self._pending: dict[int, FrameCallback] = {}
        self._next_handle = 1
        self._draw_bound = False

    @property
    def canvas(self) -> Any:
        return self._canvas

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        if not self._draw_bound:
            self._canvas.request_draw(self._on_draw)
            self._draw_bound = True
        else:
            self._canvas.request_draw()
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def bind_resize(self, listener: ResizeListener) -> bool:
        """Forward canvas resize events as logical (width, height)."""
        add_handler = getattr(self._canvas, "add_event_handler", None)
        if not callable(add_handler):
            return False

        def _on_resize(event: object) -> None:
            size = _event_size(event)
            if size is not None:
                listener(*size)

        try:
            add_handler(_on_resize, "resize")
        except RECOVERABLE_RUNTIME_ERRORS:
            log_recoverable(_LOG, "resize_event_binding_failed")
            return False
        return True

    def _on_draw(self) -> None:
        if not self._pending:
            return
        timestamp_ms = self._clock() * 1000.0
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(timestamp_ms)


def _event_size(event: object) -> tuple[int, int] | None:
    if not isinstance(event, dict):
        return None
    width = event.get("width")
    height = event.get("height")
    if not isinstance(width, (int, float)) or not isinstance(height, (int, float)):
        return None
    return int(width), int(height)


def create_canvas(*, width: int = 640, height: int = 640, title: str = "Sacred Geometry") -> Any:
    """Create a rendercanvas window through the auto-selected backend."""
    import rendercanvas.auto as rc_auto

    canvas_cls = getattr(rc_auto, "RenderCanvas", None)
    if canvas_cls is None:
        raise RuntimeError("rendercanvas.auto did not expose RenderCanvas.")
    return canvas_cls(size=(width, height), title=title, update_mode="ondemand")


def run_canvas_loop() -> None:
    """Run the rendercanvas event loop until the window closes."""
    import rendercanvas.auto as rc_auto

    loop = getattr(rc_auto, "loop", None)
    if loop is not None and hasattr(loop, "run"):
        loop.run()
        return
    raise RuntimeError("rendercanvas.auto did not expose a runnable loop.")


__all__ = ["RenderCanvasFrameHost", "ResizeListener", "create_canvas", "run_canvas_loop"]
