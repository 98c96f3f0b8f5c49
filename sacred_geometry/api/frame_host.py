"""Host per-refresh callback contract."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

FrameCallback = Callable[[float], None]


class FrameHost(Protocol):
    """Native per-refresh callback source (the host decides the cadence)."""

    def request_frame(self, callback: FrameCallback) -> int:
        """Schedule `callback(timestamp_ms)` for the next refresh; return a handle."""

    def cancel_frame(self, handle: int) -> None:
        """Cancel a pending callback; unknown handles are ignored."""


__all__ = ["FrameCallback", "FrameHost"]
