"""Fixed-answer advisory optimizer."""

from __future__ import annotations

import asyncio

from sacred_geometry.api.advisory import AdvisoryResult
from sacred_geometry.api.device import DeviceSnapshot


class StaticAdvisoryOptimizer:
    """Returns the same result for every snapshot, optionally after a delay."""

    def __init__(self, result: AdvisoryResult, *, delay_seconds: float = 0.0) -> None:
        self._result = result
        self._delay_seconds = max(0.0, float(delay_seconds))
        self.calls: list[DeviceSnapshot] = []

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        self.calls.append(snapshot)
        if self._delay_seconds > 0.0:
            await asyncio.sleep(self._delay_seconds)
        return self._result


__all__ = ["StaticAdvisoryOptimizer"]
