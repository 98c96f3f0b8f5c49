"""HTTP advisory optimizer."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from sacred_geometry.api.advisory import AdvisoryResult, AdvisoryUnavailableError
from sacred_geometry.api.bundle import ParameterBundle
from sacred_geometry.api.device import DeviceSnapshot
from sacred_geometry.diagnostics.json_codec import loads
from sacred_geometry.runtime.config import AdvisoryConfig, MAX_ADVISORY_TIMEOUT_SECONDS

_LOG = logging.getLogger("sacred_geometry.advisory")

_BUNDLE_KEYS = frozenset(
    {
        "complexity_level",
        "complexityLevel",
        "complexity",
        "rotation_speed_rad_per_ms",
        "rotationSpeedRadPerMs",
        "rotation_speed",
        "rotationSpeed",
        "target_frame_interval_ms",
        "targetFrameIntervalMs",
        "render_interval",
        "renderInterval",
        "polygon_sides",
        "polygonSides",
        "particle_count",
        "particleCount",
        "fractal_depth",
        "fractalDepth",
        "effects_enabled",
        "effectsEnabled",
        "enableEffects",
        "gpu_hint",
        "gpuHint",
        "useGPUAcceleration",
    }
)


def _extract_object(text: str) -> Mapping[str, object]:
    """Parse a JSON object, tolerating prose around it."""
    try:
        parsed = loads(text)
    except ValueError:
        start = text.find("{")
        end = text.rfind("}")
        if start < 0 or end <= start:
            raise AdvisoryUnavailableError("advisory response contained no JSON object") from None
        try:
            parsed = loads(text[start : end + 1])
        except ValueError as exc:
            raise AdvisoryUnavailableError("advisory response JSON was malformed") from exc
    if not isinstance(parsed, dict):
        raise AdvisoryUnavailableError("advisory response was not a JSON object")
    return parsed


def parse_advisory_payload(text: str, *, source: str) -> AdvisoryResult:
    """Turn a response body into a clamped advisory result.

    Accepts ``{"bundle": {...}, "confidence": ..}``, the same shape under
    ``"optimizations"``, or bundle fields at the top level.
    """
    payload = _extract_object(text)
    nested = payload.get("bundle", payload.get("optimizations"))
    fields: Mapping[str, object] = nested if isinstance(nested, dict) else payload
    if not _BUNDLE_KEYS.intersection(fields):
        raise AdvisoryUnavailableError("advisory response carried no bundle fields")
    rationale = payload.get("rationale", payload.get("reasoning", ""))
    return AdvisoryResult(
        bundle=ParameterBundle.from_mapping(fields),
        confidence=payload.get("confidence", 0.5),  # type: ignore[arg-type]
        rationale=str(rationale or ""),
        source=source,
    )


class HttpAdvisoryOptimizer:
    """POSTs the device snapshot to an endpoint and parses its suggestion."""

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = MAX_ADVISORY_TIMEOUT_SECONDS,
        source: str = "http",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("endpoint is required")
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = httpx.Timeout(min(MAX_ADVISORY_TIMEOUT_SECONDS, max(0.05, timeout_seconds)))
        self._source = source
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: AdvisoryConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpAdvisoryOptimizer":
        if not config.endpoint:
            raise ValueError("advisory endpoint is not configured")
        return cls(
            config.endpoint,
            api_key=config.api_key,
            timeout_seconds=config.timeout_seconds,
            transport=transport,
        )

    @property
    def source(self) -> str:
        return self._source

    async def optimize(self, snapshot: DeviceSnapshot) -> AdvisoryResult:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self._endpoint,
                    headers=headers,
                    json={"device": snapshot.to_payload()},
                )
            except httpx.HTTPError as exc:
                raise AdvisoryUnavailableError(f"advisory request failed: {exc}") from exc
        if response.status_code >= 400:
            raise AdvisoryUnavailableError(f"HTTP {response.status_code}: {response.text[:200]}")
        result = parse_advisory_payload(response.text, source=self._source)
        _LOG.debug(
            "advisory_http_result source=%s confidence=%.2f", self._source, result.confidence
        )
        return result


__all__ = ["HttpAdvisoryOptimizer", "parse_advisory_payload"]
