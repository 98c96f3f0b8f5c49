"""Centralized configuration ownership for geometry rendering."""

from __future__ import annotations

import os
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Mapping

MAX_ADVISORY_TIMEOUT_SECONDS = 3.0


@dataclass(frozen=True, slots=True)
class LoopConfig:
    stability_threshold_fps: float
    monitor_window_ms: float
    host_refresh_hz: float


@dataclass(frozen=True, slots=True)
class ProbeConfig:
    resize_debounce_ms: float
    viewport_override: tuple[int, int] | None
    connection_override: str | None
    low_power_override: bool | None
    low_battery_threshold: float


@dataclass(frozen=True, slots=True)
class AdvisoryConfig:
    enabled: bool
    endpoint: str | None
    timeout_seconds: float
    api_key: str | None


@dataclass(frozen=True, slots=True)
class RenderConfig:
    default_color: str
    high_end_size_boost: float
    fallback_size_scale: float


@dataclass(frozen=True, slots=True)
class GeometryConfig:
    loop: LoopConfig
    probe: ProbeConfig
    advisory: AdvisoryConfig
    render: RenderConfig


_GEOMETRY_CONFIG: ContextVar[GeometryConfig | None] = ContextVar(
    "sacred_geometry_config", default=None
)


def _raw(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = os.getenv(name) if env is None else env.get(name)
    return None if value is None else str(value)


def _flag(name: str, default: bool, *, env: Mapping[str, str] | None = None) -> bool:
    raw = _raw(name, env=env)
    if raw is None:
        return bool(default)
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _optional_flag(name: str, *, env: Mapping[str, str] | None = None) -> bool | None:
    raw = _raw(name, env=env)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return None


def _float(
    name: str,
    default: float,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
    env: Mapping[str, str] | None = None,
) -> float:
    raw = _raw(name, env=env)
    if raw is None:
        value = float(default)
    else:
        try:
            value = float(raw.strip())
        except ValueError:
            value = float(default)
    if value != value:
        value = float(default)
    if minimum is not None:
        value = max(float(minimum), value)
    if maximum is not None:
        value = min(float(maximum), value)
    return value


def _text(name: str, default: str, *, env: Mapping[str, str] | None = None) -> str:
    raw = _raw(name, env=env)
    if raw is None:
        return str(default)
    value = raw.strip()
    return value if value else str(default)


def _optional_text(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = _text(name, "", env=env)
    return value or None


def parse_resolution(raw: str) -> tuple[int, int] | None:
    """Parse ``1920x1080`` style strings (also ``,`` or ``:`` separated)."""
    value = str(raw).strip().lower()
    if not value:
        return None
    normalized = value.replace(" ", "")
    for sep in ("x", ",", ":"):
        if sep in normalized:
            left, right = normalized.split(sep, 1)
            try:
                width = max(1, int(left))
                height = max(1, int(right))
            except ValueError:
                return None
            return (width, height)
    return None


def _color(raw: str, fallback: str) -> str:
    value = raw.strip().lower()
    if len(value) == 7 and value.startswith("#"):
        try:
            int(value[1:], 16)
        except ValueError:
            return fallback
        return value
    return fallback


def load_geometry_config(*, env: Mapping[str, str] | None = None) -> GeometryConfig:
    scope_env = env
    return GeometryConfig(
        loop=LoopConfig(
            stability_threshold_fps=_float(
                "GEOMETRY_STABILITY_THRESHOLD_FPS", 30.0, minimum=1.0, env=scope_env
            ),
            monitor_window_ms=_float(
                "GEOMETRY_MONITOR_WINDOW_MS", 1000.0, minimum=100.0, env=scope_env
            ),
            host_refresh_hz=_float(
                "GEOMETRY_HOST_REFRESH_HZ", 60.0, minimum=1.0, maximum=480.0, env=scope_env
            ),
        ),
        probe=ProbeConfig(
            resize_debounce_ms=_float(
                "GEOMETRY_RESIZE_DEBOUNCE_MS", 300.0, minimum=0.0, env=scope_env
            ),
            viewport_override=parse_resolution(_text("GEOMETRY_VIEWPORT", "", env=scope_env)),
            connection_override=_optional_text("GEOMETRY_CONNECTION_CLASS", env=scope_env),
            low_power_override=_optional_flag("GEOMETRY_LOW_POWER", env=scope_env),
            low_battery_threshold=_float(
                "GEOMETRY_LOW_BATTERY_THRESHOLD", 0.2, minimum=0.0, maximum=1.0, env=scope_env
            ),
        ),
        advisory=AdvisoryConfig(
            enabled=_flag("GEOMETRY_ADVISORY_ENABLED", False, env=scope_env),
            endpoint=_optional_text("GEOMETRY_ADVISORY_ENDPOINT", env=scope_env),
            timeout_seconds=_float(
                "GEOMETRY_ADVISORY_TIMEOUT_SECONDS",
                MAX_ADVISORY_TIMEOUT_SECONDS,
                minimum=0.05,
                maximum=MAX_ADVISORY_TIMEOUT_SECONDS,
                env=scope_env,
            ),
            api_key=_optional_text("GEOMETRY_ADVISORY_API_KEY", env=scope_env),
        ),
        render=RenderConfig(
            default_color=_color(_text("GEOMETRY_COLOR", "#7c3aed", env=scope_env), "#7c3aed"),
            high_end_size_boost=_float(
                "GEOMETRY_HIGH_END_SIZE_BOOST", 1.2, minimum=1.0, maximum=1.2, env=scope_env
            ),
            fallback_size_scale=_float(
                "GEOMETRY_FALLBACK_SIZE_SCALE", 0.8, minimum=0.1, maximum=1.0, env=scope_env
            ),
        ),
    )


def initialize_geometry_config(*, env: Mapping[str, str] | None = None) -> GeometryConfig:
    config = load_geometry_config(env=env)
    _GEOMETRY_CONFIG.set(config)
    return config


def set_geometry_config(config: GeometryConfig) -> GeometryConfig:
    _GEOMETRY_CONFIG.set(config)
    return config


def get_geometry_config() -> GeometryConfig:
    config = _GEOMETRY_CONFIG.get()
    if config is not None:
        return config
    return initialize_geometry_config()


__all__ = [
    "AdvisoryConfig",
    "GeometryConfig",
    "LoopConfig",
    "MAX_ADVISORY_TIMEOUT_SECONDS",
    "ProbeConfig",
    "RenderConfig",
    "get_geometry_config",
    "initialize_geometry_config",
    "load_geometry_config",
    "parse_resolution",
    "set_geometry_config",
]
