"""Logging pipeline for geometry runtime events.

Runtime modules log snake_case events followed by ``key=value`` fields, for
example ``selector_selected kind=fallback tier=mobile reason=low_power``.
The JSON formatter splits such messages into an ``event`` name and a
``fields`` mapping so log lines can be filtered without regexes.
"""

from __future__ import annotations

import logging
import queue
from collections.abc import Mapping
from datetime import UTC, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path

from sacred_geometry.api.logging import GeometryLoggingConfig
from sacred_geometry.diagnostics.json_codec import dumps_text
from sacred_geometry.runtime.config import _raw, _text

_QUEUE_LISTENER: QueueListener | None = None
_LOG_FORMATS = frozenset({"text", "json"})
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def split_event(message: str) -> tuple[str, dict[str, str]]:
    """Split ``event key=value ...`` into the event name and its fields.

    Tokens without ``=`` after the event name are kept under ``detail``.
    """
    head, _, rest = message.partition(" ")
    fields: dict[str, str] = {}
    detail: list[str] = []
    for token in rest.split():
        key, sep, value = token.partition("=")
        if sep and key:
            fields[key] = value
        else:
            detail.append(token)
    if detail:
        fields["detail"] = " ".join(detail)
    return head, fields


class EventJsonFormatter(logging.Formatter):
    """One JSON object per record, with the event message split into fields."""

    def format(self, record: logging.LogRecord) -> str:
        event, fields = split_event(record.getMessage())
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": event,
        }
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return dumps_text(payload)


def load_logging_config(*, env: Mapping[str, str] | None = None) -> GeometryLoggingConfig:
    """Read ``GEOMETRY_LOG_*`` settings; ``LOG_LEVEL`` is the level fallback."""
    level = _raw("GEOMETRY_LOG_LEVEL", env=env)
    if level is None or not level.strip():
        level = _text("LOG_LEVEL", "INFO", env=env)
    level_name = level.strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        level_name = "INFO"
    return GeometryLoggingConfig(
        level_name=level_name,
        console_format=_format(_text("GEOMETRY_LOG_FORMAT", "text", env=env)),
        file_path=_raw("GEOMETRY_LOG_FILE", env=env) or None,
        file_format=_format(_text("GEOMETRY_LOG_FILE_FORMAT", "json", env=env)),
    )


def configure_geometry_logging(config: GeometryLoggingConfig) -> None:
    """Replace root handlers: console always, file through a queue listener."""
    global _QUEUE_LISTENER

    if _QUEUE_LISTENER is not None:
        _QUEUE_LISTENER.stop()
        _QUEUE_LISTENER = None

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, config.level_name.upper(), logging.INFO))

    console = logging.StreamHandler()
    console.setFormatter(_formatter(config.console_format))
    root.addHandler(console)
    if not config.file_path:
        return

    path = Path(config.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    file_handler.setFormatter(_formatter(config.file_format))
    log_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    root.addHandler(QueueHandler(log_queue))
    _QUEUE_LISTENER = QueueListener(log_queue, file_handler, respect_handler_level=True)
    _QUEUE_LISTENER.start()


def setup_geometry_logging(*, env: Mapping[str, str] | None = None) -> None:
    """Install logging from the environment unless the host already has handlers."""
    if logging.getLogger().handlers:
        return
    configure_geometry_logging(load_logging_config(env=env))


def _format(raw: str) -> str:
    value = raw.strip().lower()
    return value if value in _LOG_FORMATS else "text"


def _formatter(kind: str) -> logging.Formatter:
    if kind == "json":
        return EventJsonFormatter()
    return logging.Formatter(_TEXT_FORMAT)


__all__ = [
    "EventJsonFormatter",
    "configure_geometry_logging",
    "load_logging_config",
    "setup_geometry_logging",
    "split_event",
]
