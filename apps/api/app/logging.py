from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from app.context import get_correlation_id
from app.core.config import Settings, get_settings


_KNOWN_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "op",
    "kind",
    "tenant_id",
    "resource_id",
    "bucket",
    "file_key",
    "event_name",
    "event_payload",
    "from_status",
    "to_status",
    "count",
    "status",
    "error",
)
_MAX_ERROR_LENGTH = 500


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        return True


_DEFAULT_RECORD_FACTORY = logging.getLogRecordFactory()


def _record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _DEFAULT_RECORD_FACTORY(*args, **kwargs)
    if not getattr(record, "correlation_id", None):
        record.correlation_id = get_correlation_id()
    return record


def extract_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Structured ``extra`` values of a record, limited to the known field names."""

    fields: dict[str, Any] = {}
    for key in _KNOWN_FIELDS:
        if hasattr(record, key):
            fields[key] = getattr(record, key)

    error_value = fields.get("error")
    if isinstance(error_value, str):
        fields["error"] = error_value[:_MAX_ERROR_LENGTH]
    return fields


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
        }
        fields = extract_fields(record)
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        payload["fields"] = fields
        return json.dumps(payload, default=str)


class TextLogFormatter(logging.Formatter):
    """Single-line ``key=value`` output for local development."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            datetime.now(timezone.utc).strftime("%H:%M:%S"),
            record.levelname,
            record.name,
            record.getMessage(),
        ]
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            parts.append(f"correlation_id={correlation_id}")
        parts.extend(f"{key}={value}" for key, value in extract_fields(record).items())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format.lower() == "text":
        return TextLogFormatter()
    return JsonLogFormatter()


def configure_logging(settings: Settings | None = None) -> None:
    root_logger = logging.getLogger()
    if getattr(root_logger, "_fieldservice_configured", False):
        return

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(settings.log_format))
    handler.addFilter(CorrelationIdFilter())

    root_logger.handlers.clear()
    root_logger.filters.clear()
    root_logger.setLevel(level)
    logging.setLogRecordFactory(_record_factory)
    root_logger.addHandler(handler)
    root_logger._fieldservice_configured = True  # type: ignore[attr-defined]
