"""
Structured logging with clinical-content redaction.

Log records carry the current request id (set by RequestIdMiddleware) and
any `extra={...}` fields. Keys that can hold free clinical text or
credentials are redacted before they reach a handler.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from threading import local
from typing import Any

_context = local()

# Never written to logs verbatim.
SENSITIVE_FIELDS = {
    "password",
    "token",
    "access",
    "refresh",
    "secret",
    "signature_hash",
    "subjective",
    "objective",
    "assessment",
    "plan",
    "summary",
    "notes",
    "keywords",
    "value",
}

REDACTED = "[REDACTED]"

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName", "message", "asctime",
}


def bind_request_id(request_id: str | None) -> None:
    _context.request_id = request_id


def get_request_id() -> str | None:
    return getattr(_context, "request_id", None)


def sanitize_dict(data: Any) -> Any:
    """Return a copy of `data` with sensitive keys redacted (recursively)."""
    if isinstance(data, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_FIELDS else sanitize_dict(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_dict(v) for v in data]
    return data


class RequestContextFilter(logging.Filter):
    """Injects `request_id` into every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = get_request_id() or "-"
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """One JSON object per line; extra fields are sanitized."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        for key, value in record.__dict__.items():
            if key in payload or key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            payload[key] = REDACTED if key.lower() in SENSITIVE_FIELDS else sanitize_dict(value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def log_domain_event(
    logger: logging.Logger,
    event_name: str,
    *,
    entity_type: str,
    entity_id: Any,
    result: str = "success",
    **fields: Any,
) -> None:
    """
    Emit one structured line for a state transition.

        log_domain_event(logger, "encounter.started", entity_type="encounter",
                         entity_id=enc.id, draft_note_id=str(note.id))
    """
    extra = {"event": event_name, "entity_type": entity_type, "entity_id": str(entity_id), "result": result}
    extra.update(sanitize_dict(fields))

    if result in ("failure", "error"):
        logger.error("Domain event: %s", event_name, extra=extra)
    elif result in ("warning", "skipped"):
        logger.warning("Domain event: %s", event_name, extra=extra)
    else:
        logger.info("Domain event: %s", event_name, extra=extra)
