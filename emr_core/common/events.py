# emr_core/common/events.py
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

from django.db import transaction

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("note.finalized")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        if fn not in _registry[event_name]:
            _registry[event_name].append(fn)
        return fn
    return _decorator


def unsubscribe(event_name: str, fn: Handler) -> None:
    handlers = _registry.get(event_name, [])
    if fn in handlers:
        handlers.remove(fn)


def publish(event_name: str, payload: Dict[str, Any]) -> int:
    """
    Deliver an event to in-process subscribers.

    Each handler is isolated: a raising handler is logged and the remaining
    handlers still run. Returns the number of handlers that completed.
    Keep payloads ID-based (plain str/None values) to avoid cross-app imports.
    """
    delivered = 0
    for handler in list(_registry.get(event_name, [])):
        try:
            handler(dict(payload))
        except Exception:
            logger.exception(
                "Event handler failed",
                extra={"event": event_name, "handler": getattr(handler, "__qualname__", repr(handler))},
            )
            continue
        delivered += 1
    return delivered


def publish_on_commit(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Fire-and-forget: deliver after the current transaction commits.
    Nothing is delivered if the transaction rolls back, and subscriber
    failures can never roll it back.
    """
    frozen = dict(payload)
    transaction.on_commit(lambda: publish(event_name, frozen))
