from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Any

from app.context import get_correlation_id
from app.core.events import event_bus

# Most recent envelopes only; subscribers on `event_bus` see every event.
RECENT_EVENT_LIMIT = 500
published_events: deque[dict[str, Any]] = deque(maxlen=RECENT_EVENT_LIMIT)


def build_envelope(event_type: str, tenant_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "event_type": event_type,
        "tenant_id": tenant_id,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "correlation_id": get_correlation_id(),
        "payload": payload,
    }


def publish(envelope: dict[str, Any]) -> None:
    if envelope.get("correlation_id") is None:
        envelope["correlation_id"] = get_correlation_id()

    published_events.append(envelope)
    event_type = envelope.get("event_type")
    if isinstance(event_type, str) and event_type:
        event_bus.publish(event_type, envelope)


def publish_domain_event(event_type: str, tenant_id: str, payload: dict[str, Any]) -> None:
    publish(build_envelope(event_type, tenant_id, payload))
