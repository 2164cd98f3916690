from __future__ import annotations

import logging

import pytest

from app import events
from app.context import bind_correlation_id
from app.core.events import InProcessEventBus, InternalEvent, event_bus


def test_subscribe_is_idempotent_and_reversible() -> None:
    bus = InProcessEventBus()
    received: list[InternalEvent] = []

    bus.subscribe("quote.created", received.append)
    bus.subscribe("quote.created", received.append)
    bus.publish("quote.created", {"quote_id": "q1"})

    assert [event.payload for event in received] == [{"quote_id": "q1"}]

    bus.unsubscribe("quote.created", received.append)
    bus.publish("quote.created", {"quote_id": "q2"})
    assert len(received) == 1


def test_failing_handler_does_not_stop_delivery(caplog: pytest.LogCaptureFixture) -> None:
    bus = InProcessEventBus()
    received: list[str] = []

    def broken(event: InternalEvent) -> None:
        raise RuntimeError("handler exploded")

    bus.subscribe_many(["quote.status_changed", "quote.created"], broken)
    bus.subscribe("quote.status_changed", lambda event: received.append(event.name))

    with caplog.at_level(logging.ERROR, logger="app.events"):
        bus.publish("quote.status_changed", {"new_status": "Sent"})

    assert received == ["quote.status_changed"]
    failures = [record for record in caplog.records if record.getMessage() == "event.handler_failed"]
    assert len(failures) == 1
    assert failures[0].event_name == "quote.status_changed"


def test_domain_event_envelope() -> None:
    received: list[InternalEvent] = []
    event_bus.subscribe("catalog.product.deleted", received.append)
    try:
        with bind_correlation_id("corr-bus-1"):
            events.publish_domain_event("catalog.product.deleted", "tenant-a", {"product_id": "p1"})
    finally:
        event_bus.unsubscribe("catalog.product.deleted", received.append)

    (envelope,) = events.published_events
    assert envelope["event_type"] == "catalog.product.deleted"
    assert envelope["tenant_id"] == "tenant-a"
    assert envelope["correlation_id"] == "corr-bus-1"
    assert envelope["payload"] == {"product_id": "p1"}
    assert envelope["occurred_at"]
    assert [event.payload for event in received] == [envelope]


def test_recent_events_are_bounded() -> None:
    for index in range(events.RECENT_EVENT_LIMIT + 5):
        events.publish_domain_event("quote.created", "tenant-a", {"index": index})

    assert len(events.published_events) == events.RECENT_EVENT_LIMIT
    assert events.published_events[0]["payload"] == {"index": 5}
    assert events.published_events[-1]["payload"] == {"index": events.RECENT_EVENT_LIMIT + 4}
