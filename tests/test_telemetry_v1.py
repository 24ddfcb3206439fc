from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from idle_empire.runtime.telemetry import EventRing, Metrics, ensure_event_ring, record_event


def test_ring_keeps_newest_events():
    ring = EventRing(capacity=3)
    for idx in range(5):
        ring.append({"type": "TICK", "n": idx})

    assert [event["n"] for event in ring.events] == [2, 3, 4]
    assert [event["n"] for event in ring.tail(2)] == [3, 4]
    assert ring.tail(0) == []


def test_zero_capacity_ring_drops_everything():
    ring = EventRing(capacity=0)
    ring.append({"type": "TICK"})

    assert ring.events == []


def test_record_event_stamps_owner_clock():
    owner = SimpleNamespace(now=datetime(2024, 1, 1, tzinfo=timezone.utc))

    record_event(owner, {"type": "RAID_DETECTED"})
    record_event(owner, {"type": "RAID_RESOLVED", "at": "custom"})

    ring = ensure_event_ring(owner)
    assert ring.of_type("RAID_DETECTED")[0]["at"] == "2024-01-01T00:00:00+00:00"
    assert ring.of_type("RAID_RESOLVED")[0]["at"] == "custom"


def test_metrics_signature_is_order_independent():
    first = Metrics()
    first.inc("raids.victory")
    first.set_gauge("empire.total_resources", 10)
    second = Metrics()
    second.set_gauge("empire.total_resources", 10)
    second.inc("raids.victory")

    assert first.snapshot_signature() == second.snapshot_signature()
    assert first.counter("raids.victory") == 1.0
    assert first.counter("missing") == 0.0
