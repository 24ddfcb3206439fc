from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(slots=True)
class Metrics:
    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def counter(self, path: str) -> float:
        return self.counters.get(path, 0.0)

    def snapshot_signature(self) -> str:
        canonical = {
            "counters": {k: float(v) for k, v in sorted(self.counters.items())},
            "gauges": {k: v for k, v in sorted(self.gauges.items())},
        }
        return json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(slots=True)
class EventRing:
    capacity: int = 200
    events: list[dict[str, object]] = field(default_factory=list)

    def append(self, event: Mapping[str, object]) -> None:
        if self.capacity <= 0:
            return
        self.events.append(dict(event))
        overflow = len(self.events) - int(self.capacity)
        if overflow > 0:
            del self.events[:overflow]

    def tail(self, n: int = 10) -> list[dict[str, object]]:
        return list(self.events[-max(0, int(n)) :]) if n > 0 else []

    def of_type(self, event_type: str) -> list[dict[str, object]]:
        return [event for event in self.events if event.get("type") == event_type]


def ensure_event_ring(owner: Any) -> EventRing:
    ring = getattr(owner, "event_ring", None)
    if not isinstance(ring, EventRing):
        ring = EventRing()
        owner.event_ring = ring
    return ring


def record_event(owner: Any, event: Mapping[str, object]) -> None:
    """Append ``event`` to the owner's ring, stamping the owner's clock time if absent."""

    payload = dict(event)
    if "at" not in payload:
        now = getattr(owner, "now", None)
        if now is not None:
            payload["at"] = now.isoformat() if hasattr(now, "isoformat") else now
    ensure_event_ring(owner).append(payload)


__all__ = [
    "EventRing",
    "Metrics",
    "ensure_event_ring",
    "record_event",
]
