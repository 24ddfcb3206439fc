"""Timer helpers for construction and research tasks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

SECONDS_PER_MINUTE: int = 60
MINUTES_PER_HOUR: int = 60
SECONDS_PER_HOUR: int = SECONDS_PER_MINUTE * MINUTES_PER_HOUR


@dataclass(frozen=True, slots=True)
class RemainingTime:
    is_complete: bool
    remaining_seconds: float
    hours: int
    minutes: int


def finish_time(start: datetime, hours: float) -> datetime:
    return start + timedelta(hours=max(0.0, float(hours)))


def is_task_complete(finishes_at: datetime, now: datetime) -> bool:
    return now >= finishes_at


def remaining_time(finishes_at: datetime, now: datetime) -> RemainingTime:
    remaining = max(0.0, (finishes_at - now).total_seconds())
    whole = int(remaining)
    return RemainingTime(
        is_complete=remaining == 0,
        remaining_seconds=remaining,
        hours=whole // SECONDS_PER_HOUR,
        minutes=(whole % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE,
    )


def format_remaining_time(finishes_at: datetime, now: datetime) -> str:
    remaining = remaining_time(finishes_at, now)
    if remaining.is_complete:
        return "Complete!"
    if remaining.hours > 0:
        return f"{remaining.hours}h {remaining.minutes}m"
    return f"{remaining.minutes}m"


__all__ = [
    "RemainingTime",
    "finish_time",
    "format_remaining_time",
    "is_task_complete",
    "remaining_time",
]
