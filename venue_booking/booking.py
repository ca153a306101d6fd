from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from .errors import InvalidDateTimeError, InvalidDurationError


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidDurationError("End time must be after start time")

    def overlaps(self, other: TimeInterval) -> bool:
        return has_time_overlap(self, other)

    @property
    def duration_hours(self) -> float:
        return duration_hours(self)


def parse_datetime(raw: str, field: str = "datetime") -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    A trailing ``Z`` is accepted and naive values are read as UTC.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDateTimeError(f"Invalid {field}: must be an ISO-8601 datetime")

    text = raw.strip()
    if text.endswith(("z", "Z")):
        text = text[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(text)
    except ValueError as error:
        raise InvalidDateTimeError(f"Invalid {field}: must be an ISO-8601 datetime") from error

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_interval(start_raw: str, end_raw: str) -> TimeInterval:
    start = parse_datetime(start_raw, "startTime")
    end = parse_datetime(end_raw, "endTime")
    return TimeInterval(start, end)


def interval_from_duration(start: datetime, hours: int) -> TimeInterval:
    if hours <= 0:
        raise InvalidDurationError("Duration must be a positive number of hours")
    try:
        end = start + timedelta(hours=hours)
    except OverflowError as error:
        raise InvalidDurationError("Duration is too long") from error
    return TimeInterval(start, end)


def has_time_overlap(first: TimeInterval, second: TimeInterval) -> bool:
    """Return True when two intervals share any instant.

    Intervals are half-open ranges [start, end), so back-to-back bookings
    (15:00-17:00 and 17:00-18:00) do not overlap.
    """
    return first.start < second.end and second.start < first.end


def duration_hours(interval: TimeInterval) -> float:
    return (interval.end - interval.start).total_seconds() / 3600


def can_reserve(requested: TimeInterval, existing: Iterable[TimeInterval]) -> bool:
    """Return True if the requested interval does not overlap any existing one."""
    for interval in existing:
        if has_time_overlap(requested, interval):
            return False
    return True
