from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

import holidays as pyholidays

from .booking import TimeInterval, can_reserve
from .store import ReservationStore, Venue

_HOLIDAY_CACHE: dict[tuple[str, int], set[date]] = {}


@dataclass(frozen=True)
class HourlySlot:
    start: datetime
    end: datetime
    available: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "time": self.start.strftime("%H:%M"),
            "endTime": self.end.strftime("%H:%M"),
            "available": self.available,
        }


def is_venue_holiday(venue: Venue, target_date: date) -> bool:
    if not venue.holiday_country:
        return False
    key = (venue.holiday_country.upper(), target_date.year)
    if key not in _HOLIDAY_CACHE:
        holiday_map = pyholidays.country_holidays(key[0], years=[key[1]])
        _HOLIDAY_CACHE[key] = set(holiday_map.keys())
    return target_date in _HOLIDAY_CACHE[key]


def hourly_slots(store: ReservationStore, venue: Venue, target_date: date) -> list[HourlySlot]:
    """One-hour slots between the venue's opening and closing hour (UTC)."""
    if is_venue_holiday(venue, target_date):
        return []

    day_start = datetime(target_date.year, target_date.month, target_date.day, tzinfo=timezone.utc)
    opening = day_start + timedelta(hours=venue.opening_hour)
    closing = day_start + timedelta(hours=venue.closing_hour)
    if closing <= opening:
        return []

    booked = [record.interval for record in store.find_overlapping(venue.venue_id, TimeInterval(opening, closing))]

    slots: list[HourlySlot] = []
    cursor = opening
    while cursor < closing:
        slot = TimeInterval(cursor, cursor + timedelta(hours=1))
        slots.append(HourlySlot(slot.start, slot.end, can_reserve(slot, booked)))
        cursor = slot.end
    return slots
