from __future__ import annotations

import threading

from .booking import TimeInterval
from .errors import ReservationConflictError
from .store import ReservationRecord, ReservationStore, Venue, find_conflicts


class InMemoryReservationStore(ReservationStore):
    """Process-local store with the same per-venue insert guarantee as the YAML repository."""

    def __init__(self, venues: list[Venue] | None = None) -> None:
        self._venues: dict[str, Venue] = {venue.venue_id: venue for venue in venues or []}
        self._reservations: dict[str, list[ReservationRecord]] = {}
        self._locks: dict[str, threading.Lock] = {}

    def add_venue(self, venue: Venue) -> Venue:
        self._venues[venue.venue_id] = venue
        return venue

    def _lock_for(self, venue_id: str) -> threading.Lock:
        return self._locks.setdefault(venue_id, threading.Lock())

    def find_venue(self, venue_id: str) -> Venue | None:
        venue = self._venues.get(venue_id)
        if venue is None or venue.is_deleted:
            return None
        return venue

    def list_venues(self) -> list[Venue]:
        return [venue for venue in self._venues.values() if not venue.is_deleted]

    def find_overlapping(self, venue_id: str, interval: TimeInterval) -> list[ReservationRecord]:
        return find_conflicts(list(self._reservations.get(venue_id, [])), interval)

    def insert(self, record: ReservationRecord) -> ReservationRecord:
        with self._lock_for(record.venue_id):
            existing = self._reservations.setdefault(record.venue_id, [])
            conflicts = find_conflicts(existing, record.interval) if record.is_active else []
            if conflicts:
                raise ReservationConflictError(record.venue_id, [row.reservation_id for row in conflicts])
            existing.append(record)
        return record

    def get_reservation(self, reservation_id: str) -> ReservationRecord | None:
        for records in self._reservations.values():
            for record in records:
                if record.reservation_id == reservation_id:
                    return record
        return None

    def list_reservations(self, venue_id: str | None = None, status: str | None = None) -> list[ReservationRecord]:
        if venue_id is not None:
            records = list(self._reservations.get(venue_id, []))
        else:
            records = [record for rows in self._reservations.values() for record in rows]
        if status is not None:
            records = [record for record in records if record.status == status]
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records
