"""Booking admission pipeline.

A request moves through shape validation, date/duration validation, venue
resolution, the conflict check and finally the insert. Every stage before
the insert is free of side effects; the insert itself is atomic per venue
and re-checks overlaps under the store's venue lock, so two overlapping
requests racing past the conflict check still end with one winner.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4
import logging

from .booking_request import BookingRequest, parse_booking_request
from .errors import (
    BookingNotFoundError,
    ReservationConflictError,
    ReservationStorageError,
    SlotConflictError,
    VenueNotFoundError,
)
from .store import ReservationRecord, ReservationStore, Venue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmittedBooking:
    reservation: ReservationRecord
    venue: Venue

    def to_dict(self) -> dict[str, Any]:
        return self.reservation.to_api_dict(self.venue)


class BookingAdmissionService:
    def __init__(self, store: ReservationStore, now_provider: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self._clock: Callable[[], datetime] = now_provider or (lambda: datetime.now(timezone.utc))

    def admit(self, payload: Any) -> AdmittedBooking:
        request = parse_booking_request(payload)
        return self.admit_request(request)

    def admit_request(self, request: BookingRequest) -> AdmittedBooking:
        venue = self.store.find_venue(request.venue_id)
        if venue is None:
            raise VenueNotFoundError()

        if self.store.find_overlapping(venue.venue_id, request.interval):
            raise SlotConflictError()

        now = self._clock()
        record = ReservationRecord(
            reservation_id=str(uuid4()),
            venue_id=venue.venue_id,
            interval=request.interval,
            duration=request.duration,
            total_amount=request.total_amount,
            status=request.status,
            booking_type=request.booking_type,
            created_at=now,
            updated_at=now,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            customer_email=request.customer_email,
            notes=request.notes,
        )

        try:
            created = self.store.insert(record)
        except ReservationConflictError as error:
            logger.info("Booking on venue %s lost the race to %s", venue.venue_id, ", ".join(error.conflicting_ids))
            raise SlotConflictError() from error
        except ReservationStorageError:
            logger.exception(
                "Failed to persist booking for venue %s (%s - %s)",
                venue.venue_id,
                request.interval.start.isoformat(),
                request.interval.end.isoformat(),
            )
            raise

        logger.info("Admitted booking %s on venue %s", created.reservation_id, venue.venue_id)
        return AdmittedBooking(created, venue)

    def get_booking(self, reservation_id: str) -> AdmittedBooking:
        record = self.store.get_reservation(reservation_id)
        if record is None:
            raise BookingNotFoundError()
        venue = self.store.find_venue(record.venue_id)
        if venue is None:
            raise BookingNotFoundError()
        return AdmittedBooking(record, venue)

    def list_bookings(self, venue_id: str | None = None, status: str | None = None) -> list[AdmittedBooking]:
        venues: dict[str, Venue | None] = {}
        bookings: list[AdmittedBooking] = []
        for record in self.store.list_reservations(venue_id=venue_id, status=status):
            if record.venue_id not in venues:
                venues[record.venue_id] = self.store.find_venue(record.venue_id)
            venue = venues[record.venue_id]
            if venue is not None:
                bookings.append(AdmittedBooking(record, venue))
        return bookings
