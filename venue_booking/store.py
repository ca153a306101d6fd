"""Persistence contract for venues and reservations.

Stores are swappable: the admission service only talks to this interface,
so the YAML repository and the in-memory store are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from .booking import TimeInterval, has_time_overlap

STATUS_PENDING_PAYMENT = "PENDING_PAYMENT"
STATUS_CONFIRMED = "CONFIRMED"
STATUS_COMPLETED = "COMPLETED"
STATUS_CANCELLED = "CANCELLED"
BOOKING_STATUSES = (STATUS_PENDING_PAYMENT, STATUS_CONFIRMED, STATUS_COMPLETED, STATUS_CANCELLED)
# Every status except CANCELLED holds the slot.
ACTIVE_STATUSES = frozenset(status for status in BOOKING_STATUSES if status != STATUS_CANCELLED)

BOOKING_TYPE_STANDARD = "STANDARD"
BOOKING_TYPES = (BOOKING_TYPE_STANDARD, "PRACTICE", "MATCH", "TOURNAMENT")

DEFAULT_OPENING_HOUR = 6
DEFAULT_CLOSING_HOUR = 23


def _isoformat(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Vendor:
    vendor_id: str
    name: str
    slug: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.vendor_id, "name": self.name, "slug": self.slug}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Vendor":
        return Vendor(
            vendor_id=str(data["id"]),
            name=str(data.get("name", "")),
            slug=(str(data["slug"]) if data.get("slug") is not None else None),
        )


@dataclass(frozen=True)
class Venue:
    venue_id: str
    name: str
    vendor: Vendor
    address: str | None = None
    city: str | None = None
    opening_hour: int = DEFAULT_OPENING_HOUR
    closing_hour: int = DEFAULT_CLOSING_HOUR
    holiday_country: str | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.venue_id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "openingHour": self.opening_hour,
            "closingHour": self.closing_hour,
            "vendorId": self.vendor.vendor_id,
            "vendor": self.vendor.to_dict(),
        }

    def to_storage_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.venue_id,
            "name": self.name,
            "vendor": self.vendor.to_dict(),
            "address": self.address,
            "city": self.city,
            "opening_hour": self.opening_hour,
            "closing_hour": self.closing_hour,
        }
        if self.holiday_country is not None:
            payload["holiday_country"] = self.holiday_country
        if self.deleted_at is not None:
            payload["deleted_at"] = self.deleted_at.isoformat(timespec="seconds")
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Venue":
        deleted_at = data.get("deleted_at")
        return Venue(
            venue_id=str(data["id"]),
            name=str(data.get("name", "")),
            vendor=Vendor.from_dict(data.get("vendor") or {"id": data.get("vendor_id", "")}),
            address=data.get("address"),
            city=data.get("city"),
            opening_hour=int(data.get("opening_hour", DEFAULT_OPENING_HOUR)),
            closing_hour=int(data.get("closing_hour", DEFAULT_CLOSING_HOUR)),
            holiday_country=data.get("holiday_country"),
            deleted_at=(datetime.fromisoformat(str(deleted_at)) if deleted_at else None),
        )


@dataclass(frozen=True)
class ReservationRecord:
    reservation_id: str
    venue_id: str
    interval: TimeInterval
    duration: int
    total_amount: Decimal
    status: str
    booking_type: str
    created_at: datetime
    updated_at: datetime
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    notes: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "reservation_id": self.reservation_id,
            "venue_id": self.venue_id,
            "start": self.interval.start.isoformat(),
            "end": self.interval.end.isoformat(),
            "duration": self.duration,
            "total_amount": str(self.total_amount),
            "status": self.status,
            "booking_type": self.booking_type,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        for key in ("customer_name", "customer_phone", "customer_email", "notes"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReservationRecord":
        def optional(key: str) -> str | None:
            return str(data[key]) if data.get(key) is not None else None

        return ReservationRecord(
            reservation_id=str(data["reservation_id"]),
            venue_id=str(data["venue_id"]),
            interval=TimeInterval(
                datetime.fromisoformat(str(data["start"])),
                datetime.fromisoformat(str(data["end"])),
            ),
            duration=int(data["duration"]),
            total_amount=Decimal(str(data["total_amount"])),
            status=str(data.get("status", STATUS_CONFIRMED)),
            booking_type=str(data.get("booking_type", BOOKING_TYPE_STANDARD)),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
            customer_name=optional("customer_name"),
            customer_phone=optional("customer_phone"),
            customer_email=optional("customer_email"),
            notes=optional("notes"),
        )

    def to_api_dict(self, venue: Venue | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.reservation_id,
            "venueId": self.venue_id,
            "startTime": _isoformat(self.interval.start),
            "endTime": _isoformat(self.interval.end),
            "duration": self.duration,
            "totalAmount": float(self.total_amount),
            "status": self.status,
            "bookingType": self.booking_type,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "notes": self.notes,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
        if venue is not None:
            payload["venue"] = venue.to_dict()
        return payload


def find_conflicts(records: list[ReservationRecord], interval: TimeInterval) -> list[ReservationRecord]:
    return [record for record in records if record.is_active and has_time_overlap(record.interval, interval)]


class ReservationStore(ABC):
    """Interface for venue lookup and reservation persistence."""

    @abstractmethod
    def find_venue(self, venue_id: str) -> Venue | None:
        """Return the venue, or None when it is unknown or soft-deleted."""
        ...

    @abstractmethod
    def list_venues(self) -> list[Venue]:
        """Return all venues that are not soft-deleted."""
        ...

    @abstractmethod
    def find_overlapping(self, venue_id: str, interval: TimeInterval) -> list[ReservationRecord]:
        """Return active reservations on the venue whose interval overlaps ``interval``."""
        ...

    @abstractmethod
    def insert(self, record: ReservationRecord) -> ReservationRecord:
        """Persist a reservation atomically for its venue.

        Raises ReservationConflictError when an active reservation on the
        same venue overlaps the record at commit time.
        """
        ...

    @abstractmethod
    def get_reservation(self, reservation_id: str) -> ReservationRecord | None:
        ...

    @abstractmethod
    def list_reservations(self, venue_id: str | None = None, status: str | None = None) -> list[ReservationRecord]:
        """Return reservations ordered by created_at descending."""
        ...
