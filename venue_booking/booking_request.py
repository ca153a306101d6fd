from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import math
from typing import Any

from .booking import TimeInterval, duration_hours, interval_from_duration, parse_datetime
from .errors import (
    REQUIRED_FIELDS,
    InvalidDurationError,
    InvalidFieldError,
    MissingFieldsError,
)
from .store import BOOKING_STATUSES, BOOKING_TYPE_STANDARD, BOOKING_TYPES, STATUS_CONFIRMED

NOTES_MAX_LENGTH = 500
_OPTIONAL_TEXT_FIELDS = ("customerName", "customerPhone", "customerEmail", "notes")


@dataclass(frozen=True)
class BookingRequest:
    venue_id: str
    interval: TimeInterval
    duration: int
    total_amount: Decimal
    status: str = STATUS_CONFIRMED
    booking_type: str = BOOKING_TYPE_STANDARD
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    notes: str | None = None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_duration(raw: Any) -> int:
    message = "Duration must be a positive number of hours"
    if isinstance(raw, bool):
        raise InvalidDurationError(message)

    if isinstance(raw, str):
        text = raw.strip()
        try:
            raw = int(text)
        except ValueError:
            try:
                raw = float(text)
            except ValueError as error:
                raise InvalidDurationError(message) from error

    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidDurationError(message)
        raw = int(raw)

    if not isinstance(raw, int) or raw <= 0:
        raise InvalidDurationError(message)
    return raw


def _parse_amount(raw: Any) -> Decimal:
    message = "totalAmount must be a non-negative number"
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise InvalidFieldError(message)
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation as error:
        raise InvalidFieldError(message) from error
    if not amount.is_finite() or amount < 0 or not math.isfinite(float(amount)):
        raise InvalidFieldError(message)
    return amount


def _parse_choice(raw: Any, field: str, choices: tuple[str, ...], default: str) -> str:
    if _is_missing(raw):
        return default
    if not isinstance(raw, str) or raw.strip().upper() not in choices:
        raise InvalidFieldError(f"Invalid {field}: must be one of {', '.join(choices)}")
    return raw.strip().upper()


def _parse_optional_text(payload: dict[str, Any], field: str) -> str | None:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidFieldError(f"Invalid {field}: must be a string")
    if field == "notes" and len(value) > NOTES_MAX_LENGTH:
        raise InvalidFieldError(f"Invalid notes: must be at most {NOTES_MAX_LENGTH} characters")
    return value


def parse_booking_request(payload: Any) -> BookingRequest:
    """Validate a raw JSON body into a BookingRequest.

    Checks run in a fixed order so the first failure is deterministic:
    required fields, dates and duration, then the remaining fields.
    """
    if not isinstance(payload, dict):
        payload = {}

    missing = [field for field in REQUIRED_FIELDS if _is_missing(payload.get(field))]
    if missing:
        raise MissingFieldsError(missing)

    venue_id = payload["venueId"]
    if not isinstance(venue_id, str):
        raise InvalidFieldError("Invalid venueId: must be a string")

    start = parse_datetime(payload["startTime"], "startTime")
    duration = _parse_duration(payload["duration"])

    if _is_missing(payload.get("endTime")):
        interval = interval_from_duration(start, duration)
    else:
        interval = TimeInterval(start, parse_datetime(payload["endTime"], "endTime"))
        if duration_hours(interval) != duration:
            raise InvalidDurationError("Duration does not match startTime and endTime")

    texts = {field: _parse_optional_text(payload, field) for field in _OPTIONAL_TEXT_FIELDS}

    return BookingRequest(
        venue_id=venue_id.strip(),
        interval=interval,
        duration=duration,
        total_amount=_parse_amount(payload["totalAmount"]),
        status=_parse_choice(payload.get("status"), "status", BOOKING_STATUSES, STATUS_CONFIRMED),
        booking_type=_parse_choice(payload.get("bookingType"), "bookingType", BOOKING_TYPES, BOOKING_TYPE_STANDARD),
        customer_name=texts["customerName"],
        customer_phone=texts["customerPhone"],
        customer_email=texts["customerEmail"],
        notes=texts["notes"],
    )
