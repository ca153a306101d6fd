from __future__ import annotations

REQUIRED_FIELDS = ("venueId", "startTime", "duration", "totalAmount")


class BookingError(ValueError):
    """A booking request rejected before anything was written."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingFieldsError(BookingError):
    # The message always names every required field; ``missing`` holds the absent ones.
    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(REQUIRED_FIELDS)}")
        self.missing = missing


class InvalidDateTimeError(BookingError):
    pass


class InvalidDurationError(BookingError):
    pass


class InvalidFieldError(BookingError):
    pass


class VenueNotFoundError(BookingError):
    status_code = 404

    def __init__(self, message: str = "Venue not found") -> None:
        super().__init__(message)


class BookingNotFoundError(BookingError):
    status_code = 404

    def __init__(self, message: str = "Booking not found") -> None:
        super().__init__(message)


class SlotConflictError(BookingError):
    status_code = 409

    def __init__(self, message: str = "Venue is not available for the selected time slot") -> None:
        super().__init__(message)


class ReservationStorageError(RuntimeError):
    pass


class ReservationConflictError(ReservationStorageError):
    """Raised by a store when an insert would overlap an active reservation."""

    def __init__(self, venue_id: str, conflicting_ids: list[str]) -> None:
        super().__init__(f"Reservation overlaps active reservations on venue {venue_id}: {', '.join(conflicting_ids)}")
        self.venue_id = venue_id
        self.conflicting_ids = conflicting_ids
