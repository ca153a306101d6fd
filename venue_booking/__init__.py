from .admission import AdmittedBooking, BookingAdmissionService
from .booking import TimeInterval, can_reserve, duration_hours, has_time_overlap, parse_interval
from .booking_request import BookingRequest, parse_booking_request
from .errors import (
	BookingError,
	BookingNotFoundError,
	InvalidDateTimeError,
	InvalidDurationError,
	InvalidFieldError,
	MissingFieldsError,
	ReservationConflictError,
	ReservationStorageError,
	SlotConflictError,
	VenueNotFoundError,
)
from .memory_store import InMemoryReservationStore
from .store import ReservationRecord, ReservationStore, Vendor, Venue
from .yaml_store import ReservationYamlRepository

__all__ = [
	"AdmittedBooking",
	"BookingAdmissionService",
	"TimeInterval",
	"can_reserve",
	"duration_hours",
	"has_time_overlap",
	"parse_interval",
	"BookingRequest",
	"parse_booking_request",
	"BookingError",
	"BookingNotFoundError",
	"InvalidDateTimeError",
	"InvalidDurationError",
	"InvalidFieldError",
	"MissingFieldsError",
	"ReservationConflictError",
	"ReservationStorageError",
	"SlotConflictError",
	"VenueNotFoundError",
	"InMemoryReservationStore",
	"ReservationRecord",
	"ReservationStore",
	"Vendor",
	"Venue",
	"ReservationYamlRepository",
]
