from __future__ import annotations

from datetime import date, datetime
from math import ceil
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from . import config
from .admission import BookingAdmissionService
from .availability import hourly_slots, is_venue_holiday
from .errors import BookingError, ReservationStorageError
from .store import BOOKING_STATUSES, ReservationStore
from .yaml_store import ReservationYamlRepository


def create_app(
    data_dir: str | Path | None = None,
    store: ReservationStore | None = None,
    now_provider: Callable[[], datetime] | None = None,
) -> Flask:
    app = Flask(__name__)
    repository = store if store is not None else ReservationYamlRepository(data_dir or config.DATA_DIR)
    service = BookingAdmissionService(repository, now_provider=now_provider)

    def _error(message: str, status_code: int) -> Any:
        return jsonify({"error": message}), status_code

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(BookingError)
    def handle_booking_error(error: BookingError) -> Any:
        return _error(error.message, error.status_code)

    @app.errorhandler(ReservationStorageError)
    def handle_storage_error(error: ReservationStorageError) -> Any:
        app.logger.error("Storage failure on %s %s: %s", request.method, request.path, error, exc_info=error)
        return _error("Internal server error", 500)

    @app.post("/bookings")
    def create_booking() -> Any:
        payload = request.get_json(silent=True) or {}
        try:
            admitted = service.admit(payload)
        except BookingError:
            raise
        except ReservationStorageError:
            # Already logged with its venue context by the service.
            return _error("Failed to create booking", 500)
        except Exception:
            app.logger.exception("Unexpected error creating booking for venue %r", payload.get("venueId") if isinstance(payload, dict) else None)
            return _error("Failed to create booking", 500)

        return jsonify({"booking": admitted.to_dict(), "message": "Booking created successfully"})

    @app.get("/bookings")
    def list_bookings() -> Any:
        venue_id = request.args.get("venueId") or None
        status = str(request.args.get("status", "all")).strip().upper()
        if status == "ALL":
            status_filter = None
        elif status in BOOKING_STATUSES:
            status_filter = status
        else:
            return _error(f"Invalid status: must be one of {', '.join(BOOKING_STATUSES)}", 400)

        try:
            page = int(request.args.get("page", 1))
            limit = int(request.args.get("limit", config.DEFAULT_PAGE_SIZE))
        except ValueError:
            return _error("page and limit must be integers", 400)
        if page < 1 or limit < 1:
            return _error("page and limit must be positive", 400)
        limit = min(limit, config.MAX_PAGE_SIZE)

        bookings = service.list_bookings(venue_id=venue_id, status=status_filter)
        total = len(bookings)
        offset = (page - 1) * limit
        return jsonify(
            {
                "bookings": [booking.to_dict() for booking in bookings[offset : offset + limit]],
                "pagination": {
                    "page": page,
                    "limit": limit,
                    "total": total,
                    "totalPages": ceil(total / limit),
                },
            }
        )

    @app.get("/bookings/availability")
    def get_availability() -> Any:
        venue_id = str(request.args.get("venueId", "")).strip()
        raw_date = str(request.args.get("date", "")).strip()
        if not venue_id or not raw_date:
            return _error("Missing required parameters: venueId, date", 400)

        try:
            target_date = date.fromisoformat(raw_date)
        except ValueError:
            return _error("Invalid date format", 400)

        venue = repository.find_venue(venue_id)
        if venue is None:
            return _error("Venue not found", 404)

        if is_venue_holiday(venue, target_date):
            return jsonify({"slots": [], "message": "Venue is closed on this day"})

        slots = hourly_slots(repository, venue, target_date)
        return jsonify(
            {
                "date": target_date.isoformat(),
                "slots": [slot.to_dict() for slot in slots],
                "venueInfo": {
                    "name": venue.name,
                    "operatingHours": f"{venue.opening_hour:02d}:00 - {venue.closing_hour:02d}:00",
                },
            }
        )

    @app.get("/bookings/<booking_id>")
    def get_booking(booking_id: str) -> Any:
        booking = service.get_booking(booking_id)
        return jsonify({"booking": booking.to_dict()})

    @app.get("/venues")
    def list_venues() -> Any:
        return jsonify({"venues": [venue.to_dict() for venue in repository.list_venues()]})

    return app


if __name__ == "__main__":
    config.configure_logging()
    app = create_app()
    app.run(host=config.HOST, port=config.PORT, debug=False)
