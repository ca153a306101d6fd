from __future__ import annotations

from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from venue_booking import BookingAdmissionService, BookingError, ReservationYamlRepository

mcp = FastMCP(
    "Venue Booking MCP Server",
    instructions="Expose venues, bookings and booking admission from the venue_booking project.",
    json_response=True,
)

DATA_DIR = Path(__file__).parent / "data"
REPOSITORY = ReservationYamlRepository(DATA_DIR)
SERVICE = BookingAdmissionService(REPOSITORY)


@mcp.resource("booking://venues")
async def venues_resource() -> list[dict[str, Any]]:
    """List bookable venues with their vendor."""
    return [venue.to_dict() for venue in REPOSITORY.list_venues()]


@mcp.tool()
def list_venues() -> list[dict[str, Any]]:
    """Return all venues that can currently be booked."""
    return [venue.to_dict() for venue in REPOSITORY.list_venues()]


@mcp.tool()
def list_bookings(venue_id: str | None = None) -> list[dict[str, Any]]:
    """Return bookings, newest first, optionally filtered by venue."""
    return [booking.to_dict() for booking in SERVICE.list_bookings(venue_id=venue_id)]


@mcp.tool()
def create_booking(payload: dict[str, Any]) -> dict[str, Any]:
    """Create a booking from the same JSON body accepted by POST /bookings."""
    try:
        admitted = SERVICE.admit(payload)
    except BookingError as error:
        return {"error": error.message, "status": error.status_code}
    return {"booking": admitted.to_dict()}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
