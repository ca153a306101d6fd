import tempfile
import unittest
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from filelock import FileLock

from venue_booking import (
    ReservationConflictError,
    ReservationRecord,
    ReservationStorageError,
    ReservationYamlRepository,
    TimeInterval,
    Vendor,
    Venue,
)
from venue_booking.store import STATUS_CANCELLED, STATUS_CONFIRMED

NOW = datetime(2026, 2, 24, 9, 0, tzinfo=timezone.utc)
VENDOR = Vendor("vendor-1", "Green Turf Co", "green-turf")


def _at(hour: int, day: int = 2) -> datetime:
    return datetime(2026, 3, day, hour, tzinfo=timezone.utc)


def _record(reservation_id: str, venue_id: str, start: int, end: int, status: str = STATUS_CONFIRMED) -> ReservationRecord:
    return ReservationRecord(
        reservation_id=reservation_id,
        venue_id=venue_id,
        interval=TimeInterval(_at(start), _at(end)),
        duration=end - start,
        total_amount=Decimal("500.00"),
        status=status,
        booking_type="STANDARD",
        created_at=NOW,
        updated_at=NOW,
        customer_name="Conflict Test Booking",
    )


class TestReservationYamlRepository(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._temp_dir.name) / "data"
        self.repo = ReservationYamlRepository(self.data_dir)
        self.repo.add_venue(Venue("venue-1", "Center Court", VENDOR, city="Bengaluru"))
        self.repo.add_venue(Venue("venue-2", "Side Court", VENDOR))
        self.repo.add_venue(Venue("venue-gone", "Closed Court", VENDOR, deleted_at=NOW))

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_soft_deleted_and_unknown_venues_are_not_found(self) -> None:
        self.assertIsNotNone(self.repo.find_venue("venue-1"))
        self.assertIsNone(self.repo.find_venue("venue-gone"))
        self.assertIsNone(self.repo.find_venue("missing"))
        self.assertEqual([venue.venue_id for venue in self.repo.list_venues()], ["venue-1", "venue-2"])

    def test_insert_round_trips_through_yaml(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 15, 17))

        reloaded = ReservationYamlRepository(self.data_dir).get_reservation("r1")
        self.assertIsNotNone(reloaded)
        self.assertEqual(reloaded.interval, TimeInterval(_at(15), _at(17)))
        self.assertEqual(reloaded.total_amount, Decimal("500.00"))
        self.assertEqual(reloaded.customer_name, "Conflict Test Booking")

    def test_insert_rejects_overlap_on_same_venue(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 15, 17))

        with self.assertRaises(ReservationConflictError) as ctx:
            self.repo.insert(_record("r2", "venue-1", 16, 18))

        self.assertEqual(ctx.exception.conflicting_ids, ["r1"])
        self.assertEqual(len(self.repo.list_reservations("venue-1")), 1)

    def test_overlap_on_other_venue_is_independent(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 15, 17))
        self.repo.insert(_record("r2", "venue-2", 15, 17))

        self.assertEqual(len(self.repo.list_reservations()), 2)

    def test_cancelled_reservations_do_not_block(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 15, 17, status=STATUS_CANCELLED))
        self.repo.insert(_record("r2", "venue-1", 15, 17))

        overlapping = self.repo.find_overlapping("venue-1", TimeInterval(_at(16), _at(18)))
        self.assertEqual([record.reservation_id for record in overlapping], ["r2"])

    def test_list_reservations_filters_by_status(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 10, 11, status=STATUS_CANCELLED))
        self.repo.insert(_record("r2", "venue-1", 11, 12))

        confirmed = self.repo.list_reservations("venue-1", status=STATUS_CONFIRMED)
        self.assertEqual([record.reservation_id for record in confirmed], ["r2"])

    def test_logs_created_and_rejected_events(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 15, 17))
        with self.assertRaises(ReservationConflictError):
            self.repo.insert(_record("r2", "venue-1", 15, 16))

        event_types = [event["event_type"] for event in self.repo.get_events("venue-1")]
        self.assertEqual(event_types, ["BOOKING_CREATED", "BOOKING_CONFLICT_REJECTED"])

    def test_corrupted_reservation_file_is_backed_up_and_reset(self) -> None:
        self.repo.insert(_record("r1", "venue-1", 15, 17))
        reservations_file = self.data_dir / "venues" / "venue-1" / "reservations.yaml"
        reservations_file.write_text("reservation_id: [unclosed", encoding="utf-8")

        self.assertEqual(self.repo.list_reservations("venue-1"), [])
        backups = list(reservations_file.parent.glob("reservations.corrupt.*.yaml"))
        self.assertEqual(len(backups), 1)
        self.assertIn("YAML_RECOVERED", [event["event_type"] for event in self.repo.get_events("venue-1")])

    def test_lock_timeout_becomes_storage_error(self) -> None:
        repo = ReservationYamlRepository(self.data_dir, lock_timeout=0.05)
        lock_path = self.data_dir / "venues" / "venue-1" / ".lock"
        lock_path.parent.mkdir(parents=True, exist_ok=True)

        with FileLock(str(lock_path)):
            with self.assertRaises(ReservationStorageError):
                repo.insert(_record("r1", "venue-1", 15, 17))

        self.assertEqual(repo.list_reservations("venue-1"), [])
        repo.insert(_record("r1", "venue-1", 15, 17))
        self.assertEqual(len(repo.list_reservations("venue-1")), 1)

    def test_sub_second_times_survive_reload(self) -> None:
        start = datetime(2026, 3, 2, 15, 0, 0, 900000, tzinfo=timezone.utc)
        record = replace(_record("r1", "venue-1", 15, 16), interval=TimeInterval(start, start.replace(hour=16)))
        self.repo.insert(record)

        reloaded = ReservationYamlRepository(self.data_dir).get_reservation("r1")
        self.assertEqual(reloaded.interval, record.interval)

    def test_venue_ids_cannot_escape_data_directory(self) -> None:
        self.repo.add_venue(Venue("..", "Dots", VENDOR))
        self.repo.insert(_record("r1", "..", 15, 17))

        self.assertTrue((self.data_dir / "venues" / "%2E%2E" / "reservations.yaml").exists())


if __name__ == "__main__":
    unittest.main()
