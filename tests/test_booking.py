import unittest
from datetime import datetime, timedelta, timezone

from venue_booking import InvalidDateTimeError, InvalidDurationError, TimeInterval, can_reserve, duration_hours, has_time_overlap, parse_interval


def _at(hour: int, minute: int = 0, day: int = 24) -> datetime:
    return datetime(2026, 2, day, hour, minute, tzinfo=timezone.utc)


class TestTimeOverlap(unittest.TestCase):
    def setUp(self) -> None:
        self.existing = TimeInterval(_at(15), _at(17))

    def test_non_overlapping_before_passes(self) -> None:
        self.assertFalse(has_time_overlap(TimeInterval(_at(13), _at(14, 59)), self.existing))

    def test_exactly_touching_boundary_passes(self) -> None:
        self.assertFalse(has_time_overlap(TimeInterval(_at(17), _at(18)), self.existing))
        self.assertFalse(has_time_overlap(TimeInterval(_at(14), _at(15)), self.existing))

    def test_partially_overlapping_fails(self) -> None:
        self.assertTrue(has_time_overlap(TimeInterval(_at(16), _at(18)), self.existing))

    def test_fully_contained_fails(self) -> None:
        self.assertTrue(has_time_overlap(TimeInterval(_at(15, 30), _at(16, 30)), self.existing))

    def test_overlap_is_symmetric(self) -> None:
        other = TimeInterval(_at(14), _at(16))
        self.assertEqual(self.existing.overlaps(other), other.overlaps(self.existing))

    def test_same_hours_on_different_dates_do_not_overlap(self) -> None:
        self.assertFalse(has_time_overlap(TimeInterval(_at(15, day=25), _at(17, day=25)), self.existing))


class TestTimeInterval(unittest.TestCase):
    def test_parse_accepts_zulu_and_offsets(self) -> None:
        interval = parse_interval("2026-02-24T15:00:00Z", "2026-02-24T18:00:00+01:00")

        self.assertEqual(interval.start, _at(15))
        self.assertEqual(interval.end, _at(17))
        self.assertEqual(duration_hours(interval), 2)

    def test_naive_values_are_read_as_utc(self) -> None:
        interval = parse_interval("2026-02-24T15:00:00", "2026-02-24T16:30:00")

        self.assertEqual(interval.start.tzinfo, timezone.utc)
        self.assertEqual(interval.duration_hours, 1.5)

    def test_invalid_datetime_is_rejected(self) -> None:
        with self.assertRaises(InvalidDateTimeError):
            parse_interval("invalid-datetime", "2026-02-24T16:00:00Z")

    def test_end_must_be_after_start(self) -> None:
        with self.assertRaises(InvalidDurationError):
            parse_interval("2026-02-24T16:00:00Z", "2026-02-24T16:00:00Z")
        with self.assertRaises(InvalidDurationError):
            TimeInterval(_at(16), _at(15))


class TestCanReserve(unittest.TestCase):
    def test_can_reserve_returns_false_when_any_overlap(self) -> None:
        existing = [TimeInterval(_at(9), _at(10)), TimeInterval(_at(10, 30), _at(11, 30))]
        self.assertFalse(can_reserve(TimeInterval(_at(11), _at(12)), existing))

    def test_can_reserve_returns_true_when_no_overlap(self) -> None:
        existing = [TimeInterval(_at(9), _at(10)), TimeInterval(_at(10, 30), _at(11, 30))]
        self.assertTrue(can_reserve(TimeInterval(_at(12), _at(12) + timedelta(hours=1)), existing))


if __name__ == "__main__":
    unittest.main()
