import unittest
from datetime import date

from room_booking import (
    SELECTABLE_SLOTS,
    TIME_SLOTS,
    Booking,
    Weekday,
    can_reserve,
    format_display_date,
    format_time,
    has_time_overlap,
    weekday_index,
)


def _booking(start_time: str, end_time: str) -> Booking:
    return Booking(
        booking_id="b-test",
        room_id="room-1",
        date="2024-01-01",
        start_time=start_time,
        end_time=end_time,
        full_name="Test User",
        email="test@company.com",
        people_count=1,
    )


class TestTimeOverlap(unittest.TestCase):
    def test_non_overlapping_before_passes(self) -> None:
        self.assertFalse(has_time_overlap("09:00", "09:30", "10:00", "11:00"))

    def test_non_overlapping_after_passes(self) -> None:
        self.assertFalse(has_time_overlap("11:30", "12:00", "10:00", "11:00"))

    def test_exactly_touching_boundary_passes(self) -> None:
        self.assertFalse(has_time_overlap("11:00", "12:00", "10:00", "11:00"))
        self.assertFalse(has_time_overlap("09:00", "10:00", "10:00", "11:00"))

    def test_partially_overlapping_fails(self) -> None:
        self.assertTrue(has_time_overlap("10:30", "11:30", "10:00", "11:00"))

    def test_fully_contained_fails(self) -> None:
        self.assertTrue(has_time_overlap("10:00", "10:30", "09:00", "11:00"))

    def test_containing_fails(self) -> None:
        self.assertTrue(has_time_overlap("08:00", "12:00", "10:00", "11:00"))

    def test_overlap_is_symmetric(self) -> None:
        pairs = [
            (("08:00", "09:00"), ("08:30", "10:00")),
            (("08:00", "09:00"), ("09:00", "10:00")),
            (("13:00", "15:00"), ("13:30", "14:00")),
        ]
        for first, second in pairs:
            self.assertEqual(has_time_overlap(*first, *second), has_time_overlap(*second, *first))


class TestCanReserve(unittest.TestCase):
    def test_can_reserve_returns_false_when_any_overlap(self) -> None:
        existing = [_booking("09:00", "10:00"), _booking("10:30", "11:30")]
        self.assertFalse(can_reserve("11:00", "12:00", existing))

    def test_can_reserve_returns_true_when_no_overlap(self) -> None:
        existing = [_booking("09:00", "10:00"), _booking("10:30", "11:30")]
        self.assertTrue(can_reserve("10:00", "10:30", existing))


class TestTimeSlots(unittest.TestCase):
    def test_grid_runs_from_eight_to_six_in_half_hours(self) -> None:
        self.assertEqual(len(TIME_SLOTS), 21)
        self.assertEqual(TIME_SLOTS[0], "08:00")
        self.assertEqual(TIME_SLOTS[1], "08:30")
        self.assertEqual(TIME_SLOTS[-2], "17:30")
        self.assertEqual(TIME_SLOTS[-1], "18:00")

    def test_selectable_slots_exclude_closing_mark(self) -> None:
        self.assertEqual(len(SELECTABLE_SLOTS), 20)
        self.assertNotIn("18:00", SELECTABLE_SLOTS)


class TestFormatting(unittest.TestCase):
    def test_format_time(self) -> None:
        self.assertEqual(format_time("00:00"), "12:00 AM")
        self.assertEqual(format_time("13:30"), "1:30 PM")
        self.assertEqual(format_time("12:00"), "12:00 PM")
        self.assertEqual(format_time("08:30"), "8:30 AM")
        self.assertEqual(format_time("18:00"), "6:00 PM")

    def test_format_display_date(self) -> None:
        self.assertEqual(format_display_date("2024-01-01"), "Mon, Jan 1")
        self.assertEqual(format_display_date("2024-01-14"), "Sun, Jan 14")


class TestWeekdayIndex(unittest.TestCase):
    def test_sunday_is_zero(self) -> None:
        self.assertEqual(weekday_index(date(2024, 1, 7)), Weekday.SUNDAY)
        self.assertEqual(int(weekday_index(date(2024, 1, 7))), 0)

    def test_monday_and_saturday(self) -> None:
        self.assertEqual(weekday_index(date(2024, 1, 1)), Weekday.MONDAY)
        self.assertEqual(weekday_index(date(2024, 1, 6)), Weekday.SATURDAY)


if __name__ == "__main__":
    unittest.main()
