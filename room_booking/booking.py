from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from enum import IntEnum
from typing import Any, Iterable

DAY_START = time(8, 0)
DAY_END = time(18, 0)
SLOT_MINUTES = 30


def _build_time_slots() -> tuple[str, ...]:
    marks: list[str] = []
    minute_of_day = DAY_START.hour * 60 + DAY_START.minute
    last_minute = DAY_END.hour * 60 + DAY_END.minute
    while minute_of_day <= last_minute:
        marks.append(f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}")
        minute_of_day += SLOT_MINUTES
    return tuple(marks)


# Marks from 08:00 to 18:00 inclusive. Each selectable block ends at the next mark.
TIME_SLOTS: tuple[str, ...] = _build_time_slots()
SELECTABLE_SLOTS: tuple[str, ...] = TIME_SLOTS[:-1]


class Weekday(IntEnum):
    """Weekday index with Sunday as zero."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


WORKDAYS = frozenset({Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY})

DAY_NAMES_FULL = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
DAY_NAMES_SHORT = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def weekday_index(value: date) -> Weekday:
    """Return the Sunday-based weekday of ``value``.

    ``date.weekday()`` counts from Monday; ``isoweekday()`` runs 1 (Monday)
    to 7 (Sunday), so modulo 7 puts Sunday at zero.
    """
    return Weekday(value.isoweekday() % 7)


@dataclass(frozen=True)
class BookingRequest:
    room_id: str
    date: str
    start_time: str
    end_time: str
    full_name: str
    email: str
    people_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Booking:
    booking_id: str
    room_id: str
    date: str
    start_time: str
    end_time: str
    full_name: str
    email: str
    people_count: int
    recurrence_group_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        if self.recurrence_group_id is None:
            payload.pop("recurrence_group_id")
        return payload

    @staticmethod
    def from_request(booking_id: str, request: BookingRequest, recurrence_group_id: str | None = None) -> "Booking":
        return Booking(booking_id=booking_id, recurrence_group_id=recurrence_group_id, **asdict(request))


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as error:
        raise ValueError(f"date must follow YYYY-MM-DD format: {value!r}") from error


def parse_time(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError) as error:
        raise ValueError(f"time must follow HH:MM format: {value!r}") from error


def to_minutes(value: str) -> int:
    parsed = parse_time(value)
    return parsed.hour * 60 + parsed.minute


def has_time_overlap(new_start: str, new_end: str, exist_start: str, exist_end: str) -> bool:
    """Return True when two ``HH:MM`` intervals on the same day overlap.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-11:00 and 11:00-12:00) do not overlap.
    No ordering check is made on either interval.
    """
    return to_minutes(new_start) < to_minutes(exist_end) and to_minutes(new_end) > to_minutes(exist_start)


def can_reserve(new_start: str, new_end: str, existing_bookings: Iterable[Booking]) -> bool:
    """Return True if the requested interval does not overlap any existing booking."""
    for booking in existing_bookings:
        if has_time_overlap(new_start, new_end, booking.start_time, booking.end_time):
            return False
    return True


def is_on_slot_grid(value: str) -> bool:
    return value in TIME_SLOTS


def format_time(value: str) -> str:
    """Format ``HH:MM`` for display, e.g. ``13:30`` -> ``1:30 PM``."""
    hour_text, minute_text = value.split(":")
    hour = int(hour_text)
    meridiem = "PM" if hour >= 12 else "AM"
    if hour == 0:
        display_hour = 12
    elif hour > 12:
        display_hour = hour - 12
    else:
        display_hour = hour
    return f"{display_hour}:{minute_text} {meridiem}"


def format_display_date(value: str) -> str:
    parsed = parse_date(value)
    return f"{DAY_NAMES_SHORT[weekday_index(parsed)]}, {parsed:%b} {parsed.day}"
