from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from datetime import date, timedelta
from typing import Any

_PEOPLE_RE = re.compile(r"(\d+)\s*(?:people|person|attendee|seat|pax)")
_FOR_COUNT_RE = re.compile(r"for\s+(\d+)")
_ISO_DATE_RE = re.compile(r"(?P<date>\d{4}-\d{2}-\d{2})")
_TIME_RANGE_RE = re.compile(
    r"(?P<start_hour>\d{1,2})(?::(?P<start_minute>\d{2}))?\s*(?P<start_ampm>am|pm)?"
    r"\s*[-–to]+\s*"
    r"(?P<end_hour>\d{1,2})(?::(?P<end_minute>\d{2}))?\s*(?P<end_ampm>am|pm)?"
)
_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")


@dataclass(frozen=True)
class BookingIntent:
    """Fields recognized in a free-text request. Anything not found is None."""

    people_count: int | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    email: str | None = None

    def merged_with(self, other: "BookingIntent") -> "BookingIntent":
        """Return a copy with every field present in ``other`` taking precedence."""
        updates = {item.name: getattr(other, item.name) for item in fields(other) if getattr(other, item.name) is not None}
        return replace(self, **updates)

    @property
    def has_time_range(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    def to_dict(self) -> dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in fields(self) if getattr(self, item.name) is not None}


def parse_booking_intent(text: str, today: date | None = None) -> BookingIntent:
    """Best-effort extraction of booking fields from ``text``.

    Unrecognized or missing fields are left as None; nothing is raised for
    text that holds no booking details.
    """
    if not text or not text.strip():
        return BookingIntent()

    lower = text.lower()
    reference_day = today or date.today()

    booking_date, remainder = _extract_date(lower, reference_day)
    start_time, end_time = _extract_time_range(remainder)
    email_match = _EMAIL_RE.search(text)

    return BookingIntent(
        people_count=_extract_people_count(remainder),
        date=booking_date,
        start_time=start_time,
        end_time=end_time,
        email=email_match.group(0) if email_match else None,
    )


def _extract_people_count(lower: str) -> int | None:
    people_match = _PEOPLE_RE.search(lower)
    if people_match:
        return int(people_match.group(1))
    for_match = _FOR_COUNT_RE.search(lower)
    if for_match:
        return int(for_match.group(1))
    return None


def _extract_date(lower: str, today: date) -> tuple[str | None, str]:
    """Return the requested date and the text with any ISO date removed."""
    iso_match = _ISO_DATE_RE.search(lower)
    if iso_match:
        remainder = lower.replace(iso_match.group("date"), " ")
        return iso_match.group("date"), remainder
    if "today" in lower:
        return today.isoformat(), lower
    if "tomorrow" in lower:
        return (today + timedelta(days=1)).isoformat(), lower
    return None, lower


def _extract_time_range(lower: str) -> tuple[str | None, str | None]:
    # Drop email addresses so digits in them are never read as hours.
    match = _TIME_RANGE_RE.search(_EMAIL_RE.sub(" ", lower))
    if not match:
        return None, None

    start_hour = int(match.group("start_hour"))
    start_minute = int(match.group("start_minute") or 0)
    start_ampm = match.group("start_ampm")
    end_hour = int(match.group("end_hour"))
    end_minute = int(match.group("end_minute") or 0)
    # A single marker on the start bound applies to the end bound too.
    end_ampm = match.group("end_ampm") or start_ampm

    start_hour = _apply_meridiem(start_hour, start_ampm)
    end_hour = _apply_meridiem(end_hour, end_ampm)

    # "3-4pm": the start carries the end's PM unless that would put it past the end.
    if (
        not start_ampm
        and end_ampm == "pm"
        and start_hour < 12
        and (start_hour + 12) * 60 + start_minute < end_hour * 60 + end_minute
    ):
        start_hour += 12
    # "2-3": bare afternoon hours default to PM.
    if not start_ampm and not end_ampm and start_hour < end_hour and 1 <= start_hour <= 6:
        start_hour += 12
        end_hour += 12

    if start_hour > 23 or end_hour > 23 or start_minute > 59 or end_minute > 59:
        return None, None

    return f"{start_hour:02d}:{start_minute:02d}", f"{end_hour:02d}:{end_minute:02d}"


def _apply_meridiem(hour: int, ampm: str | None) -> int:
    if ampm == "pm" and hour < 12:
        return hour + 12
    if ampm == "am" and hour == 12:
        return 0
    return hour
