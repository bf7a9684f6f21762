from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Iterable

import holidays as pyholidays

from .booking import WORKDAYS, Weekday, parse_date, weekday_index

_HOLIDAY_CACHE: dict[tuple[str, int], set[date]] = {}

MAX_REPEAT_WEEKS = 12


class RecurrenceType(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RecurrenceConfig:
    type: RecurrenceType
    repeat_weeks: int
    custom_days: frozenset[Weekday] = field(default_factory=frozenset)
    holiday_country: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", RecurrenceType(self.type))
        object.__setattr__(self, "custom_days", frozenset(Weekday(day) for day in self.custom_days))
        if self.repeat_weeks < 1:
            raise ValueError("repeat_weeks must be greater than zero")
        if self.repeat_weeks > MAX_REPEAT_WEEKS:
            raise ValueError(f"repeat_weeks cannot exceed {MAX_REPEAT_WEEKS}")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "RecurrenceConfig":
        custom_days: Iterable[int] = data.get("custom_days") or ()
        return RecurrenceConfig(
            type=RecurrenceType(str(data.get("type", RecurrenceType.NONE.value))),
            repeat_weeks=int(data.get("repeat_weeks", 1)),
            custom_days=frozenset(int(day) for day in custom_days),
            holiday_country=(str(data["holiday_country"]) if data.get("holiday_country") else None),
        )


def generate_recurring_dates(start_date: str, config: RecurrenceConfig) -> list[str]:
    """Expand ``config`` from ``start_date`` into ascending ``YYYY-MM-DD`` dates.

    ``daily`` keeps Monday-Friday within ``repeat_weeks * 7`` days, ``weekly``
    steps seven days ``repeat_weeks`` times, and ``custom`` keeps the days whose
    weekday is listed in ``custom_days``. An empty ``custom_days`` yields no
    dates. ``none`` yields the start date alone.
    """
    start = parse_date(start_date)
    total_days = config.repeat_weeks * 7

    if config.type is RecurrenceType.DAILY:
        dates = [day for day in _iter_days(start, total_days) if weekday_index(day) in WORKDAYS]
    elif config.type is RecurrenceType.WEEKLY:
        dates = [start + timedelta(days=7 * week) for week in range(config.repeat_weeks)]
    elif config.type is RecurrenceType.CUSTOM:
        dates = [day for day in _iter_days(start, total_days) if weekday_index(day) in config.custom_days]
    else:
        dates = [start]

    if config.holiday_country:
        dates = [day for day in dates if not is_public_holiday(day, config.holiday_country)]

    return [day.isoformat() for day in dates]


def is_public_holiday(target_date: date, country: str) -> bool:
    key = (country.upper(), target_date.year)
    if key not in _HOLIDAY_CACHE:
        try:
            holiday_map = pyholidays.country_holidays(key[0], years=[target_date.year])
        except NotImplementedError as error:
            raise ValueError(f"Unsupported holiday country: {country}") from error
        _HOLIDAY_CACHE[key] = set(holiday_map.keys())
    return target_date in _HOLIDAY_CACHE[key]


def _iter_days(start: date, count: int) -> Iterable[date]:
    for offset in range(count):
        yield start + timedelta(days=offset)
