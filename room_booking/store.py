from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Iterable
import re
import threading
from uuid import uuid4

import yaml

from .booking import (
    SELECTABLE_SLOTS,
    TIME_SLOTS,
    Booking,
    BookingRequest,
    can_reserve,
    has_time_overlap,
    is_on_slot_grid,
    parse_date,
    to_minutes,
)
from .catalog import DEFAULT_ROOMS, BookingStorageError, Room

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SLOT_UNAVAILABLE_MESSAGE = "This time slot is no longer available. Please choose another time."


@dataclass(frozen=True)
class BookingResult:
    success: bool
    booking: Booking | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.booking is not None:
            payload["booking"] = self.booking.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class RecurringBookingResult:
    success: bool
    booked_dates: list[str]
    conflict_dates: list[str]
    group_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "booked_dates": list(self.booked_dates),
            "conflict_dates": list(self.conflict_dates),
            "group_id": self.group_id,
        }


@dataclass(frozen=True)
class SlotAvailability:
    start_time: str
    end_time: str
    available: bool

    def to_dict(self) -> dict[str, Any]:
        return {"start_time": self.start_time, "end_time": self.end_time, "available": self.available}


@dataclass(frozen=True)
class RecurringBase:
    """Booking fields shared by every date of a recurring request."""

    room_id: str
    start_time: str
    end_time: str
    full_name: str
    email: str
    people_count: int

    def for_date(self, booking_date: str) -> BookingRequest:
        return BookingRequest(
            room_id=self.room_id,
            date=booking_date,
            start_time=self.start_time,
            end_time=self.end_time,
            full_name=self.full_name,
            email=self.email,
            people_count=self.people_count,
        )


class BookingStore:
    """In-memory, append-only collection of room bookings.

    Every availability check that precedes an insert runs under the same lock
    as the insert itself, so concurrent callers cannot double-book a room.
    """

    def __init__(
        self,
        rooms: Iterable[Room] | None = None,
        bookings: Iterable[Booking] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._rooms: tuple[Room, ...] = tuple(rooms) if rooms is not None else DEFAULT_ROOMS
        self._rooms_by_id = {room.room_id: room for room in self._rooms}
        if len(self._rooms_by_id) != len(self._rooms):
            raise ValueError("room ids must be unique")

        self._clock: Callable[[], datetime] = clock or datetime.now
        self._lock = threading.Lock()
        self._bookings: list[Booking] = []
        self._events: list[dict[str, Any]] = []

        for booking in bookings or ():
            self._insert_initial(booking)

    @classmethod
    def with_demo_data(cls, today: date | None = None, clock: Callable[[], datetime] | None = None) -> "BookingStore":
        store = cls(clock=clock)
        store.seed_demo_data(today)
        return store

    def _insert_initial(self, booking: Booking) -> None:
        if booking.room_id not in self._rooms_by_id:
            raise ValueError(f"Initial booking {booking.booking_id} references unknown room {booking.room_id}")
        if not self._is_available_locked(booking.room_id, booking.date, booking.start_time, booking.end_time):
            raise ValueError(f"Initial booking {booking.booking_id} overlaps an existing booking")
        self._bookings.append(booking)

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or self._clock()).isoformat(timespec="seconds")
        self._events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})

    def list_rooms(self) -> list[Room]:
        return list(self._rooms)

    def get_room_by_id(self, room_id: str) -> Room | None:
        return self._rooms_by_id.get(room_id)

    def get_bookings(self) -> list[Booking]:
        with self._lock:
            return list(self._bookings)

    def get_bookings_for_room(self, room_id: str, booking_date: str) -> list[Booking]:
        with self._lock:
            return self._bookings_for_room_locked(room_id, booking_date)

    def get_bookings_for_group(self, group_id: str) -> list[Booking]:
        with self._lock:
            return [row for row in self._bookings if row.recurrence_group_id == group_id]

    def get_events(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(event) for event in self._events]

    def is_slot_available(self, room_id: str, booking_date: str, start_time: str, end_time: str) -> bool:
        with self._lock:
            return self._is_available_locked(room_id, booking_date, start_time, end_time)

    def get_slot_availability(
        self,
        room_id: str,
        booking_date: str,
        now: datetime | None = None,
    ) -> list[SlotAvailability]:
        """Availability of every selectable half-hour block on ``booking_date``.

        Blocks that have already started when ``booking_date`` is today are
        reported unavailable.
        """
        effective_now = now or self._clock()
        is_today = parse_date(booking_date) == effective_now.date()
        now_minutes = effective_now.hour * 60 + effective_now.minute
        room_bookings = self.get_bookings_for_room(room_id, booking_date)

        blocks: list[SlotAvailability] = []
        for index, slot_start in enumerate(SELECTABLE_SLOTS):
            slot_end = TIME_SLOTS[index + 1]
            if is_today and to_minutes(slot_start) <= now_minutes:
                available = False
            else:
                available = can_reserve(slot_start, slot_end, room_bookings)
            blocks.append(SlotAvailability(start_time=slot_start, end_time=slot_end, available=available))
        return blocks

    def add_booking(self, request: BookingRequest) -> BookingResult:
        room = self._require_room(request.room_id)
        _validate_booking_request(request)

        with self._lock:
            if request.people_count > room.capacity_max:
                self._log_declined(request, "capacity_exceeded")
                return BookingResult(
                    success=False,
                    error=f"This room can hold a maximum of {room.capacity_max} people.",
                )

            if not self._is_available_locked(request.room_id, request.date, request.start_time, request.end_time):
                self._log_declined(request, "slot_unavailable")
                return BookingResult(success=False, error=SLOT_UNAVAILABLE_MESSAGE)

            booking = Booking.from_request(_new_booking_id(), request)
            self._bookings.append(booking)
            self._log_event(
                "BOOKING_CREATED",
                {
                    "booking_id": booking.booking_id,
                    "room_id": booking.room_id,
                    "date": booking.date,
                    "start_time": booking.start_time,
                    "end_time": booking.end_time,
                    "people_count": booking.people_count,
                },
            )
        return BookingResult(success=True, booking=booking)

    def add_recurring_bookings(self, base: RecurringBase, dates: Iterable[str]) -> RecurringBookingResult:
        """Book ``base`` on each of ``dates`` independently.

        Only slot availability is checked per date; capacity is not. Dates
        already booked stay booked when a later date conflicts.
        """
        self._require_room(base.room_id)
        requests = [base.for_date(booking_date) for booking_date in dates]
        for request in requests:
            _validate_booking_request(request)

        group_id = _new_group_id()
        booked_dates: list[str] = []
        conflict_dates: list[str] = []

        for request in requests:
            with self._lock:
                if self._is_available_locked(request.room_id, request.date, request.start_time, request.end_time):
                    self._bookings.append(Booking.from_request(_new_booking_id(), request, recurrence_group_id=group_id))
                    booked_dates.append(request.date)
                else:
                    conflict_dates.append(request.date)

        with self._lock:
            self._log_event(
                "RECURRING_BOOKINGS_CREATED",
                {
                    "group_id": group_id,
                    "room_id": base.room_id,
                    "start_time": base.start_time,
                    "end_time": base.end_time,
                    "booked_dates": list(booked_dates),
                    "conflict_dates": list(conflict_dates),
                },
            )

        return RecurringBookingResult(
            success=len(booked_dates) > 0,
            booked_dates=booked_dates,
            conflict_dates=conflict_dates,
            group_id=group_id,
        )

    def seed_demo_data(self, today: date | None = None) -> list[Booking]:
        effective_today = today or self._clock().date()
        created: list[Booking] = []
        with self._lock:
            for booking in generate_demo_bookings(effective_today):
                if booking.room_id in self._rooms_by_id and self._is_available_locked(
                    booking.room_id, booking.date, booking.start_time, booking.end_time
                ):
                    self._bookings.append(booking)
                    created.append(booking)

            self._log_event("DEMO_DATA_SEEDED", {"count": len(created), "date": effective_today.isoformat()})
        return created

    def export_events(self, path: str | Path) -> Path:
        """Write the event log to ``path`` as a YAML list."""
        target = Path(path)
        temp_path = target.with_suffix(target.suffix + ".tmp")
        events = self.get_events()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(yaml.safe_dump(events, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(target)
        except OSError as error:
            raise BookingStorageError(f"Failed to write event log: {target}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
        return target

    def _bookings_for_room_locked(self, room_id: str, booking_date: str) -> list[Booking]:
        return [row for row in self._bookings if row.room_id == room_id and row.date == booking_date]

    def _is_available_locked(self, room_id: str, booking_date: str, start_time: str, end_time: str) -> bool:
        for row in self._bookings_for_room_locked(room_id, booking_date):
            if has_time_overlap(start_time, end_time, row.start_time, row.end_time):
                return False
        return True

    def _require_room(self, room_id: str) -> Room:
        room = self._rooms_by_id.get(room_id)
        if room is None:
            raise ValueError(f"room_id not found: {room_id}")
        return room

    def _log_declined(self, request: BookingRequest, reason: str) -> None:
        self._log_event(
            "BOOKING_DECLINED",
            {
                "room_id": request.room_id,
                "date": request.date,
                "start_time": request.start_time,
                "end_time": request.end_time,
                "reason": reason,
            },
        )


def generate_demo_bookings(today: date) -> list[Booking]:
    booking_date = today.isoformat()
    return [
        Booking(
            booking_id="b-1",
            room_id="room-3",
            date=booking_date,
            start_time="09:00",
            end_time="10:00",
            full_name="Alice Johnson",
            email="alice@company.com",
            people_count=4,
        ),
        Booking(
            booking_id="b-2",
            room_id="room-5",
            date=booking_date,
            start_time="14:00",
            end_time="15:30",
            full_name="Bob Smith",
            email="bob@company.com",
            people_count=10,
        ),
    ]


def _new_booking_id() -> str:
    return f"b-{uuid4().hex}"


def _new_group_id() -> str:
    return f"rg-{uuid4().hex}"


def _validate_booking_request(request: BookingRequest) -> None:
    parse_date(request.date)
    if not is_on_slot_grid(request.start_time) or not is_on_slot_grid(request.end_time):
        raise ValueError(f"Booking times must be on the half-hour grid between {TIME_SLOTS[0]} and {TIME_SLOTS[-1]}.")
    if to_minutes(request.start_time) >= to_minutes(request.end_time):
        raise ValueError("Booking start time must be earlier than end time.")
    if request.people_count < 1:
        raise ValueError("At least 1 person required.")
    if not request.full_name or not request.full_name.strip():
        raise ValueError("Name is required.")
    if not request.email or not _EMAIL_RE.match(request.email.strip()):
        raise ValueError("Enter a valid email address.")
