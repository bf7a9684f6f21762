from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from .booking import BookingRequest, Booking, format_display_date, format_time, is_on_slot_grid, to_minutes
from .catalog import Room, rooms_for_party
from .natural_language import BookingIntent, parse_booking_intent
from .store import BookingStore

GREETING_MESSAGE = (
    "Hi! I can help you find and book a meeting room. Just tell me what you need - "
    'for example: "I need a room for 6 people today from 3-4pm".'
)
CONFIRM_WORDS = {"yes", "y", "confirm"}


class FlowState(str, Enum):
    GREETING = "greeting"
    NEED_DETAILS = "need_details"
    SHOWING_OPTIONS = "showing_options"
    NEED_NAME = "need_name"
    NEED_EMAIL = "need_email"
    CONFIRMING = "confirming"
    DONE = "done"


@dataclass(frozen=True)
class RoomSuggestion:
    room: Room
    date: str
    start_time: str
    end_time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "room": self.room.to_dict(),
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass(frozen=True)
class ChatReply:
    content: str
    state: FlowState
    suggestions: list[RoomSuggestion] = field(default_factory=list)
    booking: Booking | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": self.content,
            "state": self.state.value,
            "suggestions": [suggestion.to_dict() for suggestion in self.suggestions],
        }
        if self.booking is not None:
            payload["booking"] = self.booking.to_dict()
        return payload


def find_available_rooms(
    store: BookingStore,
    people_count: int,
    booking_date: str,
    start_time: str,
    end_time: str,
) -> list[RoomSuggestion]:
    return [
        RoomSuggestion(room=room, date=booking_date, start_time=start_time, end_time=end_time)
        for room in rooms_for_party(store.list_rooms(), people_count)
        if store.is_slot_available(room.room_id, booking_date, start_time, end_time)
    ]


class BookingConversation:
    """Collects booking fields from chat messages until a booking can be made.

    Each message is parsed with :func:`parse_booking_intent` and merged into
    what was collected so far. The booking itself always goes through
    :meth:`BookingStore.add_booking`.
    """

    def __init__(self, store: BookingStore, clock: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self._clock: Callable[[], datetime] = clock or datetime.now
        self.state = FlowState.GREETING
        self.collected = BookingIntent()
        self.room_id: str | None = None
        self.full_name: str | None = None
        self.booking: Booking | None = None
        self._suggestions: list[RoomSuggestion] = []

    def reset(self) -> None:
        self.state = FlowState.GREETING
        self.collected = BookingIntent()
        self.room_id = None
        self.full_name = None
        self.booking = None
        self._suggestions = []

    def handle_message(self, text: str) -> ChatReply:
        if self.state is FlowState.DONE:
            self.reset()

        intent = parse_booking_intent(text, today=self._clock().date())
        merged = self.collected.merged_with(intent)

        if self.state is FlowState.NEED_NAME and intent.email is None and len(text.split()) >= 2:
            self.full_name = text.strip()

        self.collected = merged

        if merged.people_count is None and merged.date is None and merged.start_time is None:
            return self._reply(
                "I'd be happy to help! Could you tell me:\n"
                "- How many people?\n"
                "- What date? (today, tomorrow)\n"
                "- What time range?",
                FlowState.NEED_DETAILS,
            )
        if merged.people_count is None:
            return self._reply("How many people will be attending the meeting?", FlowState.NEED_DETAILS)
        if merged.date is None:
            return self._reply('What date would you like? You can say "today" or "tomorrow".', FlowState.NEED_DETAILS)
        if not merged.has_time_range:
            return self._reply(
                'What time range works? For example, "2-3pm" or "10am to 11:30am".',
                FlowState.NEED_DETAILS,
            )

        if self.state in (FlowState.NEED_NAME, FlowState.NEED_EMAIL, FlowState.CONFIRMING):
            return self._continue_selected_booking(text)
        return self._suggest_rooms(merged)

    def choose_room(self, room_id: str) -> ChatReply:
        suggestion = next((item for item in self._suggestions if item.room.room_id == room_id), None)
        if suggestion is None:
            raise ValueError(f"room {room_id} is not among the suggested rooms")

        self.room_id = room_id
        self.collected = replace(
            self.collected,
            date=suggestion.date,
            start_time=suggestion.start_time,
            end_time=suggestion.end_time,
        )
        return self._reply(f"Great choice! {suggestion.room.name} it is. What's your full name?", FlowState.NEED_NAME)

    def _suggest_rooms(self, intent: BookingIntent) -> ChatReply:
        if not _is_bookable_range(intent.start_time, intent.end_time):
            self.collected = replace(self.collected, start_time=None, end_time=None)
            return self._reply(
                "Rooms can be booked in half-hour slots between 8:00 AM and 6:00 PM. "
                'What time range works? For example, "2-3pm".',
                FlowState.NEED_DETAILS,
            )

        suggestions = find_available_rooms(
            self.store,
            intent.people_count,
            intent.date,
            intent.start_time,
            intent.end_time,
        )
        self._suggestions = suggestions
        if not suggestions:
            return self._reply(
                "I couldn't find any available rooms matching your criteria. "
                "Try a different time, date, or adjust the number of people.",
                FlowState.NEED_DETAILS,
            )

        plural = "s" if len(suggestions) > 1 else ""
        return self._reply(
            f"I found {len(suggestions)} room{plural} available for {intent.people_count} people "
            f"on {format_display_date(intent.date)} from {format_time(intent.start_time)} "
            f"to {format_time(intent.end_time)}:",
            FlowState.SHOWING_OPTIONS,
            suggestions=suggestions,
        )

    def _continue_selected_booking(self, text: str) -> ChatReply:
        if self.state is FlowState.NEED_NAME:
            if self.full_name:
                return self._reply(f"Great, {self.full_name}! What's your email address?", FlowState.NEED_EMAIL)
            return self._reply("Please provide your full name (first and last).", FlowState.NEED_NAME)

        if self.state is FlowState.NEED_EMAIL:
            if self.collected.email:
                return self._reply(self._summary(), FlowState.CONFIRMING)
            return self._reply("Please provide a valid email address.", FlowState.NEED_EMAIL)

        if text.strip().lower() in CONFIRM_WORDS:
            return self._confirm()

        self.reset()
        return self._reply(
            "No problem! What would you like to change? You can start over by telling me your requirements.",
            FlowState.GREETING,
        )

    def _confirm(self) -> ChatReply:
        intent = self.collected
        request = BookingRequest(
            room_id=self.room_id or "",
            date=intent.date or "",
            start_time=intent.start_time or "",
            end_time=intent.end_time or "",
            full_name=self.full_name or "",
            email=intent.email or "",
            people_count=intent.people_count or 0,
        )
        try:
            result = self.store.add_booking(request)
        except ValueError as error:
            return self._reply(str(error), FlowState.NEED_DETAILS)

        if not result.success:
            return self._reply(result.error or "Something went wrong. Please try again.", FlowState.NEED_DETAILS)

        self.booking = result.booking
        room = self.store.get_room_by_id(request.room_id)
        return self._reply(
            f"You're all set! {room.name if room else request.room_id} is booked for "
            f"{format_display_date(request.date)} from {format_time(request.start_time)} "
            f"to {format_time(request.end_time)}.",
            FlowState.DONE,
            booking=result.booking,
        )

    def _summary(self) -> str:
        intent = self.collected
        room = self.store.get_room_by_id(self.room_id or "")
        return (
            "Here's your booking summary:\n\n"
            f"- Room: {room.name if room else self.room_id}\n"
            f"- Date: {format_display_date(intent.date)}\n"
            f"- Time: {format_time(intent.start_time)} - {format_time(intent.end_time)}\n"
            f"- People: {intent.people_count}\n"
            f"- Name: {self.full_name}\n"
            f"- Email: {intent.email}\n\n"
            "Shall I confirm this reservation? (yes/no)"
        )

    def _reply(
        self,
        content: str,
        state: FlowState,
        suggestions: list[RoomSuggestion] | None = None,
        booking: Booking | None = None,
    ) -> ChatReply:
        self.state = state
        return ChatReply(content=content, state=state, suggestions=suggestions or [], booking=booking)


def _is_bookable_range(start_time: str | None, end_time: str | None) -> bool:
    if start_time is None or end_time is None:
        return False
    if not is_on_slot_grid(start_time) or not is_on_slot_grid(end_time):
        return False
    return to_minutes(start_time) < to_minutes(end_time)
