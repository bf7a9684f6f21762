from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable
import threading
from uuid import uuid4

from flask import Flask, jsonify, request

from .booking import BookingRequest, parse_date
from .catalog import filter_rooms_by_people
from .conversation import GREETING_MESSAGE, BookingConversation, FlowState
from .recurrence import RecurrenceConfig, RecurrenceType, generate_recurring_dates
from .store import BookingStore, RecurringBase

DEFAULT_MAX_CHAT_SESSIONS = 256

BOOKING_FIELDS = ("room_id", "start_time", "end_time", "full_name", "email", "people_count")


def create_app(
    store: BookingStore | None = None,
    now_provider: Callable[[], datetime] | None = None,
    max_chat_sessions: int = DEFAULT_MAX_CHAT_SESSIONS,
) -> Flask:
    app = Flask(__name__)
    clock: Callable[[], datetime] = now_provider or datetime.now
    booking_store = store or BookingStore.with_demo_data(clock().date(), clock=clock)
    if max_chat_sessions < 1:
        raise ValueError("max_chat_sessions must be greater than zero")
    # Least recently used first.
    conversations: OrderedDict[str, BookingConversation] = OrderedDict()
    conversations_lock = threading.Lock()
    app.extensions["chat_sessions"] = conversations

    def touch_session(session_id: str) -> BookingConversation | None:
        conversation = conversations.get(session_id)
        if conversation is not None:
            conversations.move_to_end(session_id)
        return conversation

    def finish_turn(session_id: str, state: FlowState) -> None:
        if state is FlowState.DONE:
            with conversations_lock:
                conversations.pop(session_id, None)

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get("/api/rooms")
    def list_rooms() -> Any:
        rooms = booking_store.list_rooms()
        people = request.args.get("people")
        if people is not None:
            try:
                people_count = int(people)
            except ValueError:
                return jsonify({"ok": False, "message": "people must be an integer."}), 400
            rooms = filter_rooms_by_people(rooms, people_count, people_count)
        return jsonify({"ok": True, "rooms": [room.to_dict() for room in rooms]})

    @app.get("/api/rooms/<room_id>/availability")
    def room_availability(room_id: str) -> Any:
        room = booking_store.get_room_by_id(room_id)
        if room is None:
            return jsonify({"ok": False, "message": "Room not found."}), 404

        now = clock()
        booking_date = str(request.args.get("date") or now.date().isoformat())
        try:
            slots = booking_store.get_slot_availability(room_id, booking_date, now=now)
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400

        return jsonify(
            {
                "ok": True,
                "room": room.to_dict(),
                "date": booking_date,
                "slots": [slot.to_dict() for slot in slots],
            }
        )

    @app.get("/api/bookings")
    def list_bookings() -> Any:
        room_id = request.args.get("room_id")
        booking_date = request.args.get("date")
        bookings = booking_store.get_bookings()
        if room_id:
            bookings = [row for row in bookings if row.room_id == room_id]
        if booking_date:
            bookings = [row for row in bookings if row.date == booking_date]
        bookings.sort(key=lambda row: (row.date, row.start_time, row.room_id))
        return jsonify({"ok": True, "bookings": [row.to_dict() for row in bookings]})

    @app.post("/api/bookings")
    def create_booking() -> Any:
        payload = request.get_json(silent=True) or {}
        try:
            booking_request = BookingRequest(date=str(payload.get("date", "")), **_base_fields(payload))
            result = booking_store.add_booking(booking_request)
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400

        if not result.success:
            return jsonify({"ok": False, "message": result.error}), 409
        return jsonify({"ok": True, "booking": result.booking.to_dict()})

    @app.post("/api/bookings/recurring")
    def create_recurring_bookings() -> Any:
        payload = request.get_json(silent=True) or {}
        try:
            base = RecurringBase(**_base_fields(payload))
            start_date = str(payload.get("start_date", ""))
            parse_date(start_date)
            config = RecurrenceConfig.from_dict(payload.get("recurrence") or {})
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400

        room = booking_store.get_room_by_id(base.room_id)
        if room is None:
            return jsonify({"ok": False, "message": "Room not found."}), 404
        if base.people_count > room.capacity_max:
            return jsonify({"ok": False, "message": f"This room can hold a maximum of {room.capacity_max} people."}), 409

        if config.type is RecurrenceType.NONE:
            try:
                result = booking_store.add_booking(base.for_date(start_date))
            except ValueError as error:
                return jsonify({"ok": False, "message": str(error)}), 400
            if not result.success:
                return jsonify({"ok": False, "message": result.error}), 409
            return jsonify(
                {
                    "ok": True,
                    "booked_dates": [start_date],
                    "conflict_dates": [],
                    "group_id": None,
                    "bookings": [result.booking.to_dict()],
                }
            )

        if config.type is RecurrenceType.CUSTOM and not config.custom_days:
            return jsonify({"ok": False, "message": "Choose at least one day of the week."}), 400

        try:
            dates = generate_recurring_dates(start_date, config)
            result = booking_store.add_recurring_bookings(base, dates)
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400

        response_payload = {
            "ok": result.success,
            **result.to_dict(),
            "bookings": [row.to_dict() for row in booking_store.get_bookings_for_group(result.group_id)],
        }
        if not result.success:
            response_payload["message"] = "None of the requested dates are available."
            return jsonify(response_payload), 409
        return jsonify(response_payload)

    @app.post("/api/chat")
    def chat() -> Any:
        payload = request.get_json(silent=True) or {}
        text = str(payload.get("text", "")).strip()
        session_id = str(payload.get("session_id", "")).strip()

        with conversations_lock:
            conversation = touch_session(session_id) if session_id else None
            if conversation is None:
                session_id = uuid4().hex
                conversation = BookingConversation(booking_store, clock=clock)
                conversations[session_id] = conversation
                while len(conversations) > max_chat_sessions:
                    conversations.popitem(last=False)

        if not text:
            return jsonify(
                {
                    "ok": True,
                    "session_id": session_id,
                    "content": GREETING_MESSAGE,
                    "state": conversation.state.value,
                    "suggestions": [],
                }
            )

        reply = conversation.handle_message(text)
        finish_turn(session_id, reply.state)
        return jsonify({"ok": True, "session_id": session_id, **reply.to_dict()})

    @app.post("/api/chat/book")
    def chat_book() -> Any:
        payload = request.get_json(silent=True) or {}
        session_id = str(payload.get("session_id", "")).strip()
        room_id = str(payload.get("room_id", "")).strip()

        with conversations_lock:
            conversation = touch_session(session_id)
        if conversation is None:
            return jsonify({"ok": False, "message": "Chat session not found."}), 404

        try:
            reply = conversation.choose_room(room_id)
        except ValueError as error:
            return jsonify({"ok": False, "message": str(error)}), 400
        finish_turn(session_id, reply.state)
        return jsonify({"ok": True, "session_id": session_id, **reply.to_dict()})

    return app


def _base_fields(payload: dict[str, Any]) -> dict[str, Any]:
    missing = [name for name in BOOKING_FIELDS if payload.get(name) in (None, "")]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    try:
        people_count = int(payload["people_count"])
    except (TypeError, ValueError) as error:
        raise ValueError("people_count must be an integer.") from error

    return {
        "room_id": str(payload["room_id"]).strip(),
        "start_time": str(payload["start_time"]).strip(),
        "end_time": str(payload["end_time"]).strip(),
        "full_name": str(payload["full_name"]).strip(),
        "email": str(payload["email"]).strip(),
        "people_count": people_count,
    }


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5000, debug=False)
