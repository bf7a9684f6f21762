from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from room_booking import BookingRequest, BookingStore, RecurrenceConfig, RecurringBase, generate_recurring_dates

mcp = FastMCP(
    "Room Booking MCP Server",
    instructions="Expose meeting room availability and booking from the room_booking project.",
    json_response=True,
)

STORE = BookingStore.with_demo_data()


@mcp.resource("booking://rooms")
async def list_rooms() -> list[dict[str, Any]]:
    """List bookable meeting rooms with their capacity ranges."""
    return [room.to_dict() for room in STORE.list_rooms()]


@mcp.tool()
def list_bookings(room_id: str | None = None, date: str | None = None) -> list[dict[str, Any]]:
    """Return bookings, optionally filtered by room and date (YYYY-MM-DD)."""
    records = STORE.get_bookings()
    filtered = [
        record
        for record in records
        if (room_id is None or record.room_id == room_id) and (date is None or record.date == date)
    ]
    return [record.to_dict() for record in filtered]


@mcp.tool()
def check_availability(room_id: str, date: str, start_time: str, end_time: str) -> bool:
    """Return True if the room is free for [start_time, end_time) on date."""
    return STORE.is_slot_available(room_id, date, start_time, end_time)


@mcp.tool()
def book_room(
    room_id: str,
    date: str,
    start_time: str,
    end_time: str,
    full_name: str,
    email: str,
    people_count: int,
) -> dict[str, Any]:
    """Book a room for one date. Times are HH:MM on the half-hour grid."""
    result = STORE.add_booking(
        BookingRequest(
            room_id=room_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            full_name=full_name,
            email=email,
            people_count=people_count,
        )
    )
    return result.to_dict()


@mcp.tool()
def book_recurring(
    room_id: str,
    start_date: str,
    start_time: str,
    end_time: str,
    full_name: str,
    email: str,
    people_count: int,
    recurrence_type: str = "weekly",
    repeat_weeks: int = 4,
    custom_days: list[int] | None = None,
) -> dict[str, Any]:
    """Book a room on every date of a daily, weekly or custom pattern (0=Sunday, at most 12 weeks)."""
    config = RecurrenceConfig.from_dict(
        {"type": recurrence_type, "repeat_weeks": repeat_weeks, "custom_days": custom_days or []}
    )
    base = RecurringBase(
        room_id=room_id,
        start_time=start_time,
        end_time=end_time,
        full_name=full_name,
        email=email,
        people_count=people_count,
    )
    result = STORE.add_recurring_bookings(base, generate_recurring_dates(start_date, config))
    return result.to_dict()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
