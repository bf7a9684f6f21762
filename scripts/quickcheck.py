from __future__ import annotations

from datetime import date
from pathlib import Path
import traceback

from room_booking import (
    BookingRequest,
    BookingStore,
    RecurrenceConfig,
    RecurrenceType,
    RecurringBase,
    generate_recurring_dates,
)


def main() -> int:
    print("[INFO] Room Booking Quick Check")

    today = date(2024, 1, 1)
    store = BookingStore.with_demo_data(today)
    print(f"[OK] Demo bookings seeded: {len(store.get_bookings())} records")

    single = store.add_booking(
        BookingRequest(
            room_id="room-3",
            date=today.isoformat(),
            start_time="10:00",
            end_time="11:00",
            full_name="Quick Check",
            email="quick.check@company.com",
            people_count=5,
        )
    )
    print(f"[OK] Single booking success: {single.success}")

    dates = generate_recurring_dates(today.isoformat(), RecurrenceConfig(type=RecurrenceType.WEEKLY, repeat_weeks=4))
    recurring = store.add_recurring_bookings(
        RecurringBase(
            room_id="room-3",
            start_time="09:30",
            end_time="10:30",
            full_name="Quick Check",
            email="quick.check@company.com",
            people_count=5,
        ),
        dates,
    )
    print(f"[OK] Recurring booked: {recurring.booked_dates}")
    print(f"[OK] Recurring conflicts: {recurring.conflict_dates}")

    event_log = store.export_events(Path("data") / "booking_events.yaml")
    print(f"[OK] Event Log YAML: {event_log.resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
