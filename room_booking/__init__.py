from .booking import (
	DAY_NAMES_FULL,
	DAY_NAMES_SHORT,
	SELECTABLE_SLOTS,
	TIME_SLOTS,
	Booking,
	BookingRequest,
	Weekday,
	can_reserve,
	format_display_date,
	format_time,
	has_time_overlap,
	weekday_index,
)
from .catalog import DEFAULT_ROOMS, BookingStorageError, Room, load_rooms
from .natural_language import BookingIntent, parse_booking_intent
from .recurrence import RecurrenceConfig, RecurrenceType, generate_recurring_dates
from .store import (
	BookingResult,
	BookingStore,
	RecurringBase,
	RecurringBookingResult,
	SlotAvailability,
	generate_demo_bookings,
)

__all__ = [
	"DAY_NAMES_FULL",
	"DAY_NAMES_SHORT",
	"SELECTABLE_SLOTS",
	"TIME_SLOTS",
	"Booking",
	"BookingRequest",
	"Weekday",
	"can_reserve",
	"format_display_date",
	"format_time",
	"has_time_overlap",
	"weekday_index",
	"DEFAULT_ROOMS",
	"BookingStorageError",
	"Room",
	"load_rooms",
	"BookingIntent",
	"parse_booking_intent",
	"RecurrenceConfig",
	"RecurrenceType",
	"generate_recurring_dates",
	"BookingResult",
	"BookingStore",
	"RecurringBase",
	"RecurringBookingResult",
	"SlotAvailability",
	"generate_demo_bookings",
]
