import unittest
from datetime import date, datetime

from room_booking import BookingStore
from room_booking.web_app import create_app


def _clock() -> datetime:
    return datetime(2024, 1, 1, 7, 0)


def _booking_payload(**overrides):
    payload = {
        "room_id": "room-3",
        "date": "2024-01-01",
        "start_time": "10:00",
        "end_time": "11:00",
        "full_name": "Jane Doe",
        "email": "jane@company.com",
        "people_count": 4,
    }
    payload.update(overrides)
    return payload


class TestWebApp(unittest.TestCase):
    def setUp(self) -> None:
        self.store = BookingStore(clock=_clock)
        self.app = create_app(self.store, now_provider=_clock)
        self.client = self.app.test_client()

    def test_default_app_seeds_demo_bookings(self) -> None:
        client = create_app(now_provider=_clock).test_client()

        response = client.get("/api/bookings?date=2024-01-01")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()["bookings"]), 2)

    def test_list_rooms_with_people_filter(self) -> None:
        response = self.client.get("/api/rooms")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()["rooms"]), 6)

        response = self.client.get("/api/rooms?people=9")
        room_ids = [room["room_id"] for room in response.get_json()["rooms"]]
        self.assertEqual(room_ids, ["room-5"])

        response = self.client.get("/api/rooms?people=many")
        self.assertEqual(response.status_code, 400)

    def test_availability_grid(self) -> None:
        self.client.post("/api/bookings", json=_booking_payload())

        response = self.client.get("/api/rooms/room-3/availability?date=2024-01-01")

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(len(payload["slots"]), 20)
        unavailable = [slot["start_time"] for slot in payload["slots"] if not slot["available"]]
        self.assertEqual(unavailable, ["10:00", "10:30"])

        self.assertEqual(self.client.get("/api/rooms/room-99/availability").status_code, 404)
        self.assertEqual(self.client.get("/api/rooms/room-3/availability?date=tomorrow").status_code, 400)

    def test_create_booking_then_conflict(self) -> None:
        response = self.client.post("/api/bookings", json=_booking_payload())
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["booking"]["room_id"], "room-3")
        self.assertNotIn("recurrence_group_id", payload["booking"])

        response = self.client.post("/api/bookings", json=_booking_payload(start_time="10:30", end_time="11:30"))
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.get_json()["ok"])

        response = self.client.get("/api/bookings?room_id=room-3")
        self.assertEqual(len(response.get_json()["bookings"]), 1)

    def test_create_booking_capacity_and_validation_errors(self) -> None:
        response = self.client.post("/api/bookings", json=_booking_payload(people_count=7))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["message"], "This room can hold a maximum of 6 people.")

        response = self.client.post("/api/bookings", json=_booking_payload(email=""))
        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.get_json()["message"])

        response = self.client.post("/api/bookings", json=_booking_payload(start_time="10:10"))
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/api/bookings", json=_booking_payload(people_count="four"))
        self.assertEqual(response.status_code, 400)

    def test_recurring_weekly_with_conflict(self) -> None:
        self.client.post("/api/bookings", json=_booking_payload(date="2024-01-15"))

        payload = _booking_payload(start_date="2024-01-01", recurrence={"type": "weekly", "repeat_weeks": 4})
        payload.pop("date")
        response = self.client.post("/api/bookings/recurring", json=payload)

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["booked_dates"], ["2024-01-01", "2024-01-08", "2024-01-22"])
        self.assertEqual(body["conflict_dates"], ["2024-01-15"])
        self.assertEqual(len(body["bookings"]), 3)
        self.assertEqual({row["recurrence_group_id"] for row in body["bookings"]}, {body["group_id"]})

    def test_recurring_all_conflicts_is_409(self) -> None:
        self.client.post("/api/bookings", json=_booking_payload(date="2024-01-02"))

        payload = _booking_payload(
            start_date="2024-01-01",
            recurrence={"type": "custom", "repeat_weeks": 1, "custom_days": [2]},
        )
        response = self.client.post("/api/bookings/recurring", json=payload)

        self.assertEqual(response.status_code, 409)
        body = response.get_json()
        self.assertFalse(body["ok"])
        self.assertEqual(body["booked_dates"], [])
        self.assertEqual(body["conflict_dates"], ["2024-01-02"])

    def test_recurring_validates_up_front(self) -> None:
        base = _booking_payload(start_date="2024-01-01")

        response = self.client.post(
            "/api/bookings/recurring",
            json={**base, "recurrence": {"type": "custom", "repeat_weeks": 2, "custom_days": []}},
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/api/bookings/recurring",
            json={**base, "people_count": 9, "recurrence": {"type": "daily", "repeat_weeks": 1}},
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.store.get_bookings(), [])

        response = self.client.post(
            "/api/bookings/recurring",
            json={**base, "recurrence": {"type": "monthly", "repeat_weeks": 1}},
        )
        self.assertEqual(response.status_code, 400)

    def test_recurring_rejects_long_series(self) -> None:
        response = self.client.post(
            "/api/bookings/recurring",
            json={**_booking_payload(start_date="2024-01-01"), "recurrence": {"type": "daily", "repeat_weeks": 3000}},
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("repeat_weeks", response.get_json()["message"])
        self.assertEqual(self.store.get_bookings(), [])

    def test_recurring_none_books_single_date(self) -> None:
        response = self.client.post(
            "/api/bookings/recurring",
            json={**_booking_payload(start_date="2024-01-03"), "recurrence": {"type": "none", "repeat_weeks": 1}},
        )

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["booked_dates"], ["2024-01-03"])
        self.assertIsNone(body["group_id"])

    def test_chat_flow(self) -> None:
        response = self.client.post("/api/chat", json={})
        session_id = response.get_json()["session_id"]
        self.assertIn("Hi!", response.get_json()["content"])

        response = self.client.post(
            "/api/chat",
            json={"session_id": session_id, "text": "I need a room for 2 people tomorrow 10-11am"},
        )
        body = response.get_json()
        self.assertEqual(body["state"], "showing_options")
        room_id = body["suggestions"][0]["room"]["room_id"]

        response = self.client.post("/api/chat/book", json={"session_id": session_id, "room_id": room_id})
        self.assertEqual(response.get_json()["state"], "need_name")

        for text in ("Jane Doe", "jane@company.com", "yes"):
            response = self.client.post("/api/chat", json={"session_id": session_id, "text": text})

        body = response.get_json()
        self.assertEqual(body["state"], "done")
        self.assertEqual(body["booking"]["date"], date(2024, 1, 2).isoformat())
        self.assertEqual(len(self.store.get_bookings()), 1)
        self.assertNotIn(session_id, self.app.extensions["chat_sessions"])

        response = self.client.post("/api/chat/book", json={"session_id": session_id, "room_id": room_id})
        self.assertEqual(response.status_code, 404)

    def test_chat_sessions_are_bounded(self) -> None:
        client = create_app(self.store, now_provider=_clock, max_chat_sessions=10).test_client()
        first_session = client.post("/api/chat", json={}).get_json()["session_id"]

        session_ids = [client.post("/api/chat", json={}).get_json()["session_id"] for _ in range(49)]

        sessions = client.application.extensions["chat_sessions"]
        self.assertEqual(len(sessions), 10)
        self.assertEqual(list(sessions), session_ids[-10:])
        self.assertNotIn(first_session, sessions)

    def test_chat_session_use_refreshes_it(self) -> None:
        client = create_app(self.store, now_provider=_clock, max_chat_sessions=2).test_client()
        kept = client.post("/api/chat", json={}).get_json()["session_id"]
        evicted = client.post("/api/chat", json={}).get_json()["session_id"]

        response = client.post("/api/chat", json={"session_id": kept, "text": "hello"})
        self.assertEqual(response.get_json()["session_id"], kept)
        client.post("/api/chat", json={})

        sessions = client.application.extensions["chat_sessions"]
        self.assertIn(kept, sessions)
        self.assertNotIn(evicted, sessions)

    def test_chat_book_errors(self) -> None:
        response = self.client.post("/api/chat/book", json={"session_id": "missing", "room_id": "room-1"})
        self.assertEqual(response.status_code, 404)

        session_id = self.client.post("/api/chat", json={}).get_json()["session_id"]
        response = self.client.post("/api/chat/book", json={"session_id": session_id, "room_id": "room-1"})
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
