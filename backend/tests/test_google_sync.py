from __future__ import annotations

import datetime as dt

import requests

from myjantes.models.booking import Booking, BookingStatus
from myjantes.services.calendar import booking_window

FIXED = {"serviceId": 1, "date": "2025-03-10", "timeSlot": "09:00", "vehicleBrand": "Mini", "vehiclePlate": "MN-321-OP"}


def test_status_without_credentials(client, admin_headers) -> None:
    r = client.get("/api/google/status", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["connected"] is False


def test_sync_without_credentials_is_400(client, admin_headers, customer_headers) -> None:
    bid = client.post("/api/bookings", json=FIXED, headers=customer_headers).json()["id"]
    r = client.post("/api/google/sync-booking", json={"bookingId": bid}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Google Calendar non configuré"


def test_sync_stores_event_id(client, admin_headers, customer_headers, monkeypatch) -> None:
    bid = client.post("/api/bookings", json=FIXED, headers=customer_headers).json()["id"]
    calls = []

    def fake_event(*, booking, client_name, client_email, calendar_id=None):
        calls.append((booking.id, client_email))
        return {"id": "evt-42", "htmlLink": "https://calendar.google.com/event?eid=evt-42"}

    monkeypatch.setattr("myjantes.routers.google.create_booking_event", fake_event)
    r = client.post("/api/google/sync-booking", json={"bookingId": bid}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["eventId"] == "evt-42"
    assert calls == [(bid, "client@example.com")]

    booked = client.get("/api/admin/bookings", headers=admin_headers).json()
    assert booked[0]["googleCalendarEventId"] == "evt-42"

    # seconda sync: nessun evento duplicato
    again = client.post("/api/google/sync-booking", json={"bookingId": bid}, headers=admin_headers)
    assert again.status_code == 409
    assert len(calls) == 1


def test_sync_remote_failure_is_502(client, admin_headers, customer_headers, monkeypatch) -> None:
    bid = client.post("/api/bookings", json=FIXED, headers=customer_headers).json()["id"]

    def failing(**kwargs):
        raise requests.HTTPError("403 Forbidden")

    monkeypatch.setattr("myjantes.routers.google.create_booking_event", failing)
    r = client.post("/api/google/sync-booking", json={"bookingId": bid}, headers=admin_headers)
    assert r.status_code == 502


def test_sync_unknown_booking_is_404(client, admin_headers) -> None:
    assert client.post("/api/google/sync-booking", json={"bookingId": 404}, headers=admin_headers).status_code == 404


def test_fixed_slot_window_is_one_hour_in_shop_timezone() -> None:
    b = Booking(date=dt.date(2025, 7, 1), time_slot="14:00", status=BookingStatus.CONFIRMED)
    start, end = booking_window(b)
    assert start.isoformat() == "2025-07-01T14:00:00+02:00"
    assert end - start == dt.timedelta(hours=1)


def test_range_window_is_kept_as_is() -> None:
    b = Booking(start_at=dt.datetime(2025, 1, 15, 9), end_at=dt.datetime(2025, 1, 15, 17))
    start, end = booking_window(b)
    assert start.isoformat() == "2025-01-15T09:00:00+01:00"
    assert end.hour == 17
