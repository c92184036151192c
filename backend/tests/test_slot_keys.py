from __future__ import annotations

import datetime as dt

import pytest

from myjantes.models.booking import Booking, BookingStatus
from myjantes.slots.keys import DateTimeRange, FixedSlot, SlotKey, resolve_slot_key, slot_key_for


def test_resolve_slot_key_concatenates_date_and_label() -> None:
    key = resolve_slot_key("2025-03-10", "09:00")
    assert key == SlotKey(dt.date(2025, 3, 10), "09:00")
    assert str(key) == "2025-03-10 09:00"


def test_resolve_slot_key_accepts_date_objects() -> None:
    assert resolve_slot_key(dt.date(2025, 3, 10), "09:00") == resolve_slot_key("2025-03-10", "09:00")


def test_unknown_label_has_no_key() -> None:
    # nessuna normalizzazione: "9:00" non è "09:00"
    assert resolve_slot_key("2025-03-10", "9:00") is None
    assert resolve_slot_key("2025-03-10", "09:30") is None
    assert resolve_slot_key("2025-03-10", "") is None


def test_custom_label_set() -> None:
    assert resolve_slot_key("2025-03-10", "07:30", labels=["07:30"]) is not None
    assert resolve_slot_key("2025-03-10", "09:00", labels=["07:30"]) is None


def test_range_bookings_are_never_governed() -> None:
    rng = DateTimeRange(dt.datetime(2025, 3, 10, 9), dt.datetime(2025, 3, 10, 12))
    assert slot_key_for(rng) is None
    assert slot_key_for(FixedSlot(dt.date(2025, 3, 10), "09:00")) == SlotKey(dt.date(2025, 3, 10), "09:00")


def test_range_must_end_after_start() -> None:
    with pytest.raises(ValueError):
        DateTimeRange(dt.datetime(2025, 3, 10, 12), dt.datetime(2025, 3, 10, 9))


def test_booking_time_variant_follows_columns() -> None:
    fixed = Booking(date=dt.date(2025, 3, 10), time_slot="09:00", status=BookingStatus.PENDING)
    ranged = Booking(start_at=dt.datetime(2025, 3, 10, 9), end_at=dt.datetime(2025, 3, 10, 17))
    assert fixed.booking_time == FixedSlot(dt.date(2025, 3, 10), "09:00")
    assert isinstance(ranged.booking_time, DateTimeRange)
    assert Booking().booking_time is None
