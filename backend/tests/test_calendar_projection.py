from __future__ import annotations

import datetime as dt

from myjantes.models.booking import Booking, BookingStatus
from myjantes.models.time_slot_config import TimeSlotConfig
from myjantes.slots.calendar import project

LABELS = ("09:00", "10:00")


def _b(day, slot, status=BookingStatus.PENDING):
    return Booking(id=None, date=day, time_slot=slot, status=status)


def test_grid_covers_every_day_and_label() -> None:
    grid = project([], [], dt.date(2025, 3, 10), dt.date(2025, 3, 12), labels=LABELS, default_capacity=2)
    assert list(grid) == ["2025-03-10", "2025-03-11", "2025-03-12"]
    cell = grid["2025-03-11"]["10:00"]
    assert cell == {
        "bookings": [],
        "config": None,
        "capacity": 2,
        "booked": 0,
        "available": 2,
        "isActive": True,
        "reason": None,
    }


def test_grid_counts_non_cancelled_and_applies_overrides() -> None:
    day = dt.date(2025, 3, 10)
    bookings = [
        _b(day, "09:00"),
        _b(day, "09:00", BookingStatus.CANCELLED),
        _b(day, "10:00", BookingStatus.CONFIRMED),
        Booking(start_at=dt.datetime(2025, 3, 10, 9), end_at=dt.datetime(2025, 3, 10, 11)),
    ]
    configs = [TimeSlotConfig(date=day, time_slot="10:00", max_capacity=4, is_active=False, reason="Inventaire")]

    grid = project(bookings, configs, day, day, labels=LABELS, default_capacity=2)
    nine, ten = grid["2025-03-10"]["09:00"], grid["2025-03-10"]["10:00"]

    assert len(nine["bookings"]) == 2
    assert nine["booked"] == 1
    assert nine["available"] == 1

    assert ten["capacity"] == 4
    assert ten["isActive"] is False
    assert ten["available"] == 0
    assert ten["reason"] == "Inventaire"
