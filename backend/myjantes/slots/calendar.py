from __future__ import annotations

import datetime as dt
from typing import Iterable

from ..config import settings
from ..models.booking import BookingStatus


def _days(start: dt.date, end: dt.date):
    cur = start
    while cur <= end:
        yield cur
        cur += dt.timedelta(days=1)


def project(
    bookings: Iterable,
    configs: Iterable,
    start: dt.date,
    end: dt.date,
    labels: Iterable[str] | None = None,
    default_capacity: int | None = None,
) -> dict[str, dict[str, dict]]:
    """
    Griglia grid[data][slot] = {bookings, config, capacity, booked, available, isActive, reason}.
    Sola lettura; le prenotazioni a intervallo libero non compaiono nella griglia.
    """
    labels = tuple(labels) if labels is not None else settings.time_slot_labels
    if default_capacity is None:
        default_capacity = settings.DEFAULT_SLOT_CAPACITY

    by_key: dict[tuple[dt.date, str], list] = {}
    for b in bookings:
        if b.date is None or not b.time_slot:
            continue
        by_key.setdefault((b.date, b.time_slot), []).append(b)
    cfg_by_key = {(c.date, c.time_slot): c for c in configs}

    grid: dict[str, dict[str, dict]] = {}
    for day in _days(start, end):
        row = {}
        for label in labels:
            items = by_key.get((day, label), [])
            cfg = cfg_by_key.get((day, label))
            capacity = cfg.max_capacity if cfg else default_capacity
            active = bool(cfg.is_active) if cfg else True
            booked = sum(1 for b in items if b.status != BookingStatus.CANCELLED)
            row[label] = {
                "bookings": items,
                "config": cfg,
                "capacity": capacity,
                "booked": booked,
                "available": max(capacity - booked, 0) if active else 0,
                "isActive": active,
                "reason": cfg.reason if cfg else None,
            }
        grid[day.isoformat()] = row
    return grid
