from __future__ import annotations

import datetime as dt
import itertools
import threading

from ..models.booking import Booking, BookingStatus
from ..models.time_slot_config import TimeSlotConfig
from ..slots.keys import SlotKey
from .base import KeyedLocks, SlotStorage, booking_day, in_range


class InMemorySlotStorage(SlotStorage):
    """Dizionari in memoria: per i test e le demo locali."""

    def __init__(self):
        self._configs: dict[SlotKey, TimeSlotConfig] = {}
        self._bookings: dict[int, Booking] = {}
        self._config_ids = itertools.count(1)
        self._booking_ids = itertools.count(1)
        self._data_lock = threading.RLock()
        self._locks = KeyedLocks()

    def get_config(self, key):
        return self._configs.get(key)

    def upsert_config(self, key, *, max_capacity, is_active, reason):
        with self._data_lock:
            cfg = self._configs.get(key)
            if cfg is None:
                cfg = TimeSlotConfig(id=next(self._config_ids), date=key.date, time_slot=key.time_slot)
                self._configs[key] = cfg
            cfg.max_capacity = max_capacity
            cfg.is_active = is_active
            cfg.reason = reason
            cfg.updated_at = dt.datetime.now(dt.timezone.utc)
            return cfg

    def list_configs(self, start=None, end=None):
        with self._data_lock:
            out = [c for c in self._configs.values() if in_range(c.date, start, end)]
        return sorted(out, key=lambda c: (c.date, c.time_slot))

    def count_active_bookings(self, key):
        with self._data_lock:
            return sum(
                1
                for b in self._bookings.values()
                if b.date == key.date and b.time_slot == key.time_slot and b.status != BookingStatus.CANCELLED
            )

    def add_booking(self, booking):
        with self._data_lock:
            booking.id = next(self._booking_ids)
            if booking.status is None:
                booking.status = BookingStatus.PENDING
            if booking.created_at is None:
                booking.created_at = dt.datetime.now(dt.timezone.utc)
            self._bookings[booking.id] = booking
        return booking

    def get_booking(self, booking_id):
        return self._bookings.get(booking_id)

    def list_bookings(self, user_id=None, start=None, end=None):
        with self._data_lock:
            items = list(self._bookings.values())
        if user_id is not None:
            items = [b for b in items if b.user_id == user_id]
        if start or end:
            items = [b for b in items if in_range(booking_day(b), start, end)]
        return sorted(items, key=lambda b: b.id)

    def update_booking(self, booking: Booking, **changes) -> Booking:
        with self._data_lock:
            for field, value in changes.items():
                setattr(booking, field, value)
        return booking

    def slot_lock(self, key):
        return self._locks.hold(str(key))
