"""Storage interface for bookings and time-slot policies.

Two implementations exist: ``SqlSlotStorage`` (the persistent one) and
``InMemorySlotStorage`` (tests and local demos). One of them is picked per
process through ``settings.SLOT_STORAGE``.
"""
from __future__ import annotations

import datetime as dt
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from ..models.booking import Booking, BookingStatus
from ..models.time_slot_config import TimeSlotConfig
from ..slots.keys import SlotKey


class KeyedLocks:
    """
    Un lock per chiave, creato al primo uso e rimosso quando nessuno lo
    tiene o lo attende: la tabella resta grande quanto le chiavi in uso.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # chiave -> [lock, numero di thread che lo tengono o lo attendono]
        self._locks: dict[str, list] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class SlotStorage(ABC):
    # --- policy degli slot ---
    @abstractmethod
    def get_config(self, key: SlotKey) -> TimeSlotConfig | None: ...

    @abstractmethod
    def upsert_config(
        self, key: SlotKey, *, max_capacity: int, is_active: bool, reason: str | None
    ) -> TimeSlotConfig: ...

    @abstractmethod
    def list_configs(
        self, start: dt.date | None = None, end: dt.date | None = None
    ) -> list[TimeSlotConfig]: ...

    # --- prenotazioni ---
    @abstractmethod
    def count_active_bookings(self, key: SlotKey) -> int:
        """Prenotazioni non annullate sulla stessa chiave."""

    @abstractmethod
    def add_booking(self, booking: Booking) -> Booking: ...

    @abstractmethod
    def get_booking(self, booking_id: int) -> Booking | None: ...

    @abstractmethod
    def list_bookings(
        self,
        user_id: int | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> list[Booking]: ...

    @abstractmethod
    def update_booking(self, booking: Booking, **changes) -> Booking: ...

    @abstractmethod
    def slot_lock(self, key: SlotKey):
        """Context manager che serializza check+insert sulla stessa chiave."""

    def set_booking_status(self, booking: Booking, status: BookingStatus) -> Booking:
        return self.update_booking(booking, status=status)


def booking_day(b: Booking) -> dt.date | None:
    if b.date is not None:
        return b.date
    if b.start_at is not None:
        return b.start_at.date()
    return None


def in_range(day: dt.date | None, start: dt.date | None, end: dt.date | None) -> bool:
    if day is None:
        return start is None and end is None
    return (start is None or day >= start) and (end is None or day <= end)
