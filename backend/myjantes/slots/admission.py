"""Capacity policies and the booking admission check.

A (date, time slot) key holds at most ``max_capacity`` non-cancelled bookings
and admits nothing while inactive. Keys without a config row use the default
policy (capacity ``DEFAULT_SLOT_CAPACITY``, active).
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterable

from ..config import settings
from ..errors import SlotUnavailable
from ..models.booking import Booking
from .keys import SlotKey, resolve_slot_key, slot_key_for

logger = logging.getLogger(__name__)

REASON_FULL = "full"
REASON_UNAVAILABLE = "unavailable"

ENFORCED = "enforced"
ADVISORY = "advisory"


@dataclass(frozen=True)
class Policy:
    max_capacity: int
    is_active: bool = True
    reason: str | None = None
    is_default: bool = False


@dataclass(frozen=True)
class Admission:
    admitted: bool
    reason: str | None = None
    key: SlotKey | None = None
    booked: int = 0
    capacity: int | None = None

    @property
    def governed(self) -> bool:
        return self.key is not None


def default_policy() -> Policy:
    return Policy(max_capacity=settings.DEFAULT_SLOT_CAPACITY, is_active=True, is_default=True)


def resolve_policy(storage, key: SlotKey) -> Policy:
    cfg = storage.get_config(key)
    if cfg is None:
        return default_policy()
    return Policy(max_capacity=cfg.max_capacity, is_active=bool(cfg.is_active), reason=cfg.reason)


def check_key(storage, key: SlotKey | None) -> Admission:
    if key is None:
        # slot non governato (etichetta sconosciuta o intervallo libero)
        return Admission(admitted=True)

    policy = resolve_policy(storage, key)
    if not policy.is_active:
        return Admission(False, policy.reason or REASON_UNAVAILABLE, key, capacity=policy.max_capacity)

    booked = storage.count_active_bookings(key)
    if booked >= policy.max_capacity:
        return Admission(False, REASON_FULL, key, booked, policy.max_capacity)
    return Admission(True, None, key, booked, policy.max_capacity)


def can_admit(storage, day: dt.date | str, time_slot: str, labels: Iterable[str] | None = None) -> Admission:
    return check_key(storage, resolve_slot_key(day, time_slot, labels))


def admission_mode(mode: str | None = None) -> str:
    mode = (mode or settings.BOOKING_ADMISSION or ENFORCED).strip().lower()
    if mode not in (ENFORCED, ADVISORY):
        raise ValueError(f"BOOKING_ADMISSION non valido: {mode!r}")
    return mode


def admit_booking(storage, booking: Booking, mode: str | None = None) -> Booking:
    """
    Controllo di capacità e insert sotto lo stesso lock dello slot.
    In modalità "advisory" uno slot pieno viene solo loggato.
    """
    mode = admission_mode(mode)
    key = slot_key_for(booking.booking_time) if booking.booking_time else None
    if key is None:
        return storage.add_booking(booking)

    with storage.slot_lock(key):
        result = check_key(storage, key)
        if not result.admitted:
            if mode == ENFORCED:
                logger.info("Prenotazione rifiutata su %s: %s (%s/%s)", key, result.reason, result.booked, result.capacity)
                raise SlotUnavailable(str(key), result.reason)
            logger.warning("Overbooking su %s (%s), modalità advisory", key, result.reason)
        return storage.add_booking(booking)
