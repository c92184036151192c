"""Slot keys and booking time representation.

A booking is either placed on a named slot of a day (``FixedSlot``) or, for
legacy bookings, on a free start/end range (``DateTimeRange``). Only fixed
slots resolve to a ``SlotKey`` and are governed by capacity policies.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Iterable, Union

from ..config import settings


@dataclass(frozen=True)
class SlotKey:
    date: dt.date
    time_slot: str

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.time_slot}"


@dataclass(frozen=True)
class FixedSlot:
    date: dt.date
    label: str


@dataclass(frozen=True)
class DateTimeRange:
    start: dt.datetime
    end: dt.datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError("La fin doit être après le début")


BookingTime = Union[FixedSlot, DateTimeRange]


def parse_day(value: dt.date | str) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(value.strip())


def known_labels(labels: Iterable[str] | None = None) -> tuple[str, ...]:
    return tuple(labels) if labels is not None else settings.time_slot_labels


def resolve_slot_key(
    day: dt.date | str, time_slot: str | None, labels: Iterable[str] | None = None
) -> SlotKey | None:
    """
    Chiave canonica (data, slot). Nessuna normalizzazione oltre
    l'uguaglianza di stringa: un'etichetta fuori dall'insieme noto non ha chiave.
    """
    if not time_slot or time_slot not in known_labels(labels):
        return None
    return SlotKey(parse_day(day), time_slot)


def slot_key_for(booking_time: BookingTime, labels: Iterable[str] | None = None) -> SlotKey | None:
    if isinstance(booking_time, FixedSlot):
        return resolve_slot_key(booking_time.date, booking_time.label, labels)
    # le prenotazioni a intervallo libero non consumano capacità
    return None
