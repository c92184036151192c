from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager

from sqlalchemy import and_, func, or_, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.booking import Booking, BookingStatus
from ..models.time_slot_config import TimeSlotConfig
from ..slots.keys import SlotKey
from .base import KeyedLocks, SlotStorage

logger = logging.getLogger(__name__)


class SqlSlotStorage(SlotStorage):
    # condiviso da tutte le sessioni del processo
    _locks = KeyedLocks()

    def __init__(self, db: Session):
        self.db = db

    # -----------------------------------------
    # Policy
    # -----------------------------------------
    def get_config(self, key: SlotKey) -> TimeSlotConfig | None:
        return (
            self.db.query(TimeSlotConfig)
            .filter(TimeSlotConfig.date == key.date, TimeSlotConfig.time_slot == key.time_slot)
            .first()
        )

    def _write_config(self, key: SlotKey, max_capacity: int, is_active: bool, reason: str | None) -> TimeSlotConfig:
        cfg = self.get_config(key)
        if cfg is None:
            cfg = TimeSlotConfig(date=key.date, time_slot=key.time_slot)
            self.db.add(cfg)
        cfg.max_capacity = max_capacity
        cfg.is_active = is_active
        cfg.reason = reason
        self.db.commit()
        return cfg

    def upsert_config(self, key, *, max_capacity, is_active, reason):
        try:
            cfg = self._write_config(key, max_capacity, is_active, reason)
        except IntegrityError:
            # riga creata in parallelo da un'altra richiesta: vince l'ultimo
            self.db.rollback()
            logger.info("Config %s creata in concorrenza, sovrascrivo", key)
            cfg = self._write_config(key, max_capacity, is_active, reason)
        self.db.refresh(cfg)
        return cfg

    def list_configs(self, start=None, end=None):
        q = self.db.query(TimeSlotConfig)
        if start:
            q = q.filter(TimeSlotConfig.date >= start)
        if end:
            q = q.filter(TimeSlotConfig.date <= end)
        return q.order_by(TimeSlotConfig.date.asc(), TimeSlotConfig.time_slot.asc()).all()

    # -----------------------------------------
    # Bookings
    # -----------------------------------------
    def count_active_bookings(self, key: SlotKey) -> int:
        return (
            self.db.query(func.count(Booking.id))
            .filter(
                Booking.date == key.date,
                Booking.time_slot == key.time_slot,
                Booking.status != BookingStatus.CANCELLED,
            )
            .scalar()
            or 0
        )

    def add_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def get_booking(self, booking_id: int) -> Booking | None:
        return self.db.get(Booking, booking_id)

    def list_bookings(self, user_id=None, start=None, end=None):
        q = self.db.query(Booking)
        if user_id is not None:
            q = q.filter(Booking.user_id == user_id)
        if start or end:
            fixed = [Booking.date.isnot(None)]
            ranged = [Booking.date.is_(None)]
            if start:
                fixed.append(Booking.date >= start)
                ranged.append(Booking.start_at >= dt.datetime.combine(start, dt.time.min))
            if end:
                fixed.append(Booking.date <= end)
                ranged.append(Booking.start_at < dt.datetime.combine(end + dt.timedelta(days=1), dt.time.min))
            q = q.filter(or_(and_(*fixed), and_(*ranged)))
        return q.order_by(Booking.id.asc()).all()

    def update_booking(self, booking: Booking, **changes) -> Booking:
        for field, value in changes.items():
            setattr(booking, field, value)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    @contextmanager
    def slot_lock(self, key: SlotKey):
        """
        Lock di processo + advisory lock Postgres legato alla transazione:
        viene rilasciato dal commit dell'insert (o dal rollback).
        """
        with self._locks.hold(str(key)):
            if self.db.get_bind().dialect.name == "postgresql":
                self.db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:k))"), {"k": str(key)})
            try:
                yield
            except Exception:
                self.db.rollback()
                raise
