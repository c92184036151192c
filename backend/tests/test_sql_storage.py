from __future__ import annotations

import datetime as dt
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from myjantes.database import Base
from myjantes.errors import SlotUnavailable
from myjantes.models.booking import Booking, BookingStatus
from myjantes.models.time_slot_config import TimeSlotConfig
from myjantes.slots.admission import admit_booking
from myjantes.slots.keys import resolve_slot_key
from myjantes.storage.sql import SqlSlotStorage


def _booking(user_id: int, day: dt.date = dt.date(2025, 3, 10), slot: str = "09:00") -> Booking:
    return Booking(
        user_id=user_id,
        service_id=1,
        date=day,
        time_slot=slot,
        vehicle_brand="Renault",
        vehicle_plate="CD-456-EF",
        status=BookingStatus.PENDING,
    )


def test_duplicate_config_rows_are_rejected_by_the_database(db) -> None:
    db.add(TimeSlotConfig(date=dt.date(2025, 3, 10), time_slot="09:00", max_capacity=2, is_active=True))
    db.commit()
    db.add(TimeSlotConfig(date=dt.date(2025, 3, 10), time_slot="09:00", max_capacity=5, is_active=True))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_list_bookings_filters_by_user_and_range(sql_storage) -> None:
    sql_storage.add_booking(_booking(1, dt.date(2025, 3, 9)))
    sql_storage.add_booking(_booking(1, dt.date(2025, 3, 10)))
    sql_storage.add_booking(_booking(2, dt.date(2025, 3, 11)))
    sql_storage.add_booking(
        Booking(
            user_id=2,
            service_id=1,
            start_at=dt.datetime(2025, 3, 10, 14),
            end_at=dt.datetime(2025, 3, 10, 17),
            vehicle_brand="BMW",
            vehicle_plate="GH-789-IJ",
            status=BookingStatus.PENDING,
        )
    )

    assert [b.user_id for b in sql_storage.list_bookings(user_id=1)] == [1, 1]
    in_range = sql_storage.list_bookings(start=dt.date(2025, 3, 10), end=dt.date(2025, 3, 10))
    assert len(in_range) == 2
    assert {b.time_slot for b in in_range} == {"09:00", None}


def test_list_configs_range(sql_storage) -> None:
    for day in (dt.date(2025, 3, 9), dt.date(2025, 3, 10), dt.date(2025, 3, 11)):
        sql_storage.upsert_config(resolve_slot_key(day, "10:00"), max_capacity=1, is_active=True, reason=None)
    got = sql_storage.list_configs(dt.date(2025, 3, 10), dt.date(2025, 3, 11))
    assert [c.date for c in got] == [dt.date(2025, 3, 10), dt.date(2025, 3, 11)]


def test_concurrent_last_seat_sql(tmp_path) -> None:
    # DB su file: ogni thread ha la sua sessione e la sua connessione
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    key = resolve_slot_key("2025-03-10", "09:00")
    with Session() as s:
        SqlSlotStorage(s).upsert_config(key, max_capacity=1, is_active=True, reason=None)

    barrier = threading.Barrier(4)
    results: list[str] = []

    def worker(i: int) -> None:
        with Session() as s:
            storage = SqlSlotStorage(s)
            barrier.wait()
            try:
                admit_booking(storage, _booking(i))
                results.append("ok")
            except SlotUnavailable:
                results.append("full")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    with Session() as s:
        assert SqlSlotStorage(s).count_active_bookings(key) == 1
    engine.dispose()
