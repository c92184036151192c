import datetime as dt
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..deps import get_current_user, auth_admin, auth_staff, get_slot_storage
from ..models.booking import Booking, BookingStatus, check_transition
from ..models.notification import notify
from ..models.service import Service
from ..models.user import User, Role
from ..schemas.booking import (
    AssignEmployeeIn,
    BookingIn,
    BookingOut,
    BookingStatusIn,
    CalendarDataOut,
    SlotAvailabilityOut,
    TimeSlotConfigIn,
    TimeSlotConfigOut,
    TimeSlotConfigUpdate,
)
from ..services import mailer
from ..slots.admission import admit_booking, can_admit
from ..slots.calendar import project
from ..slots.keys import resolve_slot_key
from ..storage.base import SlotStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["bookings"])

MAX_CALENDAR_DAYS = 62


# -----------------------------------------
# Helpers
# -----------------------------------------
def _get_booking_or_404(storage: SlotStorage, booking_id: int) -> Booking:
    b = storage.get_booking(booking_id)
    if not b:
        raise HTTPException(404, "Réservation non trouvée")
    return b


def _slot_key_or_400(day: dt.date, time_slot: str):
    key = resolve_slot_key(day, time_slot)
    if key is None:
        raise HTTPException(400, f"Créneau inconnu : {time_slot}")
    return key


def _best_effort(what: str, fn, *args) -> None:
    try:
        fn(*args)
    except Exception:
        logger.exception("%s fallito", what)


# -----------------------------------------------------------------------------
# CLIENTE: prenotazioni
# -----------------------------------------------------------------------------
@router.get("/bookings", response_model=List[BookingOut])
def my_bookings(me: User = Depends(get_current_user), storage: SlotStorage = Depends(get_slot_storage)):
    return storage.list_bookings(user_id=me.id)


@router.post("/bookings", response_model=BookingOut, status_code=201)
def create_booking(
    payload: BookingIn,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: SlotStorage = Depends(get_slot_storage),
):
    service = db.get(Service, payload.service_id)
    if not service or not service.active:
        raise HTTPException(404, "Service non trouvé")

    b = Booking(
        user_id=me.id,
        service_id=service.id,
        vehicle_brand=payload.vehicle_brand.strip(),
        vehicle_plate=payload.vehicle_plate.strip().upper(),
        notes=payload.notes,
        status=BookingStatus.PENDING,
    )
    if payload.date is not None:
        key = _slot_key_or_400(payload.date, payload.time_slot)
        b.date, b.time_slot = key.date, key.time_slot
    else:
        b.start_at, b.end_at = payload.start_date_time, payload.end_date_time

    # SlotUnavailable -> 409 (handler in main.py)
    b = admit_booking(storage, b)
    logger.info("Booking %s creato da user %s (%s)", b.id, me.id, mailer.fmt_booking_time(b))

    _best_effort("Email nuova prenotazione", mailer.booking_created, db, b, me)
    return b


@router.get("/time-slots/availability", response_model=List[SlotAvailabilityOut])
def slots_availability(
    date: dt.date,
    me: User = Depends(get_current_user),
    storage: SlotStorage = Depends(get_slot_storage),
):
    """Stato di ogni slot del giorno (per disabilitare quelli pieni nel form)."""
    out = []
    for label in settings.time_slot_labels:
        res = can_admit(storage, date, label)
        out.append(
            SlotAvailabilityOut(
                time_slot=label,
                admitted=res.admitted,
                reason=res.reason,
                booked=res.booked,
                capacity=res.capacity,
            )
        )
    return out


# -----------------------------------------------------------------------------
# ADMIN: prenotazioni
# -----------------------------------------------------------------------------
@router.get("/admin/bookings", response_model=List[BookingOut])
def admin_bookings(
    status: BookingStatus | None = None,
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    items = storage.list_bookings()
    if status:
        items = [b for b in items if b.status == status]
    return sorted(items, key=lambda b: b.id, reverse=True)


@router.post("/admin/bookings/{booking_id}/status", response_model=BookingOut)
def admin_booking_status(
    booking_id: int,
    payload: BookingStatusIn,
    db: Session = Depends(get_db),
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    b = _get_booking_or_404(storage, booking_id)
    # InvalidStatusTransition -> 409
    check_transition(b.status, payload.status)
    b = storage.set_booking_status(b, payload.status)
    logger.info("Booking %s -> %s (admin %s)", b.id, b.status.value, me.id)

    notify(
        db,
        user_id=b.user_id,
        title="Statut de réservation mis à jour",
        message=f"Votre réservation est maintenant : {b.status.value}",
        type="booking",
        related_id=b.id,
    )
    client = db.get(User, b.user_id)
    _best_effort("Email stato prenotazione", mailer.booking_status_changed, b, client)
    return b


@router.post("/admin/assign-employee", response_model=BookingOut)
def assign_employee(
    payload: AssignEmployeeIn,
    db: Session = Depends(get_db),
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    b = _get_booking_or_404(storage, payload.booking_id)
    emp = db.get(User, payload.employee_id)
    if not emp or not emp.is_active or emp.role not in (Role.EMPLOYEE, Role.ADMIN):
        raise HTTPException(404, "Employé non trouvé")
    if b.status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
        raise HTTPException(409, "Réservation clôturée")

    b = storage.update_booking(b, assigned_employee_id=emp.id, assignment_notes=payload.notes)
    notify(
        db,
        user_id=emp.id,
        title="Nouvelle intervention assignée",
        message=f"Réservation #{b.id} - {mailer.fmt_booking_time(b)}",
        type="booking",
        related_id=b.id,
    )
    return b


@router.get("/admin/employee-assignments/{employee_id}", response_model=List[BookingOut])
def employee_assignments(
    employee_id: int,
    me: User = Depends(auth_staff),
    storage: SlotStorage = Depends(get_slot_storage),
):
    # un dipendente vede solo le proprie assegnazioni
    if me.role != Role.ADMIN and me.id != employee_id:
        raise HTTPException(403, "Accès non autorisé")
    return [b for b in storage.list_bookings() if b.assigned_employee_id == employee_id]


# -----------------------------------------------------------------------------
# ADMIN: configurazione slot
# -----------------------------------------------------------------------------
@router.get("/admin/time-slot-configs", response_model=List[TimeSlotConfigOut])
def list_time_slot_configs(
    start_date: dt.date | None = Query(None, alias="startDate"),
    end_date: dt.date | None = Query(None, alias="endDate"),
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    return storage.list_configs(start_date, end_date)


@router.post("/admin/time-slot-configs", response_model=TimeSlotConfigOut)
def create_time_slot_config(
    payload: TimeSlotConfigIn,
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    key = _slot_key_or_400(payload.date, payload.time_slot)
    cfg = storage.upsert_config(
        key, max_capacity=payload.max_capacity, is_active=payload.is_active, reason=payload.reason
    )
    logger.info("Config %s: cap=%s attivo=%s (admin %s)", key, cfg.max_capacity, cfg.is_active, me.id)
    return cfg


@router.put("/admin/time-slot-configs/{date}/{time_slot}", response_model=TimeSlotConfigOut)
def update_time_slot_config(
    date: dt.date,
    time_slot: str,
    payload: TimeSlotConfigUpdate,
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    key = _slot_key_or_400(date, time_slot)
    cfg = storage.upsert_config(
        key, max_capacity=payload.max_capacity, is_active=payload.is_active, reason=payload.reason
    )
    logger.info("Config %s aggiornata: cap=%s attivo=%s (admin %s)", key, cfg.max_capacity, cfg.is_active, me.id)
    return cfg


@router.get("/admin/calendar-data", response_model=CalendarDataOut)
def calendar_data(
    start_date: dt.date | None = Query(None, alias="startDate"),
    end_date: dt.date | None = Query(None, alias="endDate"),
    me: User = Depends(auth_admin),
    storage: SlotStorage = Depends(get_slot_storage),
):
    if start_date and end_date and end_date < start_date:
        raise HTTPException(400, "endDate doit être après startDate")

    bookings = storage.list_bookings(start=start_date, end=end_date)
    configs = storage.list_configs(start_date, end_date)

    grid = {}
    # la griglia richiede un intervallo chiuso e ragionevole
    if start_date and end_date and (end_date - start_date).days < MAX_CALENDAR_DAYS:
        raw = project(bookings, configs, start_date, end_date)
        for day, row in raw.items():
            grid[day] = {
                label: {
                    "bookings": [b.id for b in cell["bookings"]],
                    "configId": cell["config"].id if cell["config"] else None,
                    "capacity": cell["capacity"],
                    "booked": cell["booked"],
                    "available": cell["available"],
                    "isActive": cell["isActive"],
                    "reason": cell["reason"],
                }
                for label, cell in row.items()
            }

    return CalendarDataOut(
        bookings=[BookingOut.model_validate(b) for b in bookings],
        configs=[TimeSlotConfigOut.model_validate(c) for c in configs],
        grid=grid,
    )
