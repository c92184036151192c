from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_current_user, auth_admin, get_slot_storage
from ..models.booking import BookingStatus
from ..models.invoice import Invoice, InvoiceStatus
from ..models.notification import Notification, notify
from ..models.quote import Quote, QuoteStatus
from ..models.service import Service
from ..models.user import User, Role
from ..models.work_progress import WorkProgress
from ..schemas.billing import InvoiceOut, QuoteOut
from ..schemas.booking import BookingOut
from ..schemas.misc import NotificationOut, ServiceOut, WorkProgressIn, WorkProgressOut
from ..storage.base import SlotStorage

router = APIRouter(prefix="/api", tags=["account"])


# -----------------------------------------------------------------------------
# CATALOGO (pubblico)
# -----------------------------------------------------------------------------
@router.get("/services", response_model=List[ServiceOut])
def list_services(db: Session = Depends(get_db)):
    return db.query(Service).filter(Service.active == True).order_by(Service.id).all()  # noqa: E712


@router.get("/services/{service_id}", response_model=ServiceOut)
def get_service(service_id: int, db: Session = Depends(get_db)):
    s = db.get(Service, service_id)
    if not s:
        raise HTTPException(404, "Service non trouvé")
    return s


# -----------------------------------------------------------------------------
# STORICO + NOTIFICHE
# -----------------------------------------------------------------------------
@router.get("/history")
def history(
    me: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: SlotStorage = Depends(get_slot_storage),
):
    bookings = sorted(storage.list_bookings(user_id=me.id), key=lambda b: b.id, reverse=True)
    quotes = db.query(Quote).filter(Quote.user_id == me.id).order_by(Quote.id.desc()).all()
    invoices = db.query(Invoice).filter(Invoice.user_id == me.id).order_by(Invoice.id.desc()).all()
    return {
        "bookings": [BookingOut.model_validate(b).model_dump(by_alias=True, mode="json") for b in bookings],
        "quotes": [QuoteOut.model_validate(q).model_dump(by_alias=True, mode="json") for q in quotes],
        "invoices": [InvoiceOut.model_validate(i).model_dump(by_alias=True, mode="json") for i in invoices],
    }


@router.get("/notifications", response_model=List[NotificationOut])
def my_notifications(me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(Notification)
        .filter(Notification.user_id == me.id)
        .order_by(Notification.id.desc())
        .all()
    )


@router.get("/notifications/unread-count")
def unread_count(me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    count = (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == me.id, Notification.read == False)  # noqa: E712
        .scalar()
    )
    return {"count": count or 0}


@router.post("/notifications/{notification_id}/read")
def mark_read(notification_id: int, me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    n = db.get(Notification, notification_id)
    if not n or n.user_id != me.id:
        raise HTTPException(404, "Notification non trouvée")
    n.read = True
    db.commit()
    return {"success": True}


# -----------------------------------------------------------------------------
# AVANZAMENTO LAVORI
# -----------------------------------------------------------------------------
@router.get("/work-progress/{booking_id}", response_model=List[WorkProgressOut])
def work_progress(
    booking_id: int,
    me: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: SlotStorage = Depends(get_slot_storage),
):
    b = storage.get_booking(booking_id)
    if not b:
        raise HTTPException(404, "Réservation non trouvée")
    if me.role == Role.CLIENT and b.user_id != me.id:
        raise HTTPException(404, "Réservation non trouvée")
    return (
        db.query(WorkProgress)
        .filter(WorkProgress.booking_id == booking_id)
        .order_by(WorkProgress.id.asc())
        .all()
    )


@router.get("/admin/work-progress", response_model=List[WorkProgressOut])
def all_work_progress(me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    return db.query(WorkProgress).order_by(WorkProgress.id.desc()).all()


@router.post("/work-progress", response_model=WorkProgressOut, status_code=201)
def add_work_progress(
    payload: WorkProgressIn,
    me: User = Depends(auth_admin),
    db: Session = Depends(get_db),
    storage: SlotStorage = Depends(get_slot_storage),
):
    b = storage.get_booking(payload.booking_id)
    if not b:
        raise HTTPException(404, "Réservation non trouvée")
    if b.status == BookingStatus.CANCELLED:
        raise HTTPException(409, "Réservation annulée")

    wp = WorkProgress(
        booking_id=b.id,
        user_id=b.user_id,
        status=payload.status,
        description=payload.description,
        photos=payload.photos,
        estimated_completion=payload.estimated_completion,
        updated_by=me.id,
    )
    db.add(wp); db.commit(); db.refresh(wp)
    notify(
        db,
        user_id=b.user_id,
        title="Avancement de vos travaux",
        message=payload.description,
        type="work_progress",
        related_id=b.id,
    )
    return wp


# -----------------------------------------------------------------------------
# DASHBOARD ADMIN
# -----------------------------------------------------------------------------
@router.get("/admin/dashboard")
def admin_dashboard(
    me: User = Depends(auth_admin),
    db: Session = Depends(get_db),
    storage: SlotStorage = Depends(get_slot_storage),
):
    bookings = storage.list_bookings()
    quotes = db.query(Quote.status).all()
    invoices = db.query(Invoice.status, Invoice.amount).all()

    revenue = sum((Decimal(i.amount) for i in invoices if i.status == InvoiceStatus.PAID), Decimal("0"))
    return {
        "totalBookings": len(bookings),
        "pendingBookings": sum(1 for b in bookings if b.status == BookingStatus.PENDING),
        "totalQuotes": len(quotes),
        "pendingQuotes": sum(1 for q in quotes if q.status == QuoteStatus.PENDING),
        "totalInvoices": len(invoices),
        "unpaidInvoices": sum(1 for i in invoices if i.status == InvoiceStatus.UNPAID),
        "totalRevenue": str(revenue),
    }
