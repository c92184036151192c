import logging

import requests
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import auth_admin, get_slot_storage
from ..models.booking import BookingStatus
from ..models.user import User
from ..schemas.misc import SyncBookingIn
from ..services.calendar import CalendarNotConfigured, create_booking_event
from ..services.google_oauth import google_configured
from ..storage.base import SlotStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/google", tags=["google"])


@router.get("/status")
def google_status(me: User = Depends(auth_admin)):
    connected = google_configured()
    return {
        "connected": connected,
        "message": "Google Calendar connecté" if connected else "Google Calendar non connecté",
    }


@router.post("/sync-booking")
def sync_booking(
    payload: SyncBookingIn,
    me: User = Depends(auth_admin),
    db: Session = Depends(get_db),
    storage: SlotStorage = Depends(get_slot_storage),
):
    b = storage.get_booking(payload.booking_id)
    if not b:
        raise HTTPException(404, "Réservation non trouvée")
    if b.status == BookingStatus.CANCELLED:
        raise HTTPException(409, "Réservation annulée")
    if b.google_calendar_event_id:
        # un solo evento per prenotazione
        raise HTTPException(409, "Réservation déjà synchronisée")
    client = db.get(User, b.user_id)
    if not client:
        raise HTTPException(404, "Utilisateur non trouvé")

    try:
        event = create_booking_event(booking=b, client_name=client.name, client_email=client.email)
    except CalendarNotConfigured:
        raise HTTPException(400, "Google Calendar non configuré")
    except requests.RequestException:
        logger.exception("Sync calendario fallita per booking %s", b.id)
        raise HTTPException(502, "Erreur lors de la synchronisation")

    storage.update_booking(b, google_calendar_event_id=event.get("id"))
    return {
        "message": "Réservation synchronisée avec Google Calendar",
        "eventId": event.get("id"),
        "eventUrl": event.get("htmlLink"),
    }
