# backend/myjantes/services/calendar.py
import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import requests

from ..config import settings
from .google_oauth import get_access_token

logger = logging.getLogger(__name__)

CAL_EVENTS_URL_TMPL = "https://www.googleapis.com/calendar/v3/calendars/{calendarId}/events"
DEFAULT_DURATION = timedelta(hours=1)


class CalendarNotConfigured(RuntimeError):
    pass


def booking_window(booking) -> tuple[datetime, datetime]:
    """
    (inizio, fine) locali della prenotazione: slot fisso = 1 ora,
    intervallo libero = start/end così come sono.
    """
    tz = ZoneInfo(settings.TIMEZONE)
    if booking.date is not None and booking.time_slot:
        hh, mm = (int(x) for x in booking.time_slot.split(":")[:2])
        start = datetime(booking.date.year, booking.date.month, booking.date.day, hh, mm, tzinfo=tz)
        return start, start + DEFAULT_DURATION
    start = booking.start_at if booking.start_at.tzinfo else booking.start_at.replace(tzinfo=tz)
    end = booking.end_at if booking.end_at.tzinfo else booking.end_at.replace(tzinfo=tz)
    return start, end


def create_booking_event(*, booking, client_name: str | None, client_email: str | None,
                         calendar_id: str | None = None) -> dict:
    """
    Crea l'evento nel calendario indicato e ritorna il JSON dell'evento.
    Solleva CalendarNotConfigured senza credenziali, requests.HTTPError se Google rifiuta.
    """
    token = get_access_token()
    calendar_id = calendar_id or settings.GOOGLE_CALENDAR_ID or "primary"
    if not token:
        raise CalendarNotConfigured("Google Calendar non configuré")

    start, end = booking_window(booking)
    description = "\n".join([
        "Réservation MyJantes",
        f"Client: {client_name or client_email or '-'}",
        f"Véhicule: {booking.vehicle_brand} ({booking.vehicle_plate})",
        f"Notes: {booking.notes or 'Aucune note'}",
        f"Statut: {booking.status.value}",
    ])

    payload = {
        "summary": f"Réservation MyJantes - {booking.vehicle_brand}",
        "description": description,
        "start": {"dateTime": start.isoformat(), "timeZone": settings.TIMEZONE},
        "end": {"dateTime": end.isoformat(), "timeZone": settings.TIMEZONE},
        "attendees": [{"email": client_email}] if client_email else [],
        "reminders": {"useDefault": True},
    }

    url = CAL_EVENTS_URL_TMPL.format(calendarId=calendar_id)
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    r = requests.post(url, headers=headers, json=payload, timeout=20)
    r.raise_for_status()
    event = r.json()
    logger.info("Evento calendario %s creato per booking %s", event.get("id"), booking.id)
    return event
