# backend/myjantes/services/mailer.py
"""Email transazionali (prenotazioni, devis, fatture). Sempre best-effort."""
import html as html_lib
import logging
import re

from sqlalchemy.orm import Session

from ..config import settings
from ..models.user import User, Role
from .email_gmail import send_email_html

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
FOOTER = "<hr><small>MyJantes</small>"


def user_label(u: User | None) -> str:
    if not u:
        return ""
    return (u.name or "").strip() or u.email


def fmt_booking_time(b) -> str:
    if b.date is not None and b.time_slot:
        return f"{b.date.isoformat()} • {b.time_slot}"
    if b.start_at is not None and b.end_at is not None:
        return f"{b.start_at:%Y-%m-%d %H:%M} – {b.end_at:%H:%M}"
    return "-"


def _dedup(addresses) -> list[str]:
    seen = set()
    out: list[str] = []
    for a in addresses or []:
        key = (a or "").strip().lower()
        if key and key not in seen:
            seen.add(key)
            out.append(a.strip())
    return out


def send_to_many(addresses: list[str], subject: str, html: str) -> int:
    """Invio tollerante con dedup case-insensitive. Ritorna quante mail sono partite."""
    sent = 0
    tos = _dedup(addresses)
    logger.info("EMAIL -> %s | %s", tos, subject)
    for a in tos:
        try:
            send_email_html(a, subject, html)
            sent += 1
        except Exception:
            logger.exception("Email error verso %s", a)
    return sent


def parse_admin_emails_from_env() -> list[str]:
    raw = (settings.ADMIN_EMAILS or "").strip()
    if not raw:
        return []
    parts = re.split(r"[,\n;]+", raw)
    return _dedup(p for p in parts if EMAIL_RE.match(p.strip()))


def admin_emails(db: Session) -> list[str]:
    """ADMIN_EMAILS da .env, altrimenti gli admin attivi nel DB."""
    env_emails = parse_admin_emails_from_env()
    if env_emails:
        return env_emails
    admins = db.query(User).filter(User.role == Role.ADMIN, User.is_active == True).all()  # noqa: E712
    return _dedup(a.email for a in admins)


def _wrap(body: str) -> str:
    return f"""
    <div style="font-family:Inter,Arial,sans-serif;color:#111;font-size:15px">
      {body}
      {FOOTER}
    </div>
    """


def booking_created(db: Session, booking, client: User) -> None:
    esc = html_lib.escape
    to_admins = admin_emails(db)
    if to_admins:
        send_to_many(
            to_admins,
            "Nouvelle réservation",
            _wrap(
                f"<p>Nouvelle réservation de <b>{esc(user_label(client))}</b>.</p>"
                f"<p><b>Créneau :</b> {fmt_booking_time(booking)}<br/>"
                f"<b>Véhicule :</b> {esc(booking.vehicle_brand)} ({esc(booking.vehicle_plate)})</p>"
            ),
        )
    if client and client.email:
        send_to_many(
            [client.email],
            "Votre réservation MyJantes",
            _wrap(
                f"<p>Bonjour {esc(user_label(client))},</p>"
                f"<p>Nous avons bien reçu votre réservation pour le {fmt_booking_time(booking)}.</p>"
                "<p>Vous serez notifié dès sa confirmation.</p>"
            ),
        )


def booking_status_changed(booking, client: User) -> None:
    if not client or not client.email:
        return
    esc = html_lib.escape
    send_to_many(
        [client.email],
        "Statut de votre réservation",
        _wrap(
            f"<p>Bonjour {esc(user_label(client))},</p>"
            f"<p>Votre réservation du {fmt_booking_time(booking)} est maintenant : "
            f"<b>{booking.status.value}</b>.</p>"
        ),
    )


def invoice_issued(invoice, client: User) -> int:
    if not client or not client.email:
        return 0
    esc = html_lib.escape
    link = f"{settings.PUBLIC_BASE_URL}/invoices/{invoice.id}"
    return send_to_many(
        [client.email],
        f"Votre facture MyJantes n°{invoice.id}",
        _wrap(
            f"<p>Bonjour {esc(user_label(client))},</p>"
            f"<p>Votre facture <b>n°{invoice.id}</b> d'un montant de <b>{invoice.amount} €</b> est disponible.</p>"
            f"<p>{esc(invoice.description)}</p>"
            f'<p><a href="{link}">{link}</a></p>'
        ),
    )
