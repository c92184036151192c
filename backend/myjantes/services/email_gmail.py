# backend/myjantes/services/email_gmail.py
import base64
import logging
from email.mime.text import MIMEText

from googleapiclient.discovery import build
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from ..config import settings

logger = logging.getLogger(__name__)

GMAIL_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def gmail_configured() -> bool:
    return bool(
        settings.GOOGLE_CLIENT_ID
        and settings.GOOGLE_CLIENT_SECRET
        and settings.GOOGLE_REFRESH_TOKEN
        and settings.EMAIL_FROM
    )


def _gmail_service():
    """
    Client Gmail via OAuth2 con refresh token.
    Richiede: GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN.
    """
    creds = Credentials(
        token=None,
        refresh_token=settings.GOOGLE_REFRESH_TOKEN,
        token_uri=TOKEN_URI,
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        scopes=GMAIL_SCOPES,
    )
    # forza il refresh per ottenere un access token valido
    creds.refresh(Request())

    # cache_discovery=False evita warning in ambienti server
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def send_email_html(to: str, subject: str, html: str) -> None:
    """
    Invia una mail HTML via Gmail API.
    Senza credenziali (dev) la mail viene solo loggata.
    """
    if not gmail_configured():
        logger.info("[DEV] Gmail non configurato. Simulo invio a %s - %s", to, subject)
        logger.debug("%s", html)
        return

    msg = MIMEText(html, "html", "utf-8")
    msg["to"] = to
    msg["from"] = settings.EMAIL_FROM
    msg["subject"] = subject

    # base64 URL-safe come richiesto da Gmail
    raw = base64.urlsafe_b64encode(msg.as_bytes()).decode("utf-8")

    svc = _gmail_service()
    svc.users().messages().send(userId="me", body={"raw": raw}).execute()
