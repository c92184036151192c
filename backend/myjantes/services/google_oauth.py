# backend/myjantes/services/google_oauth.py
import logging
import requests
from ..config import settings

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"


def google_configured() -> bool:
    return bool(settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET and settings.GOOGLE_REFRESH_TOKEN)


def get_access_token() -> str | None:
    """
    Usa il refresh token per ottenere un access token nuovo (Gmail/Calendar).
    Ritorna None se mancano le variabili o c'è un errore.
    """
    if not google_configured():
        return None

    data = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "client_secret": settings.GOOGLE_CLIENT_SECRET,
        "refresh_token": settings.GOOGLE_REFRESH_TOKEN,
        "grant_type": "refresh_token",
    }
    try:
        resp = requests.post(TOKEN_URL, data=data, timeout=15)
        resp.raise_for_status()
        return resp.json().get("access_token")
    except requests.RequestException:
        logger.exception("Refresh del token Google fallito")
        return None
