from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from passlib.context import CryptContext
from ..config import settings

ALGO = "HS256"
pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(p: str) -> str:
    return pwd.hash(p)


def verify_password(p: str, hashed: str | None) -> bool:
    # utenti creati senza password (es. import) non possono fare login
    if not hashed:
        return False
    return pwd.verify(p, hashed)


def create_access_token(sub: str, **claims) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRES_MIN)
    payload = {**claims, "sub": sub, "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def token_for_user(user) -> str:
    """JWT con email come subject; uid e ruolo servono solo al frontend."""
    return create_access_token(sub=user.email, uid=user.id, role=user.role.value)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
    except JWTError:
        return None
