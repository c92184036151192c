from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from .config import settings
from . import database
from .database import get_db
from .core.security import decode_token
from .models.user import User, Role
from .storage.base import SlotStorage
from .storage.memory import InMemorySlotStorage
from .storage.sql import SqlSlotStorage

oauth2 = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# unica istanza per processo quando SLOT_STORAGE=memory
_memory_storage: InMemorySlotStorage | None = None


def get_current_user(token: str = Depends(oauth2), db: Session = Depends(get_db)) -> User:
    data = decode_token(token)
    if not data or "sub" not in data:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalide")
    user = db.query(User).filter(User.email == data["sub"]).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Utilisateur introuvable ou désactivé")
    return user


def require_role(*allowed: Role):
    def dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Permissions insuffisantes")
        return user
    return dep


def auth_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Accès administrateur requis")
    return user


auth_staff = require_role(Role.ADMIN, Role.EMPLOYEE)


def slot_storage_backend() -> str:
    """
    "sql" o "memory". La memoria è ammessa solo con SQLite: altre tabelle
    (work_progress) hanno foreign key verso bookings che Postgres farebbe rispettare.
    """
    backend = settings.SLOT_STORAGE.strip().lower()
    if backend not in ("sql", "memory"):
        raise RuntimeError(f"SLOT_STORAGE non supportato: {settings.SLOT_STORAGE!r}")
    if backend == "memory" and not database.IS_SQLITE:
        raise RuntimeError("SLOT_STORAGE=memory richiede un DB_URL SQLite")
    return backend


def get_slot_storage(db: Session = Depends(get_db)) -> SlotStorage:
    global _memory_storage
    if slot_storage_backend() == "memory":
        if _memory_storage is None:
            _memory_storage = InMemorySlotStorage()
        return _memory_storage
    return SqlSlotStorage(db)
