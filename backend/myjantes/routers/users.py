from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.security import hash_password
from ..database import get_db
from ..deps import auth_admin
from ..models.user import User, Role
from ..schemas.auth import StaffIn, UserOut

router = APIRouter(prefix="/api/admin", tags=["users"])


@router.get("/users", response_model=List[UserOut])
def list_users(role: Role | None = None, db: Session = Depends(get_db), me: User = Depends(auth_admin)):
    q = db.query(User).filter(User.is_active == True)  # noqa: E712
    if role:
        q = q.filter(User.role == role)
    return q.order_by(User.name, User.email).all()


@router.get("/employees", response_model=List[UserOut])
def list_employees(db: Session = Depends(get_db), me: User = Depends(auth_admin)):
    return (
        db.query(User)
        .filter(User.role == Role.EMPLOYEE, User.is_active == True)  # noqa: E712
        .order_by(User.name)
        .all()
    )


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(payload: StaffIn, db: Session = Depends(get_db), me: User = Depends(auth_admin)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(400, "Email déjà utilisé")
    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        name=payload.name.strip(),
        phone=payload.phone,
        role=payload.role,
        is_active=True,
    )
    db.add(user); db.commit(); db.refresh(user)
    return user


@router.delete("/users/{user_id}")
def deactivate_user(user_id: int, db: Session = Depends(get_db), me: User = Depends(auth_admin)):
    # nessuna cancellazione fisica: le prenotazioni restano collegate
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(404, "Utilisateur non trouvé")
    if user.id == me.id:
        raise HTTPException(400, "Impossible de désactiver votre propre compte")
    user.is_active = False
    db.commit()
    return {"ok": True}
