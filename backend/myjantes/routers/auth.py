from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User, Role
from ..schemas.auth import RegisterIn, LoginIn, TokenOut, UserOut, ProfileIn, ChangePasswordIn
from ..core.security import hash_password, verify_password, token_for_user
from ..deps import get_current_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_for(user: User) -> TokenOut:
    return TokenOut(token=token_for_user(user), user=UserOut.model_validate(user))


@router.post("/register", response_model=TokenOut, status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing and existing.password_hash is None and existing.is_active:
        # account creato in negozio dall'admin (devis): il cliente imposta la password
        existing.password_hash = hash_password(payload.password)
        existing.name = payload.name.strip()
        existing.phone = payload.phone or existing.phone
        existing.address = payload.address or existing.address
        db.commit(); db.refresh(existing)
        return _token_for(existing)
    if existing:
        raise HTTPException(status_code=400, detail="Email déjà utilisé")

    # la registrazione pubblica crea solo clienti
    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        name=payload.name.strip(),
        phone=payload.phone,
        address=payload.address,
        role=Role.CLIENT,
        is_active=True,
    )
    db.add(user); db.commit(); db.refresh(user)
    return _token_for(user)


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Identifiants invalides")
    return _token_for(user)


@router.get("/me", response_model=UserOut)
def me(current: User = Depends(get_current_user)):
    return current


@router.put("/profile", response_model=UserOut)
def update_profile(payload: ProfileIn, current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(current, field, value)
    db.commit(); db.refresh(current)
    return current


@router.post("/change-password")
def change_password(payload: ChangePasswordIn, current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not verify_password(payload.current_password, current.password_hash):
        raise HTTPException(status_code=400, detail="Mot de passe actuel incorrect")
    current.password_hash = hash_password(payload.new_password)
    db.commit()
    return {"ok": True}
