import datetime as dt
from pydantic import EmailStr, Field
from ..models.user import Role
from .common import CamelModel


class RegisterIn(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    phone: str | None = None
    address: str | None = None


class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)


class UserOut(CamelModel):
    id: int
    email: EmailStr
    name: str
    phone: str | None = None
    address: str | None = None
    role: Role
    created_at: dt.datetime | None = None


class TokenOut(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class ProfileIn(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    phone: str | None = None
    address: str | None = None


class ChangePasswordIn(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)


class StaffIn(CamelModel):
    """Creazione utenti da parte dell'admin (dipendenti inclusi)."""

    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    phone: str | None = None
    role: Role = Role.EMPLOYEE
