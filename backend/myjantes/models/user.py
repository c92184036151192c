from sqlalchemy import Column, Integer, String, Boolean, Enum, DateTime, func
import enum
from ..database import Base


class Role(str, enum.Enum):
    CLIENT = "client"
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    # None: account creato dall'admin, il cliente lo completa registrandosi
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    role = Column(Enum(Role), nullable=False, default=Role.CLIENT)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
