from __future__ import annotations

import os

# Settings viene istanziato all'import: l'ambiente di test va impostato prima.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DB_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["SLOT_STORAGE"] = "sql"
os.environ["BOOKING_ADMISSION"] = "enforced"
for var in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN", "EMAIL_FROM", "ADMIN_EMAILS"):
    os.environ.pop(var, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from myjantes.main import app
from myjantes.core.security import hash_password, token_for_user
from myjantes.database import Base, get_db, init_db
from myjantes.models.user import Role, User
from myjantes.storage.memory import InMemorySlotStorage
from myjantes.storage.sql import SqlSlotStorage


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def memory_storage() -> InMemorySlotStorage:
    return InMemorySlotStorage()


@pytest.fixture()
def sql_storage(db) -> SqlSlotStorage:
    return SqlSlotStorage(db)


@pytest.fixture()
def client(engine, session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    init_db(engine)
    app.dependency_overrides[get_db] = _get_db
    # senza "with": il lifespan (create_all sul DB reale) non parte
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, *, email: str, role: Role = Role.CLIENT, name: str = "Test", password: str = "secret123") -> User:
    u = User(email=email, password_hash=hash_password(password), name=name, role=role, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture()
def admin(db) -> User:
    return make_user(db, email="admin@myjantes.fr", role=Role.ADMIN, name="Admin")


@pytest.fixture()
def customer(db) -> User:
    return make_user(db, email="client@example.com", name="Jean Client")


@pytest.fixture()
def admin_headers(admin) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def customer_headers(customer) -> dict[str, str]:
    return auth_headers(customer)
