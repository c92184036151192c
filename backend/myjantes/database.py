import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from .config import settings

logger = logging.getLogger(__name__)

APP_ENV = settings.APP_ENV.lower()  # "dev" | "prod" | "test"
IS_SQLITE = settings.DB_URL.startswith("sqlite")


def _make_engine():
    # SQLite (demo locale): le richieste FastAPI girano su thread diversi
    if IS_SQLITE:
        return create_engine(
            settings.DB_URL,
            future=True,
            connect_args={"check_same_thread": False},
        )

    # In sviluppo: nessun pool -> connessione chiusa subito dopo ogni request
    if APP_ENV != "prod":
        return create_engine(
            settings.DB_URL,
            future=True,
            pool_pre_ping=True,
            poolclass=NullPool,
        )

    # In produzione: pool piccolo, gli advisory lock degli slot tengono la connessione solo per l'insert
    return create_engine(
        settings.DB_URL,
        future=True,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=5,
        pool_recycle=1800,
    )


engine = _make_engine()

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()  # importantissimo per rilasciare la connessione


def init_db(bind=None) -> int:
    """Crea le tabelle mancanti e il catalogo servizi. Ritorna i servizi inseriti."""
    # import locale: i modelli importano Base da qui
    from .models import booking, invoice, notification, quote, service, time_slot_config, user, work_progress  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind, checkfirst=True)
    db = sessionmaker(bind=bind, autoflush=False, expire_on_commit=False, future=True)()
    try:
        created = service.seed_services(db)
    finally:
        db.close()
    if created:
        logger.info("Catalogo servizi inizializzato (%s servizi)", created)
    return created
