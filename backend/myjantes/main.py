# backend/myjantes/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# tutti i modelli devono essere registrati prima di create_all / dei mapper
from .models import booking, invoice, notification, quote, service, time_slot_config, user, work_progress  # noqa: F401
from .config import settings
from .database import init_db
from .deps import slot_storage_backend
from .errors import DomainError
from .routers import account as account_router
from .routers import auth as auth_router
from .routers import billing as billing_router
from .routers import booking as booking_router
from .routers import google as google_router
from .routers import users as users_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Avvio MyJantes (env=%s, slot storage=%s, admission=%s)",
                settings.APP_ENV, settings.SLOT_STORAGE, settings.BOOKING_ADMISSION)
    # configurazione incoerente: meglio non partire
    slot_storage_backend()
    init_db()
    yield
    logger.info("Arresto MyJantes")


app = FastAPI(title="MyJantes", lifespan=lifespan)

# --- API Routers ---
app.include_router(auth_router.router)
app.include_router(booking_router.router)
app.include_router(billing_router.router)
app.include_router(account_router.router)
app.include_router(users_router.router)
app.include_router(google_router.router)


# --- Errori: sempre {"message": ...} ---
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error su %s: %s", request.url.path, exc.errors())
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Données invalides", "errors": errors})


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    logger.info("%s su %s: %s", type(exc).__name__, request.url.path, exc.message)
    body = {"message": exc.message}
    reason = getattr(exc, "reason", None)
    if reason:
        body["reason"] = reason
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/ping")
def ping():
    return {"ok": True}
