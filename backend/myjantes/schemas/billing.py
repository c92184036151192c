import datetime as dt
from decimal import Decimal
from typing import Optional
from pydantic import EmailStr, Field
from ..models.quote import QuoteStatus
from ..models.invoice import InvoiceStatus
from .auth import UserOut
from .common import CamelModel

# -----------------------------
# DEVIS
# -----------------------------


class QuoteIn(CamelModel):
    service_id: Optional[int] = None
    vehicle_brand: str = Field(min_length=1)
    vehicle_model: str = Field(min_length=1)
    vehicle_year: str = Field(min_length=1)
    vehicle_engine: Optional[str] = None
    description: str = Field(min_length=1)
    photos: list[str] = Field(default_factory=list)


class QuoteOut(CamelModel):
    id: int
    user_id: int
    service_id: Optional[int] = None
    vehicle_brand: str
    vehicle_model: str
    vehicle_year: str
    vehicle_engine: Optional[str] = None
    description: str
    photos: Optional[list[str]] = None
    amount: Optional[Decimal] = None
    status: QuoteStatus
    created_at: Optional[dt.datetime] = None


class QuoteStatusIn(CamelModel):
    status: QuoteStatus
    amount: Optional[Decimal] = Field(default=None, ge=0)


class AdminQuoteIn(CamelModel):
    """Devis creato in negozio: il cliente è identificato dall'email."""
    client_email: EmailStr
    client_name: str = Field(min_length=1)
    client_phone: Optional[str] = None
    client_address: Optional[str] = None
    service_id: Optional[int] = None
    vehicle_brand: str = Field(min_length=1)
    vehicle_model: str = Field(min_length=1)
    vehicle_year: str = Field(min_length=1)
    vehicle_engine: Optional[str] = None
    description: str = Field(min_length=1)
    amount: Optional[Decimal] = Field(default=None, ge=0)


class AdminQuoteOut(CamelModel):
    quote: QuoteOut
    user: UserOut
    user_created: bool


# -----------------------------
# FACTURES
# -----------------------------


class InvoiceIn(CamelModel):
    user_id: int
    quote_id: Optional[int] = None
    subtotal: Decimal = Field(ge=0)
    vat_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    description: str = Field(min_length=1)
    work_details: Optional[str] = None
    photos_before: list[str] = Field(default_factory=list)
    photos_after: list[str] = Field(default_factory=list)


class InvoiceOut(CamelModel):
    id: int
    user_id: int
    quote_id: Optional[int] = None
    subtotal: Optional[Decimal] = None
    vat_rate: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None
    amount: Decimal
    description: str
    photos_before: Optional[list[str]] = None
    photos_after: Optional[list[str]] = None
    work_details: Optional[str] = None
    status: InvoiceStatus
    email_sent: Optional[bool] = None
    created_at: Optional[dt.datetime] = None


class InvoiceStatusIn(CamelModel):
    status: InvoiceStatus


class InvoiceUpdateIn(CamelModel):
    """Modifica parziale; subtotal / vatRate ricalcolano gli importi."""
    subtotal: Optional[Decimal] = Field(default=None, ge=0)
    vat_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    description: Optional[str] = Field(default=None, min_length=1)
    work_details: Optional[str] = None
    photos_before: Optional[list[str]] = None
    photos_after: Optional[list[str]] = None
