from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import Column, Integer, Text, Numeric, Boolean, Enum, ForeignKey, JSON, DateTime, func
import enum
from ..database import Base
from ..errors import InvalidStatusTransition

CENT = Decimal("0.01")


class InvoiceStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    CANCELLED = "cancelled"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=True)
    vat_rate = Column(Numeric(5, 2), default=Decimal("20.00"))
    vat_amount = Column(Numeric(10, 2), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)

    description = Column(Text, nullable=False)
    photos_before = Column(JSON, default=list)
    photos_after = Column(JSON, default=list)
    work_details = Column(Text, nullable=True)

    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.UNPAID)
    email_sent = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


def compute_totals(subtotal: Decimal, vat_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Ritorna (vat_amount, amount TTC) arrotondati al centesimo."""
    vat = (subtotal * vat_rate / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return vat, (subtotal + vat).quantize(CENT, rounding=ROUND_HALF_UP)


def split_gross(amount: Decimal, vat_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Scorporo IVA da un importo TTC: (subtotal HT, vat_amount), somma esatta."""
    subtotal = (amount * Decimal(100) / (Decimal(100) + vat_rate)).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, amount - subtotal


# paid / cancelled sono terminali
INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.UNPAID: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def check_invoice_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
    if target not in INVOICE_TRANSITIONS[InvoiceStatus(current)]:
        raise InvalidStatusTransition(current, target)
