import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..deps import get_current_user, auth_admin
from ..models.invoice import Invoice, InvoiceStatus, check_invoice_transition, compute_totals, split_gross
from ..models.notification import notify
from ..models.quote import INVOICED, Quote, QuoteStatus
from ..models.user import Role, User
from ..schemas.billing import (
    AdminQuoteIn,
    AdminQuoteOut,
    InvoiceIn,
    InvoiceOut,
    InvoiceStatusIn,
    InvoiceUpdateIn,
    QuoteIn,
    QuoteOut,
    QuoteStatusIn,
)
from ..schemas.auth import UserOut
from ..services import mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["billing"])


def _new_invoice(db: Session, *, user_id: int, subtotal: Decimal, description: str,
                 vat_rate: Decimal | None = None, quote_id: int | None = None, **extra) -> Invoice:
    rate = Decimal(vat_rate if vat_rate is not None else settings.DEFAULT_VAT_RATE)
    vat, total = compute_totals(Decimal(subtotal), rate)
    inv = Invoice(
        user_id=user_id,
        quote_id=quote_id,
        subtotal=Decimal(subtotal),
        vat_rate=rate,
        vat_amount=vat,
        amount=total,
        description=description,
        status=InvoiceStatus.UNPAID,
        email_sent=False,
        **extra,
    )
    db.add(inv)
    db.commit()
    db.refresh(inv)
    return inv


def _invoice_from_quote(db: Session, q: Quote, description: str, **extra) -> Invoice:
    # il devis è a prezzo TTC: la fattura ne scorpora l'IVA di default
    rate = Decimal(settings.DEFAULT_VAT_RATE)
    subtotal, vat = split_gross(Decimal(q.amount), rate)
    inv = Invoice(
        user_id=q.user_id,
        quote_id=q.id,
        subtotal=subtotal,
        vat_rate=rate,
        vat_amount=vat,
        amount=Decimal(q.amount),
        description=description,
        status=InvoiceStatus.UNPAID,
        email_sent=False,
        **extra,
    )
    db.add(inv)
    db.commit()
    db.refresh(inv)
    logger.info("Fattura %s creata dal devis %s", inv.id, q.id)
    return inv


def _get_invoice_or_404(db: Session, invoice_id: int) -> Invoice:
    inv = db.get(Invoice, invoice_id)
    if not inv:
        raise HTTPException(404, "Facture non trouvée")
    return inv


# -----------------------------------------------------------------------------
# DEVIS (cliente)
# -----------------------------------------------------------------------------
@router.get("/quotes", response_model=List[QuoteOut])
def my_quotes(me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(Quote).filter(Quote.user_id == me.id).order_by(Quote.id.desc()).all()


@router.post("/quotes", response_model=QuoteOut, status_code=201)
def create_quote(payload: QuoteIn, me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    q = Quote(user_id=me.id, status=QuoteStatus.PENDING, **payload.model_dump())
    db.add(q); db.commit(); db.refresh(q)
    return q


@router.post("/quotes/{quote_id}/accept", response_model=QuoteOut)
def accept_quote(quote_id: int, me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    q = db.get(Quote, quote_id)
    if not q or q.user_id != me.id:
        raise HTTPException(404, "Devis non trouvé")
    if q.status != QuoteStatus.APPROVED:
        raise HTTPException(409, "Ce devis ne peut pas être accepté")

    q.status = QuoteStatus.ACCEPTED
    db.commit(); db.refresh(q)

    if q.amount is not None:
        _invoice_from_quote(db, q, f"Facture pour devis #{q.id}")
    return q


# -----------------------------------------------------------------------------
# DEVIS (admin)
# -----------------------------------------------------------------------------
@router.get("/admin/quotes", response_model=List[QuoteOut])
def admin_quotes(me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    return db.query(Quote).order_by(Quote.id.desc()).all()


@router.post("/admin/quotes/create", response_model=AdminQuoteOut, status_code=201)
def admin_create_quote(payload: AdminQuoteIn, me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    email = payload.client_email.lower()
    client = db.query(User).filter(User.email == email).first()
    created = client is None
    if created:
        # senza password: il cliente completa l'account registrandosi con la stessa email
        client = User(
            email=email,
            password_hash=None,
            name=payload.client_name.strip(),
            phone=payload.client_phone,
            address=payload.client_address,
            role=Role.CLIENT,
            is_active=True,
        )
        db.add(client); db.commit(); db.refresh(client)
        logger.info("Cliente %s creato dall'admin %s", client.id, me.id)
    elif not client.is_active:
        raise HTTPException(409, "Compte client désactivé")

    q = Quote(
        user_id=client.id,
        service_id=payload.service_id,
        vehicle_brand=payload.vehicle_brand,
        vehicle_model=payload.vehicle_model,
        vehicle_year=payload.vehicle_year,
        vehicle_engine=payload.vehicle_engine,
        description=payload.description,
        photos=[],
        amount=payload.amount,
        status=QuoteStatus.APPROVED if payload.amount is not None else QuoteStatus.PENDING,
    )
    db.add(q); db.commit(); db.refresh(q)

    notify(
        db,
        user_id=client.id,
        title="Nouveau devis créé",
        message="Un devis a été créé pour votre véhicule.",
        type="quote",
        related_id=q.id,
    )
    return AdminQuoteOut(
        quote=QuoteOut.model_validate(q),
        user=UserOut.model_validate(client),
        user_created=created,
    )


@router.post("/admin/quotes/{quote_id}/status", response_model=QuoteOut)
def admin_quote_status(quote_id: int, payload: QuoteStatusIn, me: User = Depends(auth_admin),
                       db: Session = Depends(get_db)):
    q = db.get(Quote, quote_id)
    if not q:
        raise HTTPException(404, "Devis non trouvé")
    if q.status in INVOICED:
        raise HTTPException(409, "Devis déjà facturé")
    if payload.status in INVOICED:
        raise HTTPException(400, "Utilisez l'acceptation client ou la conversion en facture")
    if payload.status == QuoteStatus.APPROVED and payload.amount is None and q.amount is None:
        raise HTTPException(400, "Montant requis pour approuver un devis")

    q.status = payload.status
    if payload.amount is not None:
        q.amount = payload.amount
    db.commit(); db.refresh(q)

    notify(
        db,
        user_id=q.user_id,
        title="Mise à jour de votre devis",
        message=f"Votre devis #{q.id} est maintenant : {q.status.value}",
        type="quote",
        related_id=q.id,
    )
    return q


@router.post("/admin/quotes/{quote_id}/convert-to-invoice", response_model=InvoiceOut, status_code=201)
def admin_convert_quote(quote_id: int, me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    q = db.get(Quote, quote_id)
    if not q:
        raise HTTPException(404, "Devis non trouvé")
    if q.status != QuoteStatus.APPROVED:
        raise HTTPException(409, "Le devis doit être validé avant conversion")
    if not q.amount:
        raise HTTPException(400, "Le devis doit avoir un montant défini")

    q.status = QuoteStatus.CONVERTED
    db.commit()
    inv = _invoice_from_quote(
        db, q, f"Facture générée depuis le devis #{q.id} - {q.description}", work_details=q.description
    )
    notify(
        db,
        user_id=q.user_id,
        title="Facture générée",
        message=f"Une facture a été générée à partir de votre devis. Montant : {inv.amount} €",
        type="invoice",
        related_id=inv.id,
    )
    return inv


# -----------------------------------------------------------------------------
# FACTURES (cliente)
# -----------------------------------------------------------------------------
@router.get("/invoices", response_model=List[InvoiceOut])
def my_invoices(me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(Invoice).filter(Invoice.user_id == me.id).order_by(Invoice.id.desc()).all()


@router.post("/invoices/{invoice_id}/paid", response_model=InvoiceOut)
def pay_invoice(invoice_id: int, me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    inv = db.get(Invoice, invoice_id)
    if not inv or inv.user_id != me.id:
        raise HTTPException(404, "Facture non trouvée")
    if inv.status != InvoiceStatus.UNPAID:
        raise HTTPException(409, "Facture déjà réglée ou annulée")
    inv.status = InvoiceStatus.PAID
    db.commit(); db.refresh(inv)
    return inv


# -----------------------------------------------------------------------------
# FACTURES (admin)
# -----------------------------------------------------------------------------
@router.get("/admin/invoices", response_model=List[InvoiceOut])
def admin_invoices(me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    return db.query(Invoice).order_by(Invoice.id.desc()).all()


@router.post("/admin/invoices", response_model=InvoiceOut, status_code=201)
def admin_create_invoice(payload: InvoiceIn, me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    client = db.get(User, payload.user_id)
    if not client:
        raise HTTPException(404, "Client non trouvé")
    if payload.quote_id is not None and not db.get(Quote, payload.quote_id):
        raise HTTPException(404, "Devis non trouvé")

    inv = _new_invoice(
        db,
        user_id=client.id,
        quote_id=payload.quote_id,
        subtotal=payload.subtotal,
        vat_rate=payload.vat_rate,
        description=payload.description,
        work_details=payload.work_details,
        photos_before=payload.photos_before,
        photos_after=payload.photos_after,
    )
    notify(
        db,
        user_id=client.id,
        title="Nouvelle facture",
        message=f"Une facture de {inv.amount} € est disponible",
        type="invoice",
        related_id=inv.id,
    )
    return inv


@router.post("/admin/invoices/{invoice_id}", response_model=InvoiceOut)
def admin_update_invoice(invoice_id: int, payload: InvoiceUpdateIn, me: User = Depends(auth_admin),
                         db: Session = Depends(get_db)):
    inv = _get_invoice_or_404(db, invoice_id)
    if inv.status != InvoiceStatus.UNPAID:
        raise HTTPException(409, "Seule une facture impayée peut être modifiée")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    subtotal = changes.pop("subtotal", None)
    rate = changes.pop("vat_rate", None)
    for field, value in changes.items():
        setattr(inv, field, value)

    if subtotal is not None or rate is not None:
        # gli importi restano coerenti con subtotal e aliquota
        subtotal = Decimal(subtotal if subtotal is not None else (inv.subtotal or inv.amount))
        rate = Decimal(rate if rate is not None else inv.vat_rate)
        inv.subtotal, inv.vat_rate = subtotal, rate
        inv.vat_amount, inv.amount = compute_totals(subtotal, rate)

    db.commit(); db.refresh(inv)
    logger.info("Fattura %s modificata (admin %s)", inv.id, me.id)
    return inv


@router.delete("/admin/invoices/{invoice_id}")
def admin_delete_invoice(invoice_id: int, me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    inv = _get_invoice_or_404(db, invoice_id)
    if inv.status == InvoiceStatus.PAID:
        raise HTTPException(409, "Une facture réglée ne peut pas être supprimée")
    db.delete(inv)
    db.commit()
    logger.info("Fattura %s eliminata (admin %s)", invoice_id, me.id)
    return {"message": "Facture supprimée avec succès"}


@router.post("/admin/invoices/{invoice_id}/status", response_model=InvoiceOut)
def admin_invoice_status(invoice_id: int, payload: InvoiceStatusIn, me: User = Depends(auth_admin),
                         db: Session = Depends(get_db)):
    inv = _get_invoice_or_404(db, invoice_id)
    # InvalidStatusTransition -> 409
    check_invoice_transition(inv.status, payload.status)
    inv.status = payload.status
    db.commit(); db.refresh(inv)

    notify(
        db,
        user_id=inv.user_id,
        title="Statut de facture mis à jour",
        message=f"Votre facture est maintenant : {inv.status.value}",
        type="invoice",
        related_id=inv.id,
    )
    return inv


@router.post("/admin/invoices/{invoice_id}/notify", response_model=InvoiceOut)
def admin_invoice_notify(invoice_id: int, me: User = Depends(auth_admin), db: Session = Depends(get_db)):
    inv = _get_invoice_or_404(db, invoice_id)
    client = db.get(User, inv.user_id)
    if not client or not client.email:
        raise HTTPException(404, "Client non trouvé")

    if mailer.invoice_issued(inv, client) == 0:
        raise HTTPException(502, "Échec de l'envoi de l'email")
    inv.email_sent = True
    db.commit(); db.refresh(inv)
    return inv
