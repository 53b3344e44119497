"""Invoice API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from vetbilling.core.database import get_db
from vetbilling.core.errors import SettlementError
from vetbilling.models.invoice import InvoiceStatus
from vetbilling.models.payment import Payment
from vetbilling.repositories.invoice_repository import InvoiceRepository
from vetbilling.repositories.owner_repository import OwnerRepository
from vetbilling.repositories.patient_repository import PatientRepository
from vetbilling.repositories.payment_repository import PaymentRepository
from vetbilling.schemas.invoice import InvoiceCreate, InvoiceResponse
from vetbilling.schemas.payment import PaymentCreate, PaymentResponse, SettlementResponse
from vetbilling.services.exchange_rate_provider import (
    ExchangeRateProviderBase,
    get_exchange_rate_provider,
)
from vetbilling.services.settlement_service import SettlementService

router = APIRouter()


@router.post("/", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Register an invoice composed elsewhere. It starts pending with nothing paid."""
    if data.owner_id and not OwnerRepository(db).get_by_id(data.owner_id):
        raise HTTPException(status_code=404, detail="Owner not found")
    if data.patient_id:
        patient = PatientRepository(db).get_by_id(data.patient_id)
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        if data.owner_id and patient.owner_id != data.owner_id:
            raise HTTPException(status_code=400, detail="Patient does not belong to this owner")
    invoice = InvoiceRepository(db).create(data)
    return InvoiceResponse.from_invoice(invoice)


@router.get("/", response_model=list[InvoiceResponse])
async def list_invoices(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    owner_id: UUID | None = None,
    patient_id: UUID | None = None,
    status: list[InvoiceStatus] | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[InvoiceResponse]:
    """List invoices with optional filters."""
    invoices = InvoiceRepository(db).get_all(
        skip=skip, limit=limit, owner_id=owner_id, patient_id=patient_id, statuses=status
    )
    return [InvoiceResponse.from_invoice(invoice) for invoice in invoices]


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Get an invoice by ID."""
    invoice = InvoiceRepository(db).get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return InvoiceResponse.from_invoice(invoice)


@router.get("/{invoice_id}/payments", response_model=list[PaymentResponse])
async def list_invoice_payments(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> list[Payment]:
    """Payment history of an invoice, including cancelled payments."""
    if not InvoiceRepository(db).get_by_id(invoice_id):
        raise HTTPException(status_code=404, detail="Invoice not found")
    return PaymentRepository(db).get_by_invoice_id(invoice_id)


@router.post("/{invoice_id}/payments", response_model=SettlementResponse, status_code=201)
def apply_payment(
    invoice_id: UUID,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    rate_provider: ExchangeRateProviderBase = Depends(get_exchange_rate_provider),
) -> SettlementResponse:
    """Apply a payment to an invoice.

    The payment may be in USD or local currency, partial, and may draw on
    the owner's credit balance. Overpayment is accepted and reported in
    ``overage_usd``.
    """
    service = SettlementService(db, rate_provider=rate_provider)
    try:
        result = service.apply_payment(
            invoice_id=invoice_id,
            currency=data.currency,
            amount=data.amount,
            exchange_rate=data.exchange_rate,
            payment_method_id=data.payment_method_id,
            reference=data.reference,
            credit_amount_used=data.credit_amount_used,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return SettlementResponse.from_result(result)


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> InvoiceResponse:
    """Cancel an invoice. Existing payments are kept; new ones are refused."""
    try:
        invoice = InvoiceRepository(db).cancel(invoice_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return InvoiceResponse.from_invoice(invoice)
