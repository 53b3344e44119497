"""Payment API endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from vetbilling.core.database import get_db
from vetbilling.core.errors import SettlementError
from vetbilling.models.payment import Payment, PaymentStatus
from vetbilling.repositories.payment_repository import PaymentRepository
from vetbilling.schemas.payment import (
    PaymentCancel,
    PaymentResponse,
    PaymentsSummaryResponse,
    SettlementResponse,
)
from vetbilling.services.settlement_service import SettlementService

router = APIRouter()


@router.get("/", response_model=list[PaymentResponse])
async def list_payments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    invoice_id: UUID | None = None,
    owner_id: UUID | None = None,
    status: PaymentStatus | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
) -> list[Payment]:
    """List payments with optional filters."""
    return PaymentRepository(db).get_all(
        skip=skip,
        limit=limit,
        invoice_id=invoice_id,
        owner_id=owner_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/summary", response_model=PaymentsSummaryResponse)
async def payments_summary(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
) -> PaymentsSummaryResponse:
    """Totals of active payments in a period, split by currency."""
    totals = SettlementService(db).summarize_payments(start_date=start_date, end_date=end_date)
    return PaymentsSummaryResponse(
        start_date=start_date,
        end_date=end_date,
        total_usd=totals.total_usd,
        total_local=totals.total_local,
        total_usd_equivalent=totals.total_usd_equivalent,
        total_credit_used=totals.total_credit_used,
        count=totals.count,
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> Payment:
    """Get a payment by ID."""
    payment = PaymentRepository(db).get_by_id(payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.post("/{payment_id}/cancel", response_model=SettlementResponse)
async def cancel_payment(
    payment_id: UUID,
    data: PaymentCancel | None = None,
    db: Session = Depends(get_db),
) -> SettlementResponse:
    """Cancel an active payment and reverse its effect on the invoice and owner credit."""
    service = SettlementService(db)
    try:
        result = service.cancel_payment(payment_id, reason=data.reason if data else None)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from None
    return SettlementResponse.from_result(result)
