"""Owner API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vetbilling.core.database import get_db
from vetbilling.models.credit_account import OwnerCreditAccount
from vetbilling.models.owner import Owner
from vetbilling.repositories.credit_account_repository import CreditAccountRepository
from vetbilling.repositories.owner_repository import OwnerRepository
from vetbilling.schemas.invoice import DebtSummaryResponse
from vetbilling.schemas.owner import CreditAccountResponse, OwnerCreate, OwnerResponse
from vetbilling.services.settlement_service import SettlementService

router = APIRouter()


def _get_owner_or_404(db: Session, owner_id: UUID) -> Owner:
    owner = OwnerRepository(db).get_by_id(owner_id)
    if not owner:
        raise HTTPException(status_code=404, detail="Owner not found")
    return owner


@router.post("/", response_model=OwnerResponse, status_code=201)
async def create_owner(
    data: OwnerCreate,
    db: Session = Depends(get_db),
) -> Owner:
    """Create an owner together with their credit account."""
    owner = OwnerRepository(db).create(data)
    CreditAccountRepository(db).create(owner.id, data.opening_credit_usd)  # type: ignore[arg-type]
    return owner


@router.get("/", response_model=list[OwnerResponse])
async def list_owners(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
) -> list[Owner]:
    return OwnerRepository(db).get_all(skip=skip, limit=limit)


@router.get("/{owner_id}", response_model=OwnerResponse)
async def get_owner(
    owner_id: UUID,
    db: Session = Depends(get_db),
) -> Owner:
    return _get_owner_or_404(db, owner_id)


@router.get("/{owner_id}/credit", response_model=CreditAccountResponse)
async def get_owner_credit(
    owner_id: UUID,
    db: Session = Depends(get_db),
) -> OwnerCreditAccount:
    """Current credit balance of an owner, in USD."""
    _get_owner_or_404(db, owner_id)
    account = CreditAccountRepository(db).get_by_owner_id(owner_id)
    if not account:
        raise HTTPException(status_code=404, detail="Credit account not found")
    return account


@router.get("/{owner_id}/debt-summary", response_model=DebtSummaryResponse)
async def get_owner_debt_summary(
    owner_id: UUID,
    db: Session = Depends(get_db),
) -> DebtSummaryResponse:
    """Outstanding debt across all pending and partially paid invoices of an owner."""
    _get_owner_or_404(db, owner_id)
    summary = SettlementService(db).get_debt_summary(owner_id=owner_id)
    return DebtSummaryResponse.from_summary(summary)
