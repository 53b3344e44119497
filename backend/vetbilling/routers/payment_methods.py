"""Payment methods API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vetbilling.core.database import get_db
from vetbilling.models.payment_method import PaymentMethod
from vetbilling.repositories.payment_method_repository import PaymentMethodRepository
from vetbilling.schemas.payment_method import (
    PaymentMethodCreate,
    PaymentMethodResponse,
    PaymentMethodUpdate,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[PaymentMethodResponse],
    summary="List payment methods",
)
async def list_payment_methods(
    active_only: bool = False,
    db: Session = Depends(get_db),
) -> list[PaymentMethod]:
    """List payment methods, optionally only the active ones."""
    return PaymentMethodRepository(db).get_all(active_only=active_only)


@router.get(
    "/{payment_method_id}",
    response_model=PaymentMethodResponse,
    summary="Get payment method",
    responses={404: {"description": "Payment method not found"}},
)
async def get_payment_method(
    payment_method_id: UUID,
    db: Session = Depends(get_db),
) -> PaymentMethod:
    """Get a payment method by ID."""
    method = PaymentMethodRepository(db).get_by_id(payment_method_id)
    if not method:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return method


@router.post(
    "/",
    response_model=PaymentMethodResponse,
    status_code=201,
    summary="Create payment method",
    responses={422: {"description": "Validation error"}},
)
async def create_payment_method(
    data: PaymentMethodCreate,
    db: Session = Depends(get_db),
) -> PaymentMethod:
    """Create a payment method."""
    return PaymentMethodRepository(db).create(data)


@router.patch(
    "/{payment_method_id}",
    response_model=PaymentMethodResponse,
    summary="Update payment method",
    responses={404: {"description": "Payment method not found"}},
)
async def update_payment_method(
    payment_method_id: UUID,
    data: PaymentMethodUpdate,
    db: Session = Depends(get_db),
) -> PaymentMethod:
    """Update a payment method."""
    method = PaymentMethodRepository(db).update(payment_method_id, data)
    if not method:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return method


@router.delete(
    "/{payment_method_id}",
    response_model=PaymentMethodResponse,
    summary="Deactivate payment method",
    responses={404: {"description": "Payment method not found"}},
)
async def delete_payment_method(
    payment_method_id: UUID,
    db: Session = Depends(get_db),
) -> PaymentMethod:
    """Deactivate a payment method. Existing payments keep referencing it."""
    method = PaymentMethodRepository(db).deactivate(payment_method_id)
    if not method:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return method
