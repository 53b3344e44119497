"""Payment method schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vetbilling.models.currency import Currency
from vetbilling.models.payment_method import PaymentMode


class PaymentMethodCreate(BaseModel):
    """Schema for creating a payment method."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    currency: Currency = Currency.USD
    payment_mode: PaymentMode = PaymentMode.CASH
    requires_reference: bool = False


class PaymentMethodUpdate(BaseModel):
    """Schema for updating a payment method."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    currency: Currency | None = None
    payment_mode: PaymentMode | None = None
    requires_reference: bool | None = None
    is_active: bool | None = None


class PaymentMethodResponse(BaseModel):
    """Schema for payment method response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    currency: str
    payment_mode: str
    requires_reference: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime
