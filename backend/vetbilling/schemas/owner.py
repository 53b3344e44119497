from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OwnerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact: str | None = Field(default=None, max_length=255)
    opening_credit_usd: Decimal = Field(default=Decimal("0"), ge=0)


class OwnerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    contact: str | None = None
    created_at: datetime
    updated_at: datetime


class CreditAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    owner_id: UUID
    balance_usd: Decimal
    updated_at: datetime | None = None
