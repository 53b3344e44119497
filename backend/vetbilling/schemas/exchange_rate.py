from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ExchangeRateResponse(BaseModel):
    rate: Decimal
    source: str
    mode: str
    fetched_at: datetime | None = None


class ManualRateUpdate(BaseModel):
    rate: Decimal = Field(gt=0)
