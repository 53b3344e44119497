from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from vetbilling.core.database import Base
from vetbilling.models.currency import Currency
from vetbilling.models.shared import UUIDType, generate_uuid


class PaymentMode(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CARD = "card"
    MOBILE = "mobile"
    OTHER = "other"


class PaymentMethod(Base):
    """A tender type configured by the clinic (cash, bank transfer, mobile payment...)."""

    __tablename__ = "payment_methods"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    currency = Column(String(10), nullable=False, default=Currency.USD.value)
    payment_mode = Column(String(20), nullable=False, default=PaymentMode.CASH.value)
    requires_reference = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
