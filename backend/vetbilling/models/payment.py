"""Payment model - one settlement action against an invoice."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from vetbilling.core.database import Base
from vetbilling.models.currency import Currency
from vetbilling.models.shared import EXCHANGE_RATE, MONEY, UUIDType, generate_uuid, utc_now


class PaymentStatus(str, Enum):
    """Payment status enum."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class Payment(Base):
    """Payment model - append-only record of one settlement.

    Amounts, rate and USD equivalent are frozen when the payment is applied.
    The only later change is the one-way transition to ``cancelled``.
    """

    __tablename__ = "payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    owner_id = Column(
        UUIDType, ForeignKey("owners.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    currency = Column(String(10), nullable=False, default=Currency.USD.value)
    amount = Column(MONEY, nullable=False, default=0)
    amount_usd_equivalent = Column(MONEY, nullable=False, default=0)
    exchange_rate_used = Column(EXCHANGE_RATE, nullable=False)
    rate_source = Column(String(20), nullable=True)
    credit_amount_used = Column(MONEY, nullable=False, default=0)
    overage_usd = Column(MONEY, nullable=False, default=0)

    payment_method_id = Column(
        UUIDType, ForeignKey("payment_methods.id", ondelete="RESTRICT"), nullable=True
    )
    reference = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=PaymentStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_reason = Column(Text, nullable=True)
