from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func

from vetbilling.core.database import Base
from vetbilling.models.currency import Currency
from vetbilling.models.shared import EXCHANGE_RATE, MONEY, UUIDType, generate_uuid


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELED = "canceled"


class InvoiceItemType(str, Enum):
    GROOMING = "grooming"
    LAB_EXAM = "lab_exam"
    CONSULTATION = "consultation"
    VACCINE = "vaccine"
    PRODUCT = "product"


class Invoice(Base):
    """Clinic invoice and its settlement ledger.

    ``amount_paid_usd`` and ``amount_paid_local`` are running totals kept by
    the settlement engine. ``amount_paid_usd_equivalent`` is the sum of the
    USD equivalents frozen on the active payments, each at its own rate, and
    ``status`` is always re-derived from it.
    """

    __tablename__ = "invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    owner_id = Column(
        UUIDType, ForeignKey("owners.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    patient_id = Column(
        UUIDType, ForeignKey("patients.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    currency = Column(String(10), nullable=False, default=Currency.USD.value)
    total = Column(MONEY, nullable=False, default=0)
    # Rate (Bs per USD) used to convert a LOCAL total; adopted from the first
    # local payment when not given at issue
    exchange_rate = Column(EXCHANGE_RATE, nullable=True)

    amount_paid_usd = Column(MONEY, nullable=False, default=0)
    amount_paid_local = Column(MONEY, nullable=False, default=0)
    amount_paid_usd_equivalent = Column(MONEY, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=InvoiceStatus.PENDING.value)

    # Line items stored as JSON array
    items = Column(JSON, nullable=False, default=list)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}
