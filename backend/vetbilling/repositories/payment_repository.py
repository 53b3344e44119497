"""Payment repository for data access."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Query, Session

from vetbilling.models.currency import Currency
from vetbilling.models.payment import Payment, PaymentStatus


@dataclass
class PaymentTotals:
    """Aggregated amounts of a set of payments."""

    total_usd: Decimal
    total_local: Decimal
    total_usd_equivalent: Decimal
    total_credit_used: Decimal
    count: int


def _dec(value: object) -> Decimal:
    return Decimal(str(value)) if value else Decimal("0")


class PaymentRepository:
    """Repository for Payment model.

    Payments are append-only: they are added by the settlement service and
    only ever change status through it, so there is no update or delete here.
    """

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        invoice_id: UUID | None = None,
        owner_id: UUID | None = None,
        status: PaymentStatus | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> "Query[Payment]":
        query = self.db.query(Payment)
        if invoice_id:
            query = query.filter(Payment.invoice_id == invoice_id)
        if owner_id:
            query = query.filter(Payment.owner_id == owner_id)
        if status:
            query = query.filter(Payment.status == status.value)
        if start_date:
            query = query.filter(Payment.created_at >= start_date)
        if end_date:
            query = query.filter(Payment.created_at <= end_date)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        invoice_id: UUID | None = None,
        owner_id: UUID | None = None,
        status: PaymentStatus | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Payment]:
        """Get all payments with optional filters, newest first."""
        query = self._filtered(invoice_id, owner_id, status, start_date, end_date)
        return query.order_by(Payment.created_at.desc()).offset(skip).limit(limit).all()

    def get_by_invoice_id(self, invoice_id: UUID) -> list[Payment]:
        """Get the payment history of an invoice in application order."""
        return (
            self.db.query(Payment)
            .filter(Payment.invoice_id == invoice_id)
            .order_by(Payment.created_at.asc())
            .all()
        )

    def get_by_id(self, payment_id: UUID, for_update: bool = False) -> Payment | None:
        """Get a payment by ID."""
        query = self.db.query(Payment).filter(Payment.id == payment_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def add(self, payment: Payment) -> Payment:
        """Stage a payment in the current transaction without committing."""
        self.db.add(payment)
        return payment

    def get_totals(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        status: PaymentStatus = PaymentStatus.ACTIVE,
    ) -> PaymentTotals:
        """Sum payments by currency within a date range."""
        rows = (
            self._filtered(status=status, start_date=start_date, end_date=end_date)
            .with_entities(
                Payment.currency,
                sa_func.sum(Payment.amount),
                sa_func.sum(Payment.amount_usd_equivalent),
                sa_func.sum(Payment.credit_amount_used),
                sa_func.count(Payment.id),
            )
            .group_by(Payment.currency)
            .all()
        )

        totals = PaymentTotals(
            total_usd=Decimal("0"),
            total_local=Decimal("0"),
            total_usd_equivalent=Decimal("0"),
            total_credit_used=Decimal("0"),
            count=0,
        )
        for currency, amount, usd_equivalent, credit_used, count in rows:
            if currency == Currency.USD.value:
                totals.total_usd += _dec(amount)
            else:
                totals.total_local += _dec(amount)
            totals.total_usd_equivalent += _dec(usd_equivalent)
            totals.total_credit_used += _dec(credit_used)
            totals.count += count
        return totals
