"""Settlement service: runs the settlement engine inside one transaction."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from vetbilling.core.errors import (
    ConcurrentModification,
    InvalidRate,
    PaymentMethodRequired,
    ReferenceRequired,
)
from vetbilling.core.money import quantize_money
from vetbilling.models.credit_account import OwnerCreditAccount
from vetbilling.models.currency import Currency
from vetbilling.models.invoice import Invoice
from vetbilling.models.payment import PaymentStatus
from vetbilling.repositories.credit_account_repository import CreditAccountRepository
from vetbilling.repositories.invoice_repository import InvoiceRepository
from vetbilling.repositories.payment_method_repository import PaymentMethodRepository
from vetbilling.repositories.payment_repository import PaymentRepository, PaymentTotals
from vetbilling.services import settlement_engine as engine
from vetbilling.services.exchange_rate_provider import ExchangeRateProviderBase, RateSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SettlementService:
    """Applies and cancels payments atomically.

    The invoice and the owner's credit account are read with row locks and
    carry a version counter, so two writers on the same invoice serialize or
    the loser gets ``ConcurrentModification``. Every operation is a single
    commit; any failure rolls the whole unit back.
    """

    def __init__(self, db: Session, rate_provider: ExchangeRateProviderBase | None = None):
        self.db = db
        self.rate_provider = rate_provider
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.credit_repo = CreditAccountRepository(db)
        self.method_repo = PaymentMethodRepository(db)

    def _load_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id, for_update=True)
        if not invoice:
            raise LookupError(f"Invoice {invoice_id} not found")
        return invoice

    def _load_credit_account(self, owner_id: UUID | None) -> OwnerCreditAccount | None:
        if owner_id is None:
            return None
        return self.credit_repo.get_by_owner_id(owner_id, for_update=True)

    def _resolve_rate(self, exchange_rate: Decimal | None) -> tuple[Decimal, str]:
        if exchange_rate is not None:
            return exchange_rate, RateSource.MANUAL.value
        if self.rate_provider is None:
            raise InvalidRate("An exchange rate is required when no rate provider is configured")
        rate = self.rate_provider.get_rate()
        return rate.value, rate.source.value

    def _check_payment_method(self, request: engine.PaymentRequest) -> None:
        if request.payment_method_id is None:
            return
        method = self.method_repo.get_by_id(request.payment_method_id)
        if not method:
            raise LookupError(f"Payment method {request.payment_method_id} not found")
        if not method.is_active:
            raise PaymentMethodRequired(f"Payment method '{method.name}' is inactive")
        if method.requires_reference and not request.reference:
            raise ReferenceRequired(f"Payment method '{method.name}' requires a reference")

    def _commit(self, work: Callable[[], T]) -> T:
        try:
            result = work()
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise ConcurrentModification() from None
        except Exception:
            self.db.rollback()
            raise
        return result

    def apply_payment(
        self,
        invoice_id: UUID,
        currency: Currency,
        amount: Any = Decimal("0"),
        exchange_rate: Decimal | None = None,
        payment_method_id: UUID | None = None,
        reference: str | None = None,
        credit_amount_used: Any = Decimal("0"),
    ) -> engine.SettlementResult:
        """Apply a payment to an invoice and persist the result.

        When ``exchange_rate`` is omitted the configured rate provider
        supplies it and its source tag is frozen on the payment.
        """

        def work() -> engine.SettlementResult:
            invoice = self._load_invoice(invoice_id)
            account = self._load_credit_account(invoice.owner_id)  # type: ignore[arg-type]
            rate, rate_source = self._resolve_rate(exchange_rate)
            request = engine.PaymentRequest.build(
                currency=currency,
                amount=amount,
                exchange_rate=rate,
                payment_method_id=payment_method_id,
                reference=reference,
                credit_amount_requested=credit_amount_used,
                rate_source=rate_source,
            )
            engine.validate_payment(invoice, account, request)
            self._check_payment_method(request)

            result = engine.apply_payment(invoice, account, request)
            self.payment_repo.add(result.payment)
            return result

        result = self._commit(work)
        self.db.refresh(result.invoice)
        self.db.refresh(result.payment)
        logger.info(
            "Applied payment %s to invoice %s: %s %s + %s USD credit, invoice now %s",
            result.payment.id,
            result.invoice.id,
            result.payment.amount,
            result.payment.currency,
            result.payment.credit_amount_used,
            result.invoice.status,
        )
        return result

    def cancel_payment(self, payment_id: UUID, reason: str | None = None) -> engine.SettlementResult:
        """Cancel an active payment, reversing its effect on invoice and credit."""

        def work() -> engine.SettlementResult:
            payment = self.payment_repo.get_by_id(payment_id, for_update=True)
            if not payment:
                raise LookupError(f"Payment {payment_id} not found")
            invoice = self._load_invoice(payment.invoice_id)  # type: ignore[arg-type]
            account = None
            if payment.credit_amount_used and payment.credit_amount_used > 0:
                account = self._load_credit_account(payment.owner_id or invoice.owner_id)  # type: ignore[arg-type]
            return engine.cancel_payment(payment, invoice, account, reason=reason)

        result = self._commit(work)
        self.db.refresh(result.invoice)
        self.db.refresh(result.payment)
        logger.info(
            "Cancelled payment %s on invoice %s (reason: %s), invoice now %s",
            result.payment.id,
            result.invoice.id,
            result.payment.cancelled_reason,
            result.invoice.status,
        )
        return result

    def get_debt_summary(
        self, owner_id: UUID | None = None, patient_id: UUID | None = None
    ) -> engine.DebtSummary:
        """Outstanding debt of an owner or a patient."""
        invoices = self.invoice_repo.get_outstanding(owner_id=owner_id, patient_id=patient_id)
        return engine.compute_debt_summary(invoices)

    def summarize_payments(
        self, start_date: datetime | None = None, end_date: datetime | None = None
    ) -> PaymentTotals:
        """Totals of active payments in a period. Cancelled payments never count."""
        totals = self.payment_repo.get_totals(
            start_date=start_date, end_date=end_date, status=PaymentStatus.ACTIVE
        )
        return PaymentTotals(
            total_usd=quantize_money(totals.total_usd),
            total_local=quantize_money(totals.total_local),
            total_usd_equivalent=quantize_money(totals.total_usd_equivalent),
            total_credit_used=quantize_money(totals.total_credit_used),
            count=totals.count,
        )
