"""Invoice settlement engine.

Pure rules for applying and reversing payments against an invoice ledger and
an owner's credit account. Functions here mutate the ORM objects they are
handed but never touch a session: loading, locking and committing belong to
``SettlementService``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from vetbilling.core.errors import (
    AlreadyCancelled,
    CreditAccountRequired,
    EmptyPayment,
    InsufficientCredit,
    InvoiceClosed,
    PaymentMethodRequired,
)
from vetbilling.core.money import (
    EPSILON,
    ZERO,
    money_equal,
    quantize_money,
    quantize_rate,
    to_decimal,
    to_usd,
    validate_rate,
)
from vetbilling.models.credit_account import OwnerCreditAccount
from vetbilling.models.currency import Currency
from vetbilling.models.invoice import Invoice, InvoiceStatus
from vetbilling.models.payment import Payment, PaymentStatus
from vetbilling.models.shared import generate_uuid, utc_now

logger = logging.getLogger(__name__)


class PaymentFunding(str, Enum):
    """How a payment request is funded."""

    TENDER = "tender"  # money only
    CREDIT = "credit"  # owner credit only
    MIXED = "mixed"  # both


@dataclass(frozen=True)
class PaymentRequest:
    """A candidate payment, validated as a whole before anything is mutated."""

    currency: Currency
    amount: Decimal
    exchange_rate: Decimal
    payment_method_id: UUID | None = None
    reference: str | None = None
    credit_amount_requested: Decimal = ZERO
    rate_source: str | None = None

    @classmethod
    def build(
        cls,
        *,
        currency: Currency | str,
        exchange_rate: Any,
        amount: Any = ZERO,
        payment_method_id: UUID | None = None,
        reference: str | None = None,
        credit_amount_requested: Any = ZERO,
        rate_source: str | None = None,
    ) -> "PaymentRequest":
        """Normalize raw input into a request.

        Amounts are rounded to cents and the rate to the four places it is
        stored with, so the frozen USD equivalent matches the stored rate.
        """
        reference = reference.strip() if reference else None
        return cls(
            currency=Currency(currency),
            amount=quantize_money(amount),
            exchange_rate=quantize_rate(exchange_rate),
            payment_method_id=payment_method_id,
            reference=reference or None,
            credit_amount_requested=quantize_money(credit_amount_requested),
            rate_source=rate_source,
        )

    @property
    def funding(self) -> PaymentFunding:
        if self.credit_amount_requested > 0 and self.amount > 0:
            return PaymentFunding.MIXED
        if self.credit_amount_requested > 0:
            return PaymentFunding.CREDIT
        return PaymentFunding.TENDER

    @property
    def tender_usd(self) -> Decimal:
        """USD equivalent of the money part, at the request's rate."""
        return to_usd(self.amount, self.currency, self.exchange_rate)

    @property
    def total_usd(self) -> Decimal:
        return self.tender_usd + self.credit_amount_requested

    def validate(self, credit_account: OwnerCreditAccount | None) -> None:
        """Check amounts, rate, credit and payment method, in that order."""
        if self.amount < 0 or self.credit_amount_requested < 0:
            raise EmptyPayment("Payment and credit amounts cannot be negative")
        if self.amount == 0 and self.credit_amount_requested == 0:
            raise EmptyPayment()
        validate_rate(self.exchange_rate)

        if self.credit_amount_requested > 0:
            if credit_account is None:
                raise InsufficientCredit("Owner has no credit account to draw from")
            balance = to_decimal(credit_account.balance_usd)
            if self.credit_amount_requested > balance:
                raise InsufficientCredit(
                    f"Requested credit {self.credit_amount_requested} exceeds "
                    f"available balance {quantize_money(balance)}"
                )

        if self.amount > 0 and self.payment_method_id is None:
            raise PaymentMethodRequired()


@dataclass
class ReconciliationWarning:
    """A ledger value had to be clamped to zero while reversing a payment."""

    field: str
    attempted: Decimal
    clamped_to: Decimal = ZERO
    invoice_id: UUID | None = None
    payment_id: UUID | None = None

    @property
    def message(self) -> str:
        return (
            f"{self.field} would have become {self.attempted}; "
            f"clamped to {self.clamped_to}"
        )


@dataclass
class SettlementResult:
    payment: Payment
    invoice: Invoice
    warnings: list[ReconciliationWarning] = field(default_factory=list)


@dataclass
class DebtLine:
    invoice: Invoice
    unpaid_fraction: Decimal
    remaining_usd: Decimal


@dataclass
class DebtSummary:
    total_debt_usd: Decimal
    invoice_count: int
    invoices: list[DebtLine]


def invoice_rate(invoice: Invoice, fallback: Any = None) -> Decimal | None:
    """The rate in effect for the invoice, or ``fallback`` if it has none yet."""
    if invoice.exchange_rate is not None:
        return to_decimal(invoice.exchange_rate)
    if fallback is not None:
        return to_decimal(fallback)
    return None


def invoice_total_usd(invoice: Invoice, rate: Any = None) -> Decimal:
    return to_usd(to_decimal(invoice.total), invoice.currency, invoice_rate(invoice, rate))


def total_paid_usd_equivalent(invoice: Invoice) -> Decimal:
    """Sum of the USD equivalents frozen on the active payments.

    Local payments count at the rate each was made with, not at the
    invoice rate, so the ledger always agrees with its payments.
    """
    return to_decimal(invoice.amount_paid_usd_equivalent)


def remaining_due_usd(invoice: Invoice, rate: Any = None) -> Decimal:
    """Outstanding balance in USD. Negative when the invoice is overpaid."""
    return invoice_total_usd(invoice, rate) - total_paid_usd_equivalent(invoice)


def derive_status(invoice: Invoice, rate: Any = None) -> InvoiceStatus:
    """Derive the invoice status from its paid amounts.

    A canceled invoice stays canceled. Amounts exactly ``EPSILON`` short of
    the total count as paid.
    """
    if invoice.status == InvoiceStatus.CANCELED.value:
        return InvoiceStatus.CANCELED

    paid = total_paid_usd_equivalent(invoice)
    if paid >= invoice_total_usd(invoice, rate) - EPSILON:
        return InvoiceStatus.PAID
    if money_equal(paid, ZERO):
        return InvoiceStatus.PENDING
    return InvoiceStatus.PARTIAL


def _set_status(invoice: Invoice, now: datetime, rate: Any = None) -> None:
    status = derive_status(invoice, rate)
    if status == InvoiceStatus.PAID and invoice.status != InvoiceStatus.PAID.value:
        invoice.paid_at = now
    elif status != InvoiceStatus.PAID:
        invoice.paid_at = None
    invoice.status = status.value


def validate_payment(
    invoice: Invoice,
    credit_account: OwnerCreditAccount | None,
    request: PaymentRequest,
) -> None:
    """Raise the first settlement error the request would hit, if any."""
    if invoice.status == InvoiceStatus.CANCELED.value:
        raise InvoiceClosed()
    request.validate(credit_account)


def apply_payment(
    invoice: Invoice,
    credit_account: OwnerCreditAccount | None,
    request: PaymentRequest,
    now: datetime | None = None,
) -> SettlementResult:
    """Apply a payment request to an invoice.

    Validation runs before any mutation. On success the credit account is
    drawn, the invoice buckets are incremented, a new active ``Payment`` is
    returned and the invoice status is re-derived.
    """
    validate_payment(invoice, credit_account, request)

    now = now or utc_now()
    remaining = remaining_due_usd(invoice, request.exchange_rate)
    requested = request.total_usd
    overage = ZERO
    if requested > remaining + EPSILON:
        overage = requested - max(remaining, ZERO)
        logger.warning(
            "Payment on invoice %s exceeds remaining due %s by %s USD",
            invoice.id,
            remaining,
            overage,
        )

    if request.credit_amount_requested > 0:
        credit_account.balance_usd = (  # type: ignore[union-attr]
            to_decimal(credit_account.balance_usd) - request.credit_amount_requested  # type: ignore[union-attr]
        )

    paid_usd = to_decimal(invoice.amount_paid_usd) + request.credit_amount_requested
    paid_local = to_decimal(invoice.amount_paid_local)
    if request.currency == Currency.USD:
        paid_usd += request.amount
    else:
        paid_local += request.amount
    invoice.amount_paid_usd = paid_usd
    invoice.amount_paid_local = paid_local
    invoice.amount_paid_usd_equivalent = total_paid_usd_equivalent(invoice) + requested

    needs_rate = invoice.currency == Currency.LOCAL.value or paid_local > 0
    if invoice.exchange_rate is None and needs_rate:
        invoice.exchange_rate = request.exchange_rate

    payment = Payment(
        id=generate_uuid(),
        invoice_id=invoice.id,
        owner_id=invoice.owner_id,
        currency=request.currency.value,
        amount=request.amount,
        amount_usd_equivalent=request.tender_usd,
        exchange_rate_used=request.exchange_rate,
        rate_source=request.rate_source,
        credit_amount_used=request.credit_amount_requested,
        overage_usd=overage,
        payment_method_id=request.payment_method_id,
        reference=request.reference,
        status=PaymentStatus.ACTIVE.value,
        created_at=now,
    )

    _set_status(invoice, now, request.exchange_rate)
    return SettlementResult(payment=payment, invoice=invoice)


def _subtract_floor(
    current: Any, amount: Decimal, field_name: str, invoice: Invoice, payment: Payment
) -> tuple[Decimal, ReconciliationWarning | None]:
    value = to_decimal(current) - amount
    if value >= 0:
        return value, None
    warning = ReconciliationWarning(
        field=field_name,
        attempted=value,
        invoice_id=invoice.id,  # type: ignore[arg-type]
        payment_id=payment.id,  # type: ignore[arg-type]
    )
    logger.warning(
        "Reconciliation: cancelling payment %s on invoice %s: %s",
        payment.id,
        invoice.id,
        warning.message,
    )
    return ZERO, warning


def cancel_payment(
    payment: Payment,
    invoice: Invoice,
    credit_account: OwnerCreditAccount | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> SettlementResult:
    """Reverse exactly the effect of one active payment."""
    if payment.status != PaymentStatus.ACTIVE.value:
        raise AlreadyCancelled()
    credit_used = to_decimal(payment.credit_amount_used)
    if credit_used > 0 and credit_account is None:
        raise CreditAccountRequired()

    now = now or utc_now()
    warnings: list[ReconciliationWarning] = []
    amount = to_decimal(payment.amount)

    usd_delta = credit_used + (amount if payment.currency == Currency.USD.value else ZERO)
    local_delta = amount if payment.currency == Currency.LOCAL.value else ZERO

    paid_usd, warning = _subtract_floor(
        invoice.amount_paid_usd, usd_delta, "amount_paid_usd", invoice, payment
    )
    if warning:
        warnings.append(warning)
    paid_local, warning = _subtract_floor(
        invoice.amount_paid_local, local_delta, "amount_paid_local", invoice, payment
    )
    if warning:
        warnings.append(warning)
    paid_equivalent, warning = _subtract_floor(
        invoice.amount_paid_usd_equivalent,
        to_decimal(payment.amount_usd_equivalent) + credit_used,
        "amount_paid_usd_equivalent",
        invoice,
        payment,
    )
    if warning:
        warnings.append(warning)

    invoice.amount_paid_usd = paid_usd
    invoice.amount_paid_local = paid_local
    invoice.amount_paid_usd_equivalent = paid_equivalent
    if credit_used > 0:
        credit_account.balance_usd = to_decimal(credit_account.balance_usd) + credit_used  # type: ignore[union-attr]

    payment.status = PaymentStatus.CANCELLED.value
    payment.cancelled_at = now
    payment.cancelled_reason = reason.strip() if reason and reason.strip() else None

    _set_status(invoice, now, payment.exchange_rate_used)
    return SettlementResult(payment=payment, invoice=invoice, warnings=warnings)


def compute_debt_summary(invoices: list[Invoice]) -> DebtSummary:
    """Aggregate outstanding debt across invoices. Read-only."""
    lines: list[DebtLine] = []
    for invoice in invoices:
        if invoice.status == InvoiceStatus.CANCELED.value:
            continue

        total_usd = invoice_total_usd(invoice)
        if total_usd <= 0:
            continue
        fraction = Decimal(1) - total_paid_usd_equivalent(invoice) / total_usd
        fraction = min(max(fraction, ZERO), Decimal(1))

        items = invoice.items or []
        if items:
            gross = sum(
                (to_decimal(item["cost"]) * to_decimal(item["quantity"]) for item in items),
                ZERO,
            )
        else:
            gross = to_decimal(invoice.total)
        remaining = to_usd(gross * fraction, invoice.currency, invoice_rate(invoice))

        if remaining > 0:
            lines.append(
                DebtLine(invoice=invoice, unpaid_fraction=fraction, remaining_usd=remaining)
            )

    return DebtSummary(
        total_debt_usd=sum((line.remaining_usd for line in lines), ZERO),
        invoice_count=len(lines),
        invoices=lines,
    )
