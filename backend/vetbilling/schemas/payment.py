"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from vetbilling.models.currency import Currency
from vetbilling.schemas.invoice import InvoiceResponse
from vetbilling.services.settlement_engine import SettlementResult


class PaymentCreate(BaseModel):
    """Body of ``POST /invoices/{id}/payments``.

    Amount limits are enforced by the settlement engine so that callers get
    a typed error (``empty_payment``...) instead of a generic 422.
    """

    currency: Currency = Currency.USD
    amount: Decimal = Decimal("0")
    payment_method_id: UUID | None = Field(
        default=None, validation_alias=AliasChoices("payment_method_id", "paymentMethodId")
    )
    reference: str | None = Field(default=None, max_length=255)
    exchange_rate: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("exchange_rate", "exchangeRate"),
        description="Bs per USD. Defaults to the current provider rate.",
    )
    credit_amount_used: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("credit_amount_used", "creditAmountUsed"),
    )


class PaymentCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    owner_id: UUID | None = None
    currency: str
    amount: Decimal
    amount_usd_equivalent: Decimal
    exchange_rate_used: Decimal
    rate_source: str | None = None
    credit_amount_used: Decimal
    overage_usd: Decimal
    payment_method_id: UUID | None = None
    reference: str | None = None
    status: str
    created_at: datetime
    cancelled_at: datetime | None = None
    cancelled_reason: str | None = None


class ReconciliationWarningResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    attempted: Decimal
    clamped_to: Decimal
    message: str


class SettlementResponse(BaseModel):
    payment: PaymentResponse
    invoice: InvoiceResponse
    warnings: list[ReconciliationWarningResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: SettlementResult) -> "SettlementResponse":
        return cls(
            payment=PaymentResponse.model_validate(result.payment),
            invoice=InvoiceResponse.from_invoice(result.invoice),
            warnings=[
                ReconciliationWarningResponse.model_validate(warning)
                for warning in result.warnings
            ],
        )


class PaymentsSummaryResponse(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    total_usd: Decimal
    total_local: Decimal
    total_usd_equivalent: Decimal
    total_credit_used: Decimal
    count: int
