from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vetbilling.core.money import ZERO
from vetbilling.models.currency import Currency
from vetbilling.models.invoice import Invoice, InvoiceItemType, InvoiceStatus
from vetbilling.services.settlement_engine import (
    DebtSummary,
    remaining_due_usd,
    total_paid_usd_equivalent,
)


class InvoiceItem(BaseModel):
    type: InvoiceItemType
    resource_id: str | None = None
    description: str = Field(min_length=1)
    cost: Decimal = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class InvoiceCreate(BaseModel):
    owner_id: UUID | None = None
    patient_id: UUID | None = None
    currency: Currency = Currency.USD
    total: Decimal | None = Field(default=None, ge=0)
    exchange_rate_at_issue: Decimal | None = Field(default=None, gt=0)
    items: list[InvoiceItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_total_and_rate(self) -> "InvoiceCreate":
        if self.total is None and not self.items:
            raise ValueError("Either total or items must be provided")
        if self.currency == Currency.LOCAL and self.exchange_rate_at_issue is None:
            raise ValueError("exchange_rate_at_issue is required for LOCAL invoices")
        return self


_INVOICE_COLUMNS = (
    "id",
    "owner_id",
    "patient_id",
    "currency",
    "total",
    "exchange_rate",
    "amount_paid_usd",
    "amount_paid_local",
    "status",
    "paid_at",
    "canceled_at",
    "created_at",
    "updated_at",
)


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID | None = None
    patient_id: UUID | None = None
    currency: str
    total: Decimal
    exchange_rate: Decimal | None = None
    amount_paid_usd: Decimal
    amount_paid_local: Decimal
    status: InvoiceStatus
    items: list[dict[str, Any]]
    total_paid_usd_equivalent: Decimal
    remaining_usd: Decimal
    overpaid_usd: Decimal
    paid_at: datetime | None = None
    canceled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceResponse":
        """Build the response, adding the derived USD-equivalent figures."""
        remaining = remaining_due_usd(invoice)
        return cls.model_validate(
            {
                **{key: getattr(invoice, key) for key in _INVOICE_COLUMNS},
                "items": invoice.items or [],
                "total_paid_usd_equivalent": total_paid_usd_equivalent(invoice),
                "remaining_usd": max(remaining, ZERO),
                "overpaid_usd": max(-remaining, ZERO),
            }
        )


class DebtInvoiceResponse(InvoiceResponse):
    """An invoice as listed in a debt summary, with its share of the debt."""

    unpaid_fraction: Decimal
    debt_usd: Decimal


class DebtSummaryResponse(BaseModel):
    total_debt: Decimal = Field(serialization_alias="totalDebt")
    invoices_count: int = Field(serialization_alias="invoicesCount")
    invoices: list[DebtInvoiceResponse]

    @classmethod
    def from_summary(cls, summary: DebtSummary) -> "DebtSummaryResponse":
        return cls(
            total_debt=summary.total_debt_usd,
            invoices_count=summary.invoice_count,
            invoices=[
                DebtInvoiceResponse(
                    **InvoiceResponse.from_invoice(line.invoice).model_dump(),
                    unpaid_fraction=line.unpaid_fraction,
                    debt_usd=line.remaining_usd,
                )
                for line in summary.invoices
            ],
        )
