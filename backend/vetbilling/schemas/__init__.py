from vetbilling.schemas.exchange_rate import ExchangeRateResponse, ManualRateUpdate
from vetbilling.schemas.invoice import (
    DebtInvoiceResponse,
    DebtSummaryResponse,
    InvoiceCreate,
    InvoiceItem,
    InvoiceResponse,
)
from vetbilling.schemas.owner import CreditAccountResponse, OwnerCreate, OwnerResponse
from vetbilling.schemas.patient import PatientCreate, PatientResponse
from vetbilling.schemas.payment import (
    PaymentCancel,
    PaymentCreate,
    PaymentResponse,
    PaymentsSummaryResponse,
    ReconciliationWarningResponse,
    SettlementResponse,
)
from vetbilling.schemas.payment_method import (
    PaymentMethodCreate,
    PaymentMethodResponse,
    PaymentMethodUpdate,
)

__all__ = [
    "CreditAccountResponse",
    "DebtInvoiceResponse",
    "DebtSummaryResponse",
    "ExchangeRateResponse",
    "InvoiceCreate",
    "InvoiceItem",
    "InvoiceResponse",
    "ManualRateUpdate",
    "OwnerCreate",
    "OwnerResponse",
    "PatientCreate",
    "PatientResponse",
    "PaymentCancel",
    "PaymentCreate",
    "PaymentMethodCreate",
    "PaymentMethodResponse",
    "PaymentMethodUpdate",
    "PaymentResponse",
    "PaymentsSummaryResponse",
    "ReconciliationWarningResponse",
    "SettlementResponse",
]
