"""Typed errors raised by the settlement engine.

All of them derive from ``ValueError`` so callers that only care about
"the request was invalid" can keep catching ``ValueError``. Routers map
``status_code`` and ``code`` onto the HTTP response.
"""


class SettlementError(ValueError):
    """Base class for settlement failures. Nothing is mutated when raised."""

    code = "settlement_error"
    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    default_message = "Settlement failed"

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": str(self)}


class InvoiceClosed(SettlementError):
    code = "invoice_closed"
    status_code = 409
    default_message = "Invoice is canceled and cannot receive payments"


class EmptyPayment(SettlementError):
    code = "empty_payment"
    default_message = "Payment amount and credit amount cannot both be zero"


class InsufficientCredit(SettlementError):
    code = "insufficient_credit"
    default_message = "Requested credit exceeds the owner's available balance"


class PaymentMethodRequired(SettlementError):
    code = "payment_method_required"
    default_message = "A payment method is required for the amount not covered by credit"


class ReferenceRequired(SettlementError):
    code = "reference_required"
    default_message = "This payment method requires a reference"


class InvalidRate(SettlementError):
    code = "invalid_rate"
    default_message = "Exchange rate must be greater than zero"


class AlreadyCancelled(SettlementError):
    code = "already_cancelled"
    status_code = 409
    default_message = "Payment is already cancelled"


class CreditAccountRequired(SettlementError):
    code = "credit_account_required"
    default_message = "Payment drew owner credit but no credit account was supplied"


class ConcurrentModification(SettlementError):
    code = "concurrent_modification"
    status_code = 409
    default_message = "Invoice was modified concurrently, retry the operation"
