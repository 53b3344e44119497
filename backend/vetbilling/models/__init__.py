from vetbilling.models.credit_account import OwnerCreditAccount
from vetbilling.models.currency import Currency
from vetbilling.models.invoice import Invoice, InvoiceItemType, InvoiceStatus
from vetbilling.models.owner import Owner
from vetbilling.models.patient import Patient
from vetbilling.models.payment import Payment, PaymentStatus
from vetbilling.models.payment_method import PaymentMethod, PaymentMode

__all__ = [
    "Currency",
    "Invoice",
    "InvoiceItemType",
    "InvoiceStatus",
    "Owner",
    "OwnerCreditAccount",
    "Patient",
    "Payment",
    "PaymentMethod",
    "PaymentMode",
    "PaymentStatus",
]
