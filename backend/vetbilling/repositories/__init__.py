from vetbilling.repositories.credit_account_repository import CreditAccountRepository
from vetbilling.repositories.invoice_repository import InvoiceRepository
from vetbilling.repositories.owner_repository import OwnerRepository
from vetbilling.repositories.patient_repository import PatientRepository
from vetbilling.repositories.payment_method_repository import PaymentMethodRepository
from vetbilling.repositories.payment_repository import PaymentRepository, PaymentTotals

__all__ = [
    "CreditAccountRepository",
    "InvoiceRepository",
    "OwnerRepository",
    "PatientRepository",
    "PaymentMethodRepository",
    "PaymentRepository",
    "PaymentTotals",
]
