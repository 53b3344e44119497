"""Tests for SettlementService: persistence, rollback and reporting."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.orm.exc import StaleDataError

from vetbilling.core import database as db_module
from vetbilling.core.errors import (
    AlreadyCancelled,
    ConcurrentModification,
    InsufficientCredit,
    InvalidRate,
    InvoiceClosed,
    PaymentMethodRequired,
    ReferenceRequired,
)
from vetbilling.models.currency import Currency
from vetbilling.models.invoice import Invoice, InvoiceStatus
from vetbilling.models.payment import Payment, PaymentStatus
from vetbilling.repositories.credit_account_repository import CreditAccountRepository
from vetbilling.repositories.invoice_repository import InvoiceRepository
from vetbilling.repositories.payment_method_repository import PaymentMethodRepository
from vetbilling.services.exchange_rate_provider import FixedRateProvider, RateSource
from vetbilling.services.settlement_service import SettlementService


@pytest.fixture
def service(db_session, fixed_rate_provider):
    return SettlementService(db_session, rate_provider=fixed_rate_provider)


class TestApplyPayment:
    def test_persists_payment_and_invoice(self, db_session, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        result = service.apply_payment(
            invoice.id, Currency.USD, amount=Decimal("60"), payment_method_id=cash_method.id
        )

        stored = db_session.query(Invoice).filter(Invoice.id == invoice.id).one()
        assert stored.status == InvoiceStatus.PARTIAL
        assert stored.amount_paid_usd == Decimal("60")
        assert stored.version == 2
        assert db_session.query(Payment).count() == 1
        assert result.payment.owner_id == invoice.owner_id

    def test_uses_provider_rate_and_freezes_source(self, db_session, make_invoice, cash_method):
        provider = FixedRateProvider("40", source=RateSource.AUTO)
        service = SettlementService(db_session, rate_provider=provider)
        invoice = make_invoice(total=Decimal("100"))

        payment = service.apply_payment(
            invoice.id, Currency.LOCAL, amount=Decimal("2000"), payment_method_id=cash_method.id
        ).payment

        assert payment.exchange_rate_used == Decimal("40")
        assert payment.rate_source == "auto"
        assert payment.amount_usd_equivalent == Decimal("50")

    def test_explicit_rate_is_tagged_manual(self, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        payment = service.apply_payment(
            invoice.id,
            Currency.LOCAL,
            amount=Decimal("500"),
            exchange_rate=Decimal("50"),
            payment_method_id=cash_method.id,
        ).payment

        assert payment.exchange_rate_used == Decimal("50")
        assert payment.rate_source == "manual"

    def test_local_payments_at_two_rates_are_persisted_at_their_rates(
        self, db_session, service, make_invoice, cash_method
    ):
        invoice = make_invoice(total=Decimal("100"))
        for amount, rate in ((Decimal("2000"), Decimal("40")), (Decimal("2500"), Decimal("50"))):
            service.apply_payment(
                invoice.id,
                Currency.LOCAL,
                amount=amount,
                exchange_rate=rate,
                payment_method_id=cash_method.id,
            )

        stored = db_session.query(Invoice).filter(Invoice.id == invoice.id).one()
        assert stored.amount_paid_local == Decimal("4500")
        assert stored.amount_paid_usd_equivalent == Decimal("100")
        assert stored.exchange_rate == Decimal("40")
        assert stored.status == InvoiceStatus.PAID

    def test_no_rate_and_no_provider(self, db_session, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        with pytest.raises(InvalidRate, match="exchange rate is required") as exc:
            SettlementService(db_session).apply_payment(
                invoice.id, Currency.USD, amount=Decimal("10"), payment_method_id=cash_method.id
            )
        assert exc.value.code == "invalid_rate"
        assert exc.value.status_code == 400
        db_session.refresh(invoice)
        assert invoice.status == InvoiceStatus.PENDING.value

    def test_invoice_not_found(self, service, cash_method):
        with pytest.raises(LookupError):
            service.apply_payment(
                uuid4(), Currency.USD, amount=Decimal("10"), payment_method_id=cash_method.id
            )

    def test_unknown_payment_method(self, db_session, service, make_invoice):
        invoice = make_invoice(total=Decimal("100"))
        with pytest.raises(LookupError):
            service.apply_payment(
                invoice.id, Currency.USD, amount=Decimal("10"), payment_method_id=uuid4()
            )
        assert db_session.query(Payment).count() == 0

    def test_inactive_payment_method(self, db_session, service, make_invoice, cash_method):
        PaymentMethodRepository(db_session).deactivate(cash_method.id)
        invoice = make_invoice(total=Decimal("100"))
        with pytest.raises(PaymentMethodRequired):
            service.apply_payment(
                invoice.id, Currency.USD, amount=Decimal("10"), payment_method_id=cash_method.id
            )

    def test_reference_required(self, db_session, service, make_invoice, transfer_method):
        invoice = make_invoice(total=Decimal("100"))
        with pytest.raises(ReferenceRequired):
            service.apply_payment(
                invoice.id,
                Currency.LOCAL,
                amount=Decimal("400"),
                payment_method_id=transfer_method.id,
                reference="  ",
            )

        payment = service.apply_payment(
            invoice.id,
            Currency.LOCAL,
            amount=Decimal("400"),
            payment_method_id=transfer_method.id,
            reference="000123",
        ).payment
        assert payment.reference == "000123"

    def test_credit_draw_is_persisted(self, db_session, service, make_invoice, owner_with_credit):
        invoice = make_invoice(total=Decimal("50"), owner_id=owner_with_credit.id, patient_id=None)
        service.apply_payment(invoice.id, Currency.USD, credit_amount_used=Decimal("50"))

        account = CreditAccountRepository(db_session).get_by_owner_id(owner_with_credit.id)
        assert account.balance_usd == 0
        assert InvoiceRepository(db_session).get_by_id(invoice.id).status == InvoiceStatus.PAID

    def test_failed_payment_changes_nothing(
        self, db_session, service, make_invoice, owner_with_credit
    ):
        invoice = make_invoice(total=Decimal("100"), owner_id=owner_with_credit.id, patient_id=None)
        with pytest.raises(InsufficientCredit):
            service.apply_payment(invoice.id, Currency.USD, credit_amount_used=Decimal("60"))

        account = CreditAccountRepository(db_session).get_by_owner_id(owner_with_credit.id)
        stored = InvoiceRepository(db_session).get_by_id(invoice.id)
        assert account.balance_usd == Decimal("50")
        assert stored.amount_paid_usd == 0
        assert stored.status == InvoiceStatus.PENDING
        assert db_session.query(Payment).count() == 0

    def test_canceled_invoice(self, db_session, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        InvoiceRepository(db_session).cancel(invoice.id)
        with pytest.raises(InvoiceClosed):
            service.apply_payment(
                invoice.id, Currency.USD, amount=Decimal("10"), payment_method_id=cash_method.id
            )

    def test_adopts_rate_once(self, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        service.apply_payment(
            invoice.id, Currency.LOCAL, amount=Decimal("400"), payment_method_id=cash_method.id
        )
        result = service.apply_payment(
            invoice.id,
            Currency.LOCAL,
            amount=Decimal("450"),
            exchange_rate=Decimal("45"),
            payment_method_id=cash_method.id,
        )
        assert result.invoice.exchange_rate == Decimal("40")


class TestConcurrency:
    def test_stale_write_becomes_concurrent_modification(self, db_session, service):
        def work():
            raise StaleDataError("version mismatch")

        with pytest.raises(ConcurrentModification):
            service._commit(work)

    def test_losing_writer_is_rejected(self, db_session, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        other = db_module.SessionLocal()
        try:
            SettlementService(other, rate_provider=FixedRateProvider("40")).apply_payment(
                invoice.id, Currency.USD, amount=Decimal("60"), payment_method_id=cash_method.id
            )
        finally:
            other.close()

        with pytest.raises(ConcurrentModification):
            service.apply_payment(
                invoice.id, Currency.USD, amount=Decimal("60"), payment_method_id=cash_method.id
            )

        db_session.expire_all()
        stored = InvoiceRepository(db_session).get_by_id(invoice.id)
        assert stored.amount_paid_usd == Decimal("60")
        assert db_session.query(Payment).count() == 1


class TestCancelPayment:
    def test_round_trip(self, db_session, service, make_invoice, owner_with_credit, cash_method):
        invoice = make_invoice(total=Decimal("100"), owner_id=owner_with_credit.id, patient_id=None)
        payment = service.apply_payment(
            invoice.id,
            Currency.USD,
            amount=Decimal("30"),
            payment_method_id=cash_method.id,
            credit_amount_used=Decimal("20"),
        ).payment

        result = service.cancel_payment(payment.id, reason="wrong invoice")

        account = CreditAccountRepository(db_session).get_by_owner_id(owner_with_credit.id)
        assert account.balance_usd == Decimal("50")
        assert result.invoice.amount_paid_usd == 0
        assert result.invoice.status == InvoiceStatus.PENDING
        assert result.payment.status == PaymentStatus.CANCELLED
        assert result.payment.cancelled_reason == "wrong invoice"

    def test_payment_not_found(self, service):
        with pytest.raises(LookupError):
            service.cancel_payment(uuid4())

    def test_cancel_twice(self, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        payment = service.apply_payment(
            invoice.id, Currency.USD, amount=Decimal("60"), payment_method_id=cash_method.id
        ).payment
        service.cancel_payment(payment.id)

        with pytest.raises(AlreadyCancelled):
            service.cancel_payment(payment.id)


class TestReporting:
    def test_debt_summary_by_owner_and_patient(self, service, make_invoice, owner, cash_method):
        first = make_invoice(total=Decimal("100"))
        make_invoice(total=Decimal("40"), patient_id=None)
        paid = make_invoice(total=Decimal("10"))
        service.apply_payment(
            first.id, Currency.USD, amount=Decimal("25"), payment_method_id=cash_method.id
        )
        service.apply_payment(
            paid.id, Currency.USD, amount=Decimal("10"), payment_method_id=cash_method.id
        )

        by_owner = service.get_debt_summary(owner_id=owner.id)
        assert by_owner.invoice_count == 2
        assert by_owner.total_debt_usd == Decimal("115.00")

        by_patient = service.get_debt_summary(patient_id=first.patient_id)
        assert by_patient.invoice_count == 1
        assert by_patient.total_debt_usd == Decimal("75.00")

    def test_summary_counts_active_payments_only(self, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("500"))
        service.apply_payment(
            invoice.id, Currency.USD, amount=Decimal("60"), payment_method_id=cash_method.id
        )
        service.apply_payment(
            invoice.id, Currency.LOCAL, amount=Decimal("2000"), payment_method_id=cash_method.id
        )
        cancelled = service.apply_payment(
            invoice.id, Currency.USD, amount=Decimal("40"), payment_method_id=cash_method.id
        ).payment
        service.cancel_payment(cancelled.id)

        totals = service.summarize_payments()
        assert totals.count == 2
        assert totals.total_usd == Decimal("60.00")
        assert totals.total_local == Decimal("2000.00")
        assert totals.total_usd_equivalent == Decimal("110.00")
        assert totals.total_credit_used == Decimal("0.00")

    def test_summary_date_range(self, service, make_invoice, cash_method):
        invoice = make_invoice(total=Decimal("100"))
        service.apply_payment(
            invoice.id, Currency.USD, amount=Decimal("60"), payment_method_id=cash_method.id
        )

        future = datetime.now(UTC) + timedelta(days=1)
        assert service.summarize_payments(start_date=future).count == 0
        assert service.summarize_payments(end_date=future).count == 1
