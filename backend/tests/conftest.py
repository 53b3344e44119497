"""Shared test fixtures for all test modules."""

import contextlib
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vetbilling.core import database as db_module
from vetbilling.core.database import Base, get_db
from vetbilling.main import app
from vetbilling.models.currency import Currency
from vetbilling.models.payment_method import PaymentMode
from vetbilling.repositories.credit_account_repository import CreditAccountRepository
from vetbilling.repositories.invoice_repository import InvoiceRepository
from vetbilling.repositories.owner_repository import OwnerRepository
from vetbilling.repositories.patient_repository import PatientRepository
from vetbilling.repositories.payment_method_repository import PaymentMethodRepository
from vetbilling.schemas.invoice import InvoiceCreate
from vetbilling.schemas.owner import OwnerCreate
from vetbilling.schemas.patient import PatientCreate
from vetbilling.schemas.payment_method import PaymentMethodCreate
from vetbilling.services.exchange_rate_provider import (
    FixedRateProvider,
    get_exchange_rate_provider,
    set_exchange_rate_provider,
)

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

TEST_RATE = Decimal("40")


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def fixed_rate_provider():
    """Serve a fixed 40 Bs/USD rate so no test reaches the network."""
    provider = FixedRateProvider(TEST_RATE)
    set_exchange_rate_provider(provider)
    app.dependency_overrides[get_exchange_rate_provider] = lambda: provider
    yield provider
    app.dependency_overrides.pop(get_exchange_rate_provider, None)
    set_exchange_rate_provider(None)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def owner(db_session):
    """An owner with an empty credit account."""
    owner = OwnerRepository(db_session).create(OwnerCreate(name="Maria Perez", contact="555-0101"))
    CreditAccountRepository(db_session).create(owner.id)
    return owner


@pytest.fixture
def owner_with_credit(db_session):
    """An owner holding 50 USD of credit."""
    owner = OwnerRepository(db_session).create(OwnerCreate(name="Jose Rivas"))
    CreditAccountRepository(db_session).create(owner.id, Decimal("50"))
    return owner


@pytest.fixture
def patient(db_session, owner):
    return PatientRepository(db_session).create(
        PatientCreate(owner_id=owner.id, name="Firulais", species="dog")
    )


@pytest.fixture
def cash_method(db_session):
    """USD cash, no reference needed."""
    return PaymentMethodRepository(db_session).create(
        PaymentMethodCreate(name="Cash USD", currency=Currency.USD, payment_mode=PaymentMode.CASH)
    )


@pytest.fixture
def transfer_method(db_session):
    """Local bank transfer, reference required."""
    return PaymentMethodRepository(db_session).create(
        PaymentMethodCreate(
            name="Transferencia",
            currency=Currency.LOCAL,
            payment_mode=PaymentMode.TRANSFER,
            requires_reference=True,
        )
    )


@pytest.fixture
def make_invoice(db_session, owner, patient):
    """Factory for invoices billed to ``owner`` and ``patient`` unless overridden."""

    def _make(**kwargs):
        kwargs.setdefault("owner_id", owner.id)
        kwargs.setdefault("patient_id", patient.id)
        return InvoiceRepository(db_session).create(InvoiceCreate(**kwargs))

    return _make
