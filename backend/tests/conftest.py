"""Shared test fixtures for all test modules."""

import contextlib
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import tiffin_billing.models  # noqa: F401
from tiffin_billing.core import database as db_module
from tiffin_billing.core.database import Base, get_db
from tiffin_billing.main import app
from tiffin_billing.models.credit import Credit
from tiffin_billing.models.customer import Customer
from tiffin_billing.models.customer_order import CustomerOrder
from tiffin_billing.models.invoice import Invoice
from tiffin_billing.models.payment_record import PaymentRecord
from tiffin_billing.repositories.credit_repository import CreditRepository
from tiffin_billing.repositories.customer_order_repository import CustomerOrderRepository
from tiffin_billing.repositories.customer_repository import CustomerRepository
from tiffin_billing.repositories.invoice_repository import InvoiceRepository
from tiffin_billing.repositories.payment_record_repository import PaymentRecordRepository
from tiffin_billing.schemas.customer import CustomerCreate
from tiffin_billing.schemas.invoice import InvoiceCreate

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


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


@pytest.fixture
def db_session():
    """Create a database session for direct service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def customer(db_session: Session) -> Customer:
    customer = CustomerRepository(db_session).create(
        CustomerCreate(name="Asha Rao", email="asha@example.com")
    )
    db_session.commit()
    return customer


@pytest.fixture
def customer2(db_session: Session) -> Customer:
    customer = CustomerRepository(db_session).create(CustomerCreate(name="Vikram Shah"))
    db_session.commit()
    return customer


@pytest.fixture
def make_invoice(db_session: Session) -> Callable[..., Invoice]:
    """Factory for committed, unpaid invoices."""

    def _make(customer: Customer, total: str | Decimal, number: str | None = None) -> Invoice:
        invoice = InvoiceRepository(db_session).create(
            InvoiceCreate(
                invoice_number=number or f"INV-{uuid4().hex[:8].upper()}",
                customer_id=customer.id,
                total_amount=Decimal(str(total)),
            )
        )
        db_session.commit()
        return invoice

    return _make


@pytest.fixture
def make_payment(db_session: Session) -> Callable[..., PaymentRecord]:
    """Factory for committed, unallocated cash payments."""

    def _make(customer: Customer, amount: str | Decimal) -> PaymentRecord:
        payment = PaymentRecordRepository(db_session).create(
            customer_id=customer.id,
            amount=Decimal(str(amount)),
            payment_date=date(2026, 10, 1),
            payer_name=str(customer.name),
        )
        db_session.commit()
        return payment

    return _make


@pytest.fixture
def make_credit(db_session: Session) -> Callable[..., Credit]:
    """Factory for committed, available credits."""

    def _make(customer: Customer, amount: str | Decimal, notes: str | None = None) -> Credit:
        credit = CreditRepository(db_session).create(
            customer_id=customer.id, amount=Decimal(str(amount)), notes=notes
        )
        db_session.commit()
        return credit

    return _make


@pytest.fixture
def make_order(db_session: Session) -> Callable[..., CustomerOrder]:
    def _make(
        customer: Customer, invoice: Invoice, total: str | Decimal = "10.00"
    ) -> CustomerOrder:
        order = CustomerOrderRepository(db_session).create(
            customer_id=customer.id,
            invoice_id=invoice.id,
            order_total=Decimal(str(total)),
        )
        db_session.commit()
        return order

    return _make
