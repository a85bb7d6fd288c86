"""Concurrent allocations against a file-backed database."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from tiffin_billing.core.database import Base, build_engine
from tiffin_billing.models.invoice import Invoice, InvoicePaymentStatus
from tiffin_billing.models.payment_allocation import PaymentAllocation
from tiffin_billing.repositories.customer_repository import CustomerRepository
from tiffin_billing.repositories.invoice_repository import InvoiceRepository
from tiffin_billing.repositories.payment_record_repository import PaymentRecordRepository
from tiffin_billing.schemas.customer import CustomerCreate
from tiffin_billing.schemas.invoice import InvoiceCreate
from tiffin_billing.services.allocation_service import AllocationService


@pytest.fixture
def file_sessions(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}", immediate_transactions=True)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_parallel_allocations_never_overpay_invoice(file_sessions):
    with file_sessions() as db:
        customer = CustomerRepository(db).create(CustomerCreate(name="Meera Iyer"))
        invoice = InvoiceRepository(db).create(
            InvoiceCreate(
                invoice_number="INV-RACE", customer_id=customer.id, total_amount=Decimal("100")
            )
        )
        payments = [
            PaymentRecordRepository(db).create(
                customer_id=customer.id, amount=Decimal("80.00"), payment_date=date(2026, 10, 1)
            )
            for _ in range(2)
        ]
        db.commit()
        invoice_id = invoice.id
        payment_ids = [payment.id for payment in payments]

    barrier = threading.Barrier(len(payment_ids))

    def allocate(payment_id):
        with file_sessions() as db:
            barrier.wait()
            return AllocationService(db).allocate_payment(payment_id, [invoice_id])

    with ThreadPoolExecutor(max_workers=len(payment_ids)) as pool:
        results = list(pool.map(allocate, payment_ids))

    assert sorted(result.total_applied for result in results) == [
        Decimal("20.00"),
        Decimal("80.00"),
    ]
    with file_sessions() as db:
        allocated = sum(
            allocation.allocated_amount
            for allocation in db.query(PaymentAllocation)
            .filter(PaymentAllocation.invoice_id == invoice_id)
            .all()
        )
        invoice = db.get(Invoice, invoice_id)
        assert allocated == Decimal("100.00")
        assert invoice.balance_due == Decimal("0.00")
        assert invoice.payment_status == InvoicePaymentStatus.PAID.value
