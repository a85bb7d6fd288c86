"""Tests for CreditApplicationService."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from tiffin_billing.core.errors import (
    CrossTenantError,
    InsufficientCreditError,
    NoEligibleInvoicesError,
    NotFoundError,
    ValidationError,
)
from tiffin_billing.models.credit import CreditStatus
from tiffin_billing.models.credit_usage import CreditUsage
from tiffin_billing.models.customer_order import OrderPaymentStatus
from tiffin_billing.models.invoice import InvoicePaymentStatus
from tiffin_billing.services.credit_application_service import (
    CreditApplicationService,
    CreditRequest,
)


@pytest.fixture
def service(db_session):
    return CreditApplicationService(db_session)


@pytest.fixture
def two_credits(db_session, customer, make_credit):
    """$10 created first, then $20."""
    older = make_credit(customer, "10.00")
    newer = make_credit(customer, "20.00")
    older.created_at = datetime(2026, 9, 1, tzinfo=UTC)
    newer.created_at = datetime(2026, 9, 1, tzinfo=UTC) + timedelta(hours=1)
    db_session.commit()
    return older, newer


class TestApplyCredit:
    def test_fifo_across_two_invoices(
        self, service, db_session, customer, two_credits, make_invoice, make_order
    ):
        older, newer = two_credits
        inv1 = make_invoice(customer, "15.00")
        inv2 = make_invoice(customer, "25.00")
        order = make_order(customer, inv1)

        result = service.apply_credit(
            customer.id,
            [
                CreditRequest(invoice_id=inv1.id, amount=Decimal("15.00")),
                CreditRequest(invoice_id=inv2.id, amount=Decimal("15.00")),
            ],
        )

        first, second = result.applications
        assert [(d.credit_id, d.amount) for d in first.draws] == [
            (older.id, Decimal("10.00")),
            (newer.id, Decimal("5.00")),
        ]
        assert [(d.credit_id, d.amount) for d in second.draws] == [(newer.id, Decimal("15.00"))]
        assert result.total_applied == Decimal("30.00")
        assert result.remaining_credit == Decimal("0.00")

        db_session.refresh(older)
        db_session.refresh(newer)
        assert older.status == CreditStatus.USED.value
        assert newer.status == CreditStatus.USED.value
        assert newer.current_balance == Decimal("0.00")
        assert inv1.payment_status == InvoicePaymentStatus.PAID.value
        assert inv2.balance_due == Decimal("10.00")
        assert inv2.payment_status == InvoicePaymentStatus.PARTIAL_PAID.value
        assert order.payment_status == OrderPaymentStatus.PAID.value
        assert db_session.query(CreditUsage).count() == 3

    def test_amount_capped_at_balance_due(
        self, service, db_session, customer, make_credit, make_invoice
    ):
        credit = make_credit(customer, "50.00")
        invoice = make_invoice(customer, "12.00")

        result = service.apply_credit(
            customer.id, [CreditRequest(invoice_id=invoice.id, amount=Decimal("20.00"))]
        )

        assert result.total_applied == Decimal("12.00")
        assert result.remaining_credit == Decimal("38.00")
        db_session.refresh(credit)
        assert credit.current_balance == Decimal("38.00")

    def test_paid_invoice_in_batch_is_left_alone(
        self, service, customer, make_credit, make_invoice
    ):
        make_credit(customer, "50.00")
        paid = make_invoice(customer, "5.00")
        service.apply_credit(customer.id, [CreditRequest(invoice_id=paid.id, amount=Decimal("5"))])
        open_invoice = make_invoice(customer, "10.00")

        result = service.apply_credit(
            customer.id,
            [
                CreditRequest(invoice_id=paid.id, amount=Decimal("5.00")),
                CreditRequest(invoice_id=open_invoice.id, amount=Decimal("10.00")),
            ],
        )

        assert [a.invoice_id for a in result.applications] == [open_invoice.id]


class TestApplyCreditRejections:
    def test_insufficient_pool(self, service, db_session, customer, two_credits, make_invoice):
        invoice = make_invoice(customer, "100.00")

        with pytest.raises(InsufficientCreditError) as exc_info:
            service.apply_credit(
                customer.id, [CreditRequest(invoice_id=invoice.id, amount=Decimal("30.01"))]
            )

        assert exc_info.value.available == Decimal("30.00")
        assert exc_info.value.requested == Decimal("30.01")
        db_session.refresh(invoice)
        assert invoice.balance_due == Decimal("100.00")
        assert db_session.query(CreditUsage).count() == 0

    def test_foreign_invoice_aborts_batch(
        self, service, db_session, customer, customer2, two_credits, make_invoice
    ):
        own = make_invoice(customer, "10.00")
        foreign = make_invoice(customer2, "10.00")

        with pytest.raises(CrossTenantError):
            service.apply_credit(
                customer.id,
                [
                    CreditRequest(invoice_id=own.id, amount=Decimal("10.00")),
                    CreditRequest(invoice_id=foreign.id, amount=Decimal("10.00")),
                ],
            )

        db_session.refresh(own)
        assert own.payment_status == InvoicePaymentStatus.UNPAID.value
        assert db_session.query(CreditUsage).count() == 0

    def test_nothing_requested(self, service, customer, two_credits, make_invoice):
        invoice = make_invoice(customer, "10.00")
        with pytest.raises(ValidationError):
            service.apply_credit(
                customer.id, [CreditRequest(invoice_id=invoice.id, amount=Decimal("0"))]
            )

    def test_no_payable_invoice(self, service, customer, two_credits):
        with pytest.raises(NoEligibleInvoicesError):
            service.apply_credit(
                customer.id, [CreditRequest(invoice_id=uuid4(), amount=Decimal("5.00"))]
            )

    def test_unknown_customer(self, service):
        with pytest.raises(NotFoundError):
            service.apply_credit(
                uuid4(), [CreditRequest(invoice_id=uuid4(), amount=Decimal("5.00"))]
            )
