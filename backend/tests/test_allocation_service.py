"""Tests for AllocationService and LedgerAllocationReverser."""

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from tiffin_billing.core.errors import (
    InsufficientCreditError,
    NoEligibleInvoicesError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from tiffin_billing.core.money import CONSERVATION_TOLERANCE
from tiffin_billing.models.credit import Credit, CreditStatus
from tiffin_billing.models.customer_order import OrderPaymentStatus
from tiffin_billing.models.invoice import InvoicePaymentStatus
from tiffin_billing.models.notification import Notification, NotificationType
from tiffin_billing.models.payment_allocation import PaymentAllocation
from tiffin_billing.models.payment_record import AllocationStatus
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.services.allocation_service import (
    SKIP_CUSTOMER_MISMATCH,
    SKIP_NOT_FOUND,
    SKIP_NOT_PAYABLE,
    AllocationService,
    AllocationTarget,
    LedgerAllocationReverser,
)
from tiffin_billing.services.collaborators import NotificationSink, OrderStatusSync
from tiffin_billing.services.credit_application_service import (
    CreditApplicationService,
    CreditRequest,
)


@pytest.fixture
def service(db_session):
    return AllocationService(db_session)


def _active_allocations(db_session, payment_id):
    return (
        db_session.query(PaymentAllocation)
        .filter(
            PaymentAllocation.payment_record_id == payment_id,
            PaymentAllocation.lifecycle_state == LifecycleState.ACTIVE.value,
        )
        .order_by(PaymentAllocation.order_index)
        .all()
    )


class TestAllocatePayment:
    def test_partial_payment_on_one_invoice(
        self, service, db_session, customer, make_invoice, make_payment, make_order
    ):
        invoice = make_invoice(customer, "100.00")
        order = make_order(customer, invoice)
        payment = make_payment(customer, "60.00")

        result = service.allocate_payment(payment.id, [invoice.id])

        assert result.total_applied == Decimal("60.00")
        assert result.excess_amount == Decimal("0.00")
        assert result.allocation_status == AllocationStatus.FULLY_ALLOCATED.value
        assert result.credit_id is None
        assert invoice.balance_due == Decimal("40.00")
        assert invoice.payment_status == InvoicePaymentStatus.PARTIAL_PAID.value
        assert order.payment_status == OrderPaymentStatus.PARTIAL_PAID.value

        [allocation] = _active_allocations(db_session, payment.id)
        assert allocation.allocated_amount == Decimal("60.00")
        assert allocation.invoice_balance_before == Decimal("100.00")
        assert allocation.invoice_balance_after == Decimal("40.00")

    def test_overpayment_becomes_credit(
        self, service, db_session, customer, make_invoice, make_payment, make_order
    ):
        invoice = make_invoice(customer, "100.00")
        order = make_order(customer, invoice)
        service.allocate_payment(make_payment(customer, "60.00").id, [invoice.id])
        payment = make_payment(customer, "70.00")

        result = service.allocate_payment(payment.id, [invoice.id])

        assert result.allocations[0].amount_applied == Decimal("40.00")
        assert result.excess_amount == Decimal("30.00")
        assert result.allocation_status == AllocationStatus.HAS_EXCESS.value
        assert invoice.balance_due == Decimal("0.00")
        assert invoice.payment_status == InvoicePaymentStatus.PAID.value
        assert order.payment_status == OrderPaymentStatus.PAID.value

        credit = db_session.get(Credit, result.credit_id)
        assert credit.original_amount == Decimal("30.00")
        assert credit.current_balance == Decimal("30.00")
        assert credit.status == CreditStatus.AVAILABLE.value
        assert credit.source_payment_id == payment.id

        notification = (
            db_session.query(Notification)
            .filter(Notification.notification_type == NotificationType.EXCESS_PAYMENT.value)
            .one()
        )
        assert notification.title == "Excess Payment: $30.00"
        assert notification.action_reference == f"credit:{credit.id}"
        assert notification.customer_id == customer.id

    def test_invoices_paid_in_caller_order(
        self, service, db_session, customer, make_invoice, make_payment
    ):
        first = make_invoice(customer, "30.00")
        second = make_invoice(customer, "50.00")
        third = make_invoice(customer, "40.00")
        payment = make_payment(customer, "100.00")

        result = service.allocate_payment(payment.id, [second.id, first.id, third.id])

        assert [(a.invoice_id, a.amount_applied) for a in result.allocations] == [
            (second.id, Decimal("50.00")),
            (first.id, Decimal("30.00")),
            (third.id, Decimal("20.00")),
        ]
        assert [a.order_index for a in _active_allocations(db_session, payment.id)] == [0, 1, 2]
        assert third.payment_status == InvoicePaymentStatus.PARTIAL_PAID.value

    def test_target_amount_caps_allocation(self, service, customer, make_invoice, make_payment):
        first = make_invoice(customer, "50.00")
        second = make_invoice(customer, "50.00")
        payment = make_payment(customer, "60.00")

        result = service.allocate_payment(
            payment.id,
            [
                AllocationTarget(invoice_id=first.id, amount=Decimal("25.00")),
                AllocationTarget(invoice_id=second.id),
            ],
        )

        assert [a.amount_applied for a in result.allocations] == [
            Decimal("25.00"),
            Decimal("35.00"),
        ]

    def test_stops_when_payment_runs_out(self, service, customer, make_invoice, make_payment):
        first = make_invoice(customer, "50.00")
        second = make_invoice(customer, "50.00")
        payment = make_payment(customer, "50.00")

        result = service.allocate_payment(payment.id, [first.id, second.id])

        assert len(result.allocations) == 1
        assert second.payment_status == InvoicePaymentStatus.UNPAID.value

    def test_conservation_holds(self, service, db_session, customer, make_invoice, make_payment):
        invoices = [make_invoice(customer, amount) for amount in ["10.10", "20.20", "30.30"]]
        payment = make_payment(customer, "100.00")

        service.allocate_payment(payment.id, [invoice.id for invoice in invoices])
        db_session.refresh(payment)

        allocated = sum(a.allocated_amount for a in _active_allocations(db_session, payment.id))
        assert allocated == payment.total_allocated
        assert abs(payment.total_allocated + payment.excess_amount - payment.amount) <= (
            CONSERVATION_TOLERANCE
        )


class TestSkippedInvoices:
    def test_ineligible_invoices_are_reported(
        self, service, db_session, customer, customer2, make_invoice, make_payment
    ):
        good = make_invoice(customer, "40.00")
        foreign = make_invoice(customer2, "40.00")
        paid = make_invoice(customer, "10.00")
        service.allocate_payment(make_payment(customer, "10.00").id, [paid.id])
        missing = uuid4()
        payment = make_payment(customer, "40.00")

        result = service.allocate_payment(payment.id, [missing, foreign.id, paid.id, good.id])

        assert [a.invoice_id for a in result.allocations] == [good.id]
        assert {(s.invoice_id, s.reason) for s in result.skipped} == {
            (missing, SKIP_NOT_FOUND),
            (foreign.id, SKIP_CUSTOMER_MISMATCH),
            (paid.id, SKIP_NOT_PAYABLE),
        }
        db_session.refresh(foreign)
        assert foreign.balance_due == Decimal("40.00")

    def test_no_eligible_invoice(self, service, customer, customer2, make_invoice, make_payment):
        foreign = make_invoice(customer2, "40.00")
        payment = make_payment(customer, "40.00")

        with pytest.raises(NoEligibleInvoicesError):
            service.allocate_payment(payment.id, [foreign.id, uuid4()])

    def test_empty_target_list(self, service, customer, make_payment):
        with pytest.raises(ValidationError):
            service.allocate_payment(make_payment(customer, "10.00").id, [])


class TestPaymentState:
    def test_unknown_payment(self, service, customer, make_invoice):
        with pytest.raises(NotFoundError):
            service.allocate_payment(uuid4(), [make_invoice(customer, "10.00").id])

    def test_fully_allocated_payment_is_refused(
        self, service, customer, make_invoice, make_payment
    ):
        invoice = make_invoice(customer, "100.00")
        payment = make_payment(customer, "20.00")
        service.allocate_payment(payment.id, [invoice.id])

        with pytest.raises(StateConflictError):
            service.allocate_payment(payment.id, [invoice.id])

    def test_payment_with_converted_excess_is_refused(
        self, service, customer, make_invoice, make_payment
    ):
        payment = make_payment(customer, "50.00")
        service.allocate_payment(payment.id, [make_invoice(customer, "20.00").id])

        with pytest.raises(StateConflictError):
            service.allocate_payment(payment.id, [make_invoice(customer, "30.00").id])

    def test_hold_excess_keeps_remainder_on_payment(
        self, service, db_session, customer, make_invoice, make_payment
    ):
        payment = make_payment(customer, "50.00")

        result = service.allocate_payment(
            payment.id, [make_invoice(customer, "20.00").id], hold_excess=True
        )
        assert result.allocation_status == AllocationStatus.PARTIAL.value
        assert result.excess_amount == Decimal("30.00")
        assert result.credit_id is None
        assert db_session.query(Credit).count() == 0

        second = service.allocate_payment(payment.id, [make_invoice(customer, "30.00").id])
        assert second.total_applied == Decimal("30.00")
        assert second.total_allocated == Decimal("50.00")
        assert second.allocation_status == AllocationStatus.FULLY_ALLOCATED.value
        assert [a.order_index for a in _active_allocations(db_session, payment.id)] == [0, 1]


class TestCreditTopUp:
    def test_credit_covers_what_payment_leaves(
        self, service, db_session, customer, make_invoice, make_payment, make_credit
    ):
        credit = make_credit(customer, "15.00")
        invoice = make_invoice(customer, "50.00")
        payment = make_payment(customer, "40.00")

        result = service.allocate_payment(
            payment.id,
            [AllocationTarget(invoice_id=invoice.id, credit_amount=Decimal("10.00"))],
        )

        assert result.total_applied == Decimal("40.00")
        assert result.credit_applied == Decimal("10.00")
        assert result.credit_applications[0].draws[0].credit_id == credit.id
        assert invoice.payment_status == InvoicePaymentStatus.PAID.value
        db_session.refresh(credit)
        assert credit.current_balance == Decimal("5.00")

    def test_not_enough_credit_rolls_back(
        self, service, db_session, customer, make_invoice, make_payment, make_credit
    ):
        make_credit(customer, "5.00")
        invoice = make_invoice(customer, "50.00")
        payment = make_payment(customer, "40.00")

        with pytest.raises(InsufficientCreditError):
            service.allocate_payment(
                payment.id,
                [AllocationTarget(invoice_id=invoice.id, credit_amount=Decimal("10.00"))],
            )

        db_session.refresh(invoice)
        db_session.refresh(payment)
        assert invoice.balance_due == Decimal("50.00")
        assert payment.allocation_status == AllocationStatus.UNALLOCATED.value
        assert _active_allocations(db_session, payment.id) == []


class TestAtomicity:
    def test_collaborator_failure_rolls_back_everything(
        self, db_session, customer, make_invoice, make_payment
    ):
        order_sync = MagicMock(spec=OrderStatusSync)
        order_sync.set_payment_status.side_effect = RuntimeError("order service down")
        service = AllocationService(db_session, order_sync=order_sync)
        invoice = make_invoice(customer, "20.00")
        payment = make_payment(customer, "50.00")

        with pytest.raises(RuntimeError):
            service.allocate_payment(payment.id, [invoice.id])

        db_session.refresh(invoice)
        db_session.refresh(payment)
        assert invoice.balance_due == Decimal("20.00")
        assert invoice.payment_status == InvoicePaymentStatus.UNPAID.value
        assert payment.allocation_status == AllocationStatus.UNALLOCATED.value
        assert payment.total_allocated == Decimal("0.00")
        assert _active_allocations(db_session, payment.id) == []
        assert db_session.query(Credit).count() == 0

    def test_failing_notification_sink_does_not_roll_back(
        self, db_session, customer, make_invoice, make_payment
    ):
        sink = MagicMock(spec=NotificationSink)
        sink.notify.side_effect = RuntimeError("sink down")
        sink.dismiss.side_effect = RuntimeError("sink down")
        service = AllocationService(db_session, notifications=sink)
        invoice = make_invoice(customer, "10.00")
        payment = make_payment(customer, "25.00")

        result = service.allocate_payment(payment.id, [invoice.id])

        assert result.excess_amount == Decimal("15.00")
        sink.notify.assert_called_once()
        db_session.refresh(invoice)
        db_session.refresh(payment)
        assert invoice.payment_status == InvoicePaymentStatus.PAID.value
        assert payment.allocation_status == AllocationStatus.HAS_EXCESS.value
        credit = db_session.get(Credit, result.credit_id)
        assert credit.current_balance == Decimal("15.00")

    def test_order_sync_called_once_per_status(
        self, db_session, customer, make_invoice, make_payment
    ):
        order_sync = MagicMock(spec=OrderStatusSync)
        service = AllocationService(db_session, order_sync=order_sync)
        paid_a = make_invoice(customer, "10.00")
        paid_b = make_invoice(customer, "10.00")
        partial = make_invoice(customer, "10.00")

        service.allocate_payment(
            make_payment(customer, "25.00").id, [paid_a.id, paid_b.id, partial.id]
        )

        calls = {
            call.args[1]: sorted(call.args[0])
            for call in order_sync.set_payment_status.call_args_list
        }
        assert calls == {
            OrderPaymentStatus.PAID: sorted([paid_a.id, paid_b.id]),
            OrderPaymentStatus.PARTIAL_PAID: [partial.id],
        }


class TestReverser:
    def test_reverse_restores_invoices_and_retires_credit(
        self, db_session, customer, make_invoice, make_payment, make_order
    ):
        invoice = make_invoice(customer, "40.00")
        order = make_order(customer, invoice)
        payment = make_payment(customer, "50.00")
        result = AllocationService(db_session).allocate_payment(payment.id, [invoice.id])

        LedgerAllocationReverser(db_session).reverse(payment, reversed_by="manager")
        db_session.commit()

        assert invoice.balance_due == Decimal("40.00")
        assert invoice.payment_status == InvoicePaymentStatus.UNPAID.value
        assert order.payment_status == OrderPaymentStatus.PENDING.value
        assert payment.allocation_status == AllocationStatus.UNALLOCATED.value
        assert payment.total_allocated == Decimal("0.00")
        assert payment.excess_amount == Decimal("0.00")
        assert _active_allocations(db_session, payment.id) == []
        credit = db_session.get(Credit, result.credit_id)
        assert credit.lifecycle_state == LifecycleState.DELETED.value

    def test_reverse_refused_when_credit_was_drawn(
        self, db_session, customer, make_invoice, make_payment
    ):
        payment = make_payment(customer, "50.00")
        AllocationService(db_session).allocate_payment(
            payment.id, [make_invoice(customer, "40.00").id]
        )
        other = make_invoice(customer, "5.00")
        CreditApplicationService(db_session).apply_credit(
            customer.id, [CreditRequest(invoice_id=other.id, amount=Decimal("5.00"))]
        )

        with pytest.raises(StateConflictError):
            LedgerAllocationReverser(db_session).reverse(payment)
