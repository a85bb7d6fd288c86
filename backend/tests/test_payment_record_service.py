"""Tests for payment intake, updates and deletion."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from tiffin_billing.core.errors import NotFoundError, StateConflictError
from tiffin_billing.models.incoming_transfer import IncomingTransfer, TransferStatus
from tiffin_billing.models.invoice import InvoicePaymentStatus
from tiffin_billing.models.notification import Notification, NotificationType
from tiffin_billing.models.payment_record import AllocationStatus, PaymentSource
from tiffin_billing.models.refund import RefundMethod, RefundSourceType
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.schemas.payment_record import (
    CashPaymentCreate,
    PaymentRecordDelete,
    PaymentRecordUpdate,
    TransferPaymentCreate,
)
from tiffin_billing.schemas.refund import RefundCreate
from tiffin_billing.services.allocation_service import AllocationService
from tiffin_billing.services.payment_record_service import (
    PaymentRecordService,
    payment_reference,
)
from tiffin_billing.services.refund_service import RefundService


@pytest.fixture
def service(db_session):
    return PaymentRecordService(db_session)


def _transfer(customer, reference="TRX-1001", amount="75.00"):
    return TransferPaymentCreate(
        customer_id=customer.id,
        amount=Decimal(amount),
        reference=reference,
        sender_name="A RAO",
        payment_date=date(2026, 10, 2),
    )


def _open_notifications(db_session, notification_type):
    return (
        db_session.query(Notification)
        .filter(
            Notification.notification_type == notification_type.value,
            Notification.is_dismissed.is_(False),
        )
        .all()
    )


class TestRecordPayments:
    def test_cash_payment_defaults_payer_to_customer(self, service, customer):
        payment = service.record_cash_payment(
            CashPaymentCreate(
                customer_id=customer.id, amount=Decimal("25.00"), payment_date=date(2026, 10, 1)
            )
        )
        assert payment.source == PaymentSource.CASH.value
        assert payment.payer_name == "Asha Rao"
        assert payment.allocation_status == AllocationStatus.UNALLOCATED.value
        assert payment.total_allocated == Decimal("0.00")

    def test_cash_payment_unknown_customer(self, service):
        with pytest.raises(NotFoundError):
            service.record_cash_payment(
                CashPaymentCreate(
                    customer_id=uuid4(), amount=Decimal("25.00"), payment_date=date(2026, 10, 1)
                )
            )

    def test_transfer_payment_is_matched_and_announced(self, service, db_session, customer):
        payment = service.record_transfer_payment(_transfer(customer))

        assert payment.source == PaymentSource.EXTERNAL_TRANSFER.value
        assert payment.payer_name == "A RAO"
        transfer = db_session.get(IncomingTransfer, payment.transfer_id)
        assert transfer.status == TransferStatus.MATCHED.value
        [notification] = _open_notifications(db_session, NotificationType.TRANSFER_RECEIVED)
        assert notification.action_reference == payment_reference(payment.id)
        assert notification.title == "Transfer Received: $75.00"

    def test_same_transfer_twice(self, service, customer):
        service.record_transfer_payment(_transfer(customer))
        with pytest.raises(StateConflictError):
            service.record_transfer_payment(_transfer(customer))

    def test_allocating_transfer_marks_it_allocated(
        self, service, db_session, customer, make_invoice
    ):
        payment = service.record_transfer_payment(_transfer(customer, amount="20.00"))

        AllocationService(db_session).allocate_payment(
            payment.id, [make_invoice(customer, "20.00").id]
        )

        transfer = db_session.get(IncomingTransfer, payment.transfer_id)
        db_session.refresh(transfer)
        assert transfer.status == TransferStatus.ALLOCATED.value
        assert _open_notifications(db_session, NotificationType.TRANSFER_RECEIVED) == []

    def test_allocation_dismisses_only_its_own_transfer_notice(
        self, service, db_session, customer, make_invoice
    ):
        first = service.record_transfer_payment(_transfer(customer, amount="20.00"))
        second = service.record_transfer_payment(
            _transfer(customer, reference="TRX-1002", amount="30.00")
        )

        AllocationService(db_session).allocate_payment(
            first.id, [make_invoice(customer, "20.00").id]
        )

        [still_open] = _open_notifications(db_session, NotificationType.TRANSFER_RECEIVED)
        assert still_open.action_reference == payment_reference(second.id)


class TestQueries:
    def test_list_filters_by_customer_and_status(
        self, service, db_session, customer, customer2, make_payment, make_invoice
    ):
        allocated = make_payment(customer, "10.00")
        waiting = make_payment(customer, "10.00")
        make_payment(customer2, "10.00")
        AllocationService(db_session).allocate_payment(
            allocated.id, [make_invoice(customer, "10.00").id]
        )

        mine = service.list_payments(customer_id=customer.id)
        unallocated = service.list_payments(
            customer_id=customer.id, allocation_status=AllocationStatus.UNALLOCATED
        )

        assert {p.id for p in mine} == {allocated.id, waiting.id}
        assert [p.id for p in unallocated] == [waiting.id]

    def test_update_only_touches_notes_and_payer(self, service, customer, make_payment):
        payment = make_payment(customer, "10.00")

        updated = service.update_payment(
            payment.id, PaymentRecordUpdate(notes="Paid at counter", payer_name="Ravi")
        )

        assert updated.notes == "Paid at counter"
        assert updated.payer_name == "Ravi"
        assert updated.amount == Decimal("10.00")

    def test_get_unknown_payment(self, service):
        with pytest.raises(NotFoundError):
            service.get_payment(uuid4())


class TestDeletePayment:
    def test_delete_reverses_allocations(
        self, service, db_session, customer, make_invoice, make_payment
    ):
        invoice = make_invoice(customer, "30.00")
        payment = make_payment(customer, "50.00")
        result = AllocationService(db_session).allocate_payment(payment.id, [invoice.id])

        service.delete_payment(
            payment.id, PaymentRecordDelete(deleted_by="manager", delete_reason="Bounced")
        )

        db_session.refresh(invoice)
        db_session.refresh(payment)
        assert invoice.balance_due == Decimal("30.00")
        assert invoice.payment_status == InvoicePaymentStatus.UNPAID.value
        assert payment.lifecycle_state == LifecycleState.DELETED.value
        assert payment.delete_reason == "Bounced"
        assert service.get_allocations(payment.id, include_deleted=True)[0].lifecycle_state == (
            LifecycleState.DELETED.value
        )
        assert _open_notifications(db_session, NotificationType.EXCESS_PAYMENT) == []
        with pytest.raises(NotFoundError):
            service.get_payment(payment.id)
        assert result.credit_id is not None

    def test_delete_refused_while_credit_has_pending_refund(
        self, service, db_session, customer, make_invoice, make_payment
    ):
        payment = make_payment(customer, "50.00")
        result = AllocationService(db_session).allocate_payment(
            payment.id, [make_invoice(customer, "30.00").id]
        )
        RefundService(db_session).create_refund(
            RefundCreate(
                source_type=RefundSourceType.CREDIT,
                customer_id=customer.id,
                credit_id=result.credit_id,
                refund_amount=Decimal("20.00"),
                refund_method=RefundMethod.CASH,
                refund_date=date(2026, 10, 3),
                reason="Overpaid",
                requested_by="desk",
            )
        )

        with pytest.raises(StateConflictError):
            service.delete_payment(payment.id, PaymentRecordDelete(deleted_by="manager"))

        db_session.refresh(payment)
        assert payment.lifecycle_state == LifecycleState.ACTIVE.value
        assert payment.allocation_status == AllocationStatus.HAS_EXCESS.value

    def test_delete_refused_with_payment_refund(
        self, service, db_session, customer, make_payment
    ):
        payment = make_payment(customer, "50.00")
        RefundService(db_session).create_refund(
            RefundCreate(
                source_type=RefundSourceType.PAYMENT,
                customer_id=customer.id,
                payment_record_id=payment.id,
                refund_amount=Decimal("50.00"),
                refund_method=RefundMethod.CASH,
                refund_date=date(2026, 10, 3),
                reason="Duplicate payment",
                requested_by="desk",
            )
        )

        with pytest.raises(StateConflictError):
            service.delete_payment(payment.id, PaymentRecordDelete())
