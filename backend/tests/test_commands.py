"""Tests for routing ledger commands through BillingLedger."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from tiffin_billing.models.credit import CreditStatus
from tiffin_billing.models.refund import RefundMethod, RefundSourceType, RefundStatus
from tiffin_billing.services.allocation_service import AllocationTarget
from tiffin_billing.services.collaborators import NotificationSink
from tiffin_billing.services.commands import (
    AllocatePayment,
    ApplyCredit,
    ApproveRefund,
    BillingLedger,
    CancelRefund,
    CompleteRefund,
    CreateRefund,
    DeleteRefund,
    GetCustomerCreditBalance,
    PayInvoice,
)
from tiffin_billing.services.credit_application_service import CreditRequest


@pytest.fixture
def ledger(db_session):
    return BillingLedger(db_session)


def _create_refund(customer, credit, amount="10.00"):
    return CreateRefund(
        source_type=RefundSourceType.CREDIT,
        customer_id=customer.id,
        credit_id=credit.id,
        refund_amount=Decimal(amount),
        refund_method=RefundMethod.CASH,
        reason="Holiday",
        requested_by="desk",
    )


class TestBillingLedger:
    def test_allocate_then_check_balance(self, ledger, customer, make_invoice, make_payment):
        invoice = make_invoice(customer, "40.00")
        payment = make_payment(customer, "55.00")

        result = ledger.execute(
            AllocatePayment(
                payment_id=payment.id,
                targets=(AllocationTarget(invoice_id=invoice.id),),
                allocated_by="desk",
            )
        )
        balance = ledger.execute(GetCustomerCreditBalance(customer_id=customer.id))

        assert result.excess_amount == Decimal("15.00")
        assert balance.total_available == Decimal("15.00")
        assert balance.credits[0].id == result.credit_id

    def test_apply_credit(self, ledger, customer, make_credit, make_invoice):
        make_credit(customer, "20.00")
        invoice = make_invoice(customer, "20.00")

        result = ledger.execute(
            ApplyCredit(
                customer_id=customer.id,
                allocations=(CreditRequest(invoice_id=invoice.id, amount=Decimal("20.00")),),
            )
        )

        assert result.total_applied == Decimal("20.00")
        assert result.remaining_credit == Decimal("0.00")

    def test_refund_lifecycle(self, ledger, db_session, customer, make_credit):
        credit = make_credit(customer, "30.00")

        approved = ledger.execute(_create_refund(customer, credit))
        ledger.execute(ApproveRefund(refund_id=approved.id, approved_by="manager"))
        completed = ledger.execute(_create_refund(customer, credit))
        ledger.execute(CompleteRefund(refund_id=completed.id, approved_by="manager"))
        cancelled = ledger.execute(_create_refund(customer, credit))
        ledger.execute(CancelRefund(refund_id=cancelled.id))
        deleted = ledger.execute(_create_refund(customer, credit))
        assert ledger.execute(DeleteRefund(refund_id=deleted.id, deleted_by="manager")) is None

        db_session.refresh(credit)
        assert credit.current_balance == Decimal("10.00")
        assert credit.status == CreditStatus.AVAILABLE.value
        db_session.refresh(cancelled)
        assert cancelled.status == RefundStatus.CANCELLED.value

    def test_pay_invoice(self, ledger, customer, make_invoice, make_payment):
        invoice = make_invoice(customer, "12.00")
        payment = make_payment(customer, "12.00")

        result = ledger.execute(
            PayInvoice(invoice_id=invoice.id, payment_record_id=payment.id, amount=Decimal("12"))
        )

        assert result.balance_due == Decimal("0.00")

    def test_shared_notification_sink(self, db_session, customer, make_credit):
        sink = MagicMock(spec=NotificationSink)
        ledger = BillingLedger(db_session, notifications=sink)

        ledger.execute(_create_refund(customer, make_credit(customer, "30.00")))

        assert sink.notify.call_count == 1

    def test_unknown_command(self, ledger):
        with pytest.raises(TypeError):
            ledger.execute(object())
