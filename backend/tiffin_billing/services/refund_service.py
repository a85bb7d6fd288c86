"""Refund workflow.

A refund is created ``pending`` and moves once, to ``completed`` or
``cancelled``. Both are terminal. A credit-sourced refund takes its amount off
the credit exactly once, on the transition into ``completed``.
"""

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import (
    CrossTenantError,
    InsufficientCreditBalanceError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from tiffin_billing.core.money import ZERO, money
from tiffin_billing.models.credit import CreditStatus
from tiffin_billing.models.notification import NotificationPriority, NotificationType
from tiffin_billing.models.refund import Refund, RefundSourceType, RefundStatus
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.credit_repository import CreditRepository
from tiffin_billing.repositories.customer_repository import CustomerRepository
from tiffin_billing.repositories.payment_record_repository import PaymentRecordRepository
from tiffin_billing.repositories.refund_repository import RefundRepository
from tiffin_billing.schemas.refund import RefundCreate
from tiffin_billing.services.collaborators import NotificationSink
from tiffin_billing.services.credit_ledger import CreditLedger
from tiffin_billing.services.notification_service import guarded_sink

logger = logging.getLogger(__name__)


def refund_reference(refund_id: UUID) -> str:
    return f"refund:{refund_id}"


class RefundService:
    """Service for the refund request lifecycle."""

    def __init__(self, db: Session, *, notifications: NotificationSink | None = None):
        self.db = db
        self.refund_repo = RefundRepository(db)
        self.credit_repo = CreditRepository(db)
        self.payment_repo = PaymentRecordRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.credit_ledger = CreditLedger(db)
        self.notifications = guarded_sink(db, notifications)

    def create_refund(self, data: RefundCreate) -> Refund:
        """Open a pending refund request and alert staff."""
        amount = money(data.refund_amount)
        if amount <= ZERO:
            raise ValidationError("Refund amount must be positive")

        with atomic(self.db):
            customer = self.customer_repo.get_by_id(
                data.customer_id, lifecycle=LifecycleState.ACTIVE
            )
            if customer is None:
                raise NotFoundError("Customer", data.customer_id)
            if data.source_type == RefundSourceType.CREDIT:
                self._check_credit_source(data)
            else:
                self._check_payment_source(data)

            refund = self.refund_repo.create(
                source_type=data.source_type,
                customer_id=data.customer_id,
                credit_id=data.credit_id if data.source_type == RefundSourceType.CREDIT else None,
                payment_record_id=(
                    data.payment_record_id if data.source_type == RefundSourceType.PAYMENT else None
                ),
                refund_amount=amount,
                refund_method=data.refund_method.value,
                refund_date=data.refund_date,
                reference_number=data.reference_number,
                reason=data.reason,
                requested_by=data.requested_by,
            )
            self.notifications.notify(
                notification_type=NotificationType.REFUND_REQUEST,
                customer_id=data.customer_id,
                title=f"Refund Request: ${amount:.2f}",
                message=f"Refund of ${amount:.2f} requested by {data.requested_by}: {data.reason}",
                priority=NotificationPriority.HIGH,
                action_reference=refund_reference(refund.id),  # type: ignore[arg-type]
            )

        logger.info(
            "Created %s refund %s of %s for customer %s",
            data.source_type.value,
            refund.id,
            amount,
            data.customer_id,
        )
        return refund

    def approve_refund(
        self, refund_id: UUID, approved_by: str, reference_number: str | None = None
    ) -> Refund:
        """Complete a pending refund, taking the amount off its credit."""
        with atomic(self.db):
            refund = self._get_pending(refund_id, "approved")
            amount = money(refund.refund_amount)
            if refund.source_type == RefundSourceType.CREDIT.value:
                self._lock_refundable_credit(refund.credit_id, amount)  # type: ignore[arg-type]
                self.credit_ledger.refund_deduct(refund.credit_id, amount)  # type: ignore[arg-type]
            self.refund_repo.mark_completed(refund, approved_by, reference_number)
            self.notifications.notify(
                notification_type=NotificationType.REFUND_COMPLETED,
                customer_id=refund.customer_id,  # type: ignore[arg-type]
                title=f"Refund Processed: ${amount:.2f}",
                message=f"Refund of ${amount:.2f} has been processed via {refund.refund_method}.",
                priority=NotificationPriority.LOW,
                action_reference=refund_reference(refund.id),  # type: ignore[arg-type]
            )
            self.notifications.dismiss(
                notification_type=NotificationType.REFUND_REQUEST,
                action_reference=refund_reference(refund.id),  # type: ignore[arg-type]
            )

        logger.info("Refund %s completed by %s", refund_id, approved_by)
        return refund

    def complete_refund(
        self, refund_id: UUID, approved_by: str, reference_number: str | None = None
    ) -> Refund:
        """Older name for ``approve_refund``; same rules, same single deduction."""
        return self.approve_refund(refund_id, approved_by, reference_number)

    def cancel_refund(self, refund_id: UUID) -> Refund:
        with atomic(self.db):
            refund = self._get_pending(refund_id, "cancelled")
            self.refund_repo.mark_cancelled(refund)
            self.notifications.dismiss(
                notification_type=NotificationType.REFUND_REQUEST,
                action_reference=refund_reference(refund.id),  # type: ignore[arg-type]
            )

        logger.info("Refund %s cancelled", refund_id)
        return refund

    def delete_refund(self, refund_id: UUID, deleted_by: str | None = None) -> None:
        """Soft-delete a refund; only pending requests can be deleted."""
        with atomic(self.db):
            refund = self._get_pending(refund_id, "deleted")
            self.refund_repo.soft_delete(refund, deleted_by)
            self.notifications.dismiss(
                notification_type=NotificationType.REFUND_REQUEST,
                action_reference=refund_reference(refund.id),  # type: ignore[arg-type]
            )

        logger.info("Refund %s deleted by %s", refund_id, deleted_by)

    def get_refund(self, refund_id: UUID) -> Refund:
        refund = self.refund_repo.get_by_id(refund_id, lifecycle=LifecycleState.ACTIVE)
        if refund is None:
            raise NotFoundError("Refund", refund_id)
        return refund

    def list_refunds(
        self,
        skip: int = 0,
        limit: int = 100,
        status: RefundStatus | None = None,
        customer_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Refund]:
        return self.refund_repo.get_all(
            lifecycle=LifecycleState.ACTIVE,
            skip=skip,
            limit=limit,
            status=status,
            customer_id=customer_id,
            start_date=start_date,
            end_date=end_date,
        )

    def _get_pending(self, refund_id: UUID, verb: str) -> Refund:
        refund = self.refund_repo.get_by_id(
            refund_id, lifecycle=LifecycleState.ACTIVE, for_update=True
        )
        if refund is None:
            raise NotFoundError("Refund", refund_id)
        if refund.status != RefundStatus.PENDING.value:
            raise StateConflictError(
                f"Only pending refunds can be {verb}; refund {refund_id} is {refund.status}"
            )
        return refund

    def _check_credit_source(self, data: RefundCreate) -> None:
        credit = self.credit_repo.get_by_id(
            data.credit_id, lifecycle=LifecycleState.ACTIVE  # type: ignore[arg-type]
        )
        if credit is None:
            raise NotFoundError("Credit", data.credit_id)  # type: ignore[arg-type]
        if credit.customer_id != data.customer_id:
            raise CrossTenantError("Credit", credit.id, data.customer_id)  # type: ignore[arg-type]
        available = (
            money(credit.current_balance)
            if credit.status == CreditStatus.AVAILABLE.value
            else ZERO
        )
        if available < money(data.refund_amount):
            raise InsufficientCreditBalanceError(
                credit.id, available, money(data.refund_amount)  # type: ignore[arg-type]
            )

    def _lock_refundable_credit(self, credit_id: UUID, amount: Decimal) -> None:
        # A credit spent down to used or refunded since the request has nothing left.
        credit = self.credit_repo.get_by_id(
            credit_id, lifecycle=LifecycleState.ACTIVE, for_update=True
        )
        if credit is None:
            raise NotFoundError("Credit", credit_id)
        if credit.status != CreditStatus.AVAILABLE.value:
            raise InsufficientCreditBalanceError(credit_id, ZERO, amount)

    def _check_payment_source(self, data: RefundCreate) -> None:
        payment = self.payment_repo.get_by_id(
            data.payment_record_id, lifecycle=LifecycleState.ACTIVE  # type: ignore[arg-type]
        )
        if payment is None:
            raise NotFoundError("PaymentRecord", data.payment_record_id)  # type: ignore[arg-type]
        if payment.customer_id != data.customer_id:
            raise CrossTenantError(
                "PaymentRecord", payment.id, data.customer_id  # type: ignore[arg-type]
            )
        if money(data.refund_amount) > money(payment.amount):
            raise ValidationError(
                f"Refund amount ({money(data.refund_amount):.2f}) exceeds payment amount "
                f"({money(payment.amount):.2f})"
            )
