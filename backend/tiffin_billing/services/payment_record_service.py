"""Payment records: intake of money received and the changes allowed afterwards."""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import NotFoundError, StateConflictError
from tiffin_billing.models.customer import Customer
from tiffin_billing.models.notification import NotificationPriority, NotificationType
from tiffin_billing.models.payment_allocation import PaymentAllocation
from tiffin_billing.models.payment_record import AllocationStatus, PaymentRecord, PaymentSource
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.credit_repository import CreditRepository
from tiffin_billing.repositories.customer_repository import CustomerRepository
from tiffin_billing.repositories.payment_allocation_repository import PaymentAllocationRepository
from tiffin_billing.repositories.payment_record_repository import PaymentRecordRepository
from tiffin_billing.schemas.payment_record import (
    CashPaymentCreate,
    PaymentRecordDelete,
    PaymentRecordUpdate,
    TransferPaymentCreate,
)
from tiffin_billing.services.allocation_service import LedgerAllocationReverser, payment_reference
from tiffin_billing.services.collaborators import AllocationReverser, NotificationSink
from tiffin_billing.services.notification_service import guarded_sink
from tiffin_billing.services.transfer_service import SqlTransferGateway

logger = logging.getLogger(__name__)


class PaymentRecordService:
    """Service for payment record business logic."""

    def __init__(
        self,
        db: Session,
        *,
        notifications: NotificationSink | None = None,
        reverser: AllocationReverser | None = None,
        transfers: SqlTransferGateway | None = None,
    ):
        self.db = db
        self.payment_repo = PaymentRecordRepository(db)
        self.allocation_repo = PaymentAllocationRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.credit_repo = CreditRepository(db)
        self.notifications = guarded_sink(db, notifications)
        self.reverser = reverser or LedgerAllocationReverser(db)
        self.transfers = transfers or SqlTransferGateway(db)

    def record_cash_payment(self, data: CashPaymentCreate) -> PaymentRecord:
        with atomic(self.db):
            customer = self._get_customer(data.customer_id)
            payment = self.payment_repo.create(
                customer_id=data.customer_id,
                amount=data.amount,
                payment_date=data.payment_date,
                source=PaymentSource.CASH,
                payer_name=data.payer_name or str(customer.name),
                notes=data.notes,
                created_by=data.created_by,
            )

        logger.info(
            "Recorded cash payment %s of %s for customer %s",
            payment.id,
            payment.amount,
            data.customer_id,
        )
        return payment

    def record_transfer_payment(self, data: TransferPaymentCreate) -> PaymentRecord:
        """Record a bank transfer whose sender has already been matched to a customer."""
        with atomic(self.db):
            customer = self._get_customer(data.customer_id)
            transfer = self.transfers.register_matched(
                reference=data.reference,
                amount=data.amount,
                customer_id=data.customer_id,
                sender_name=data.sender_name,
            )
            existing = self.payment_repo.get_by_transfer_id(
                transfer.id, lifecycle=LifecycleState.ACTIVE  # type: ignore[arg-type]
            )
            if existing is not None:
                raise StateConflictError(
                    f"Transfer {data.reference} is already recorded as payment {existing.id}"
                )
            payment = self.payment_repo.create(
                customer_id=data.customer_id,
                amount=data.amount,
                payment_date=data.payment_date,
                source=PaymentSource.EXTERNAL_TRANSFER,
                transfer_id=transfer.id,  # type: ignore[arg-type]
                payer_name=data.sender_name or str(customer.name),
                notes=data.notes,
                created_by=data.created_by,
            )
            self.notifications.notify(
                notification_type=NotificationType.TRANSFER_RECEIVED,
                customer_id=data.customer_id,
                title=f"Transfer Received: ${payment.amount:.2f}",
                message=(
                    f"Transfer {data.reference} from {payment.payer_name} is ready to allocate."
                ),
                priority=NotificationPriority.MEDIUM,
                action_reference=payment_reference(payment.id),  # type: ignore[arg-type]
            )

        logger.info(
            "Recorded transfer %s as payment %s for customer %s",
            data.reference,
            payment.id,
            data.customer_id,
        )
        return payment

    def get_payment(self, payment_id: UUID) -> PaymentRecord:
        payment = self.payment_repo.get_by_id(payment_id, lifecycle=LifecycleState.ACTIVE)
        if payment is None:
            raise NotFoundError("PaymentRecord", payment_id)
        return payment

    def get_allocations(
        self, payment_id: UUID, include_deleted: bool = False
    ) -> list[PaymentAllocation]:
        payment = self.payment_repo.get_by_id(
            payment_id, lifecycle=None if include_deleted else LifecycleState.ACTIVE
        )
        if payment is None:
            raise NotFoundError("PaymentRecord", payment_id)
        return self.allocation_repo.get_by_payment_id(
            payment_id, lifecycle=None if include_deleted else LifecycleState.ACTIVE
        )

    def list_payments(
        self,
        skip: int = 0,
        limit: int = 100,
        source: PaymentSource | None = None,
        allocation_status: AllocationStatus | None = None,
        customer_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        include_deleted: bool = False,
    ) -> list[PaymentRecord]:
        return self.payment_repo.get_all(
            lifecycle=None if include_deleted else LifecycleState.ACTIVE,
            skip=skip,
            limit=limit,
            source=source,
            allocation_status=allocation_status,
            customer_id=customer_id,
            start_date=start_date,
            end_date=end_date,
        )

    def update_payment(self, payment_id: UUID, data: PaymentRecordUpdate) -> PaymentRecord:
        """Only notes and payer name can change after a payment is recorded."""
        with atomic(self.db):
            payment = self.get_payment(payment_id)
            self.payment_repo.update(payment, data)
        return payment

    def delete_payment(self, payment_id: UUID, data: PaymentRecordDelete) -> PaymentRecord:
        """Reverse a payment's allocations, then soft-delete it."""
        with atomic(self.db):
            payment = self.payment_repo.get_by_id(
                payment_id, lifecycle=LifecycleState.ACTIVE, for_update=True
            )
            if payment is None:
                raise NotFoundError("PaymentRecord", payment_id)
            credits = self.credit_repo.get_by_source_payment_id(
                payment_id, lifecycle=LifecycleState.ACTIVE
            )
            self.reverser.reverse(payment, reversed_by=data.deleted_by)
            self.payment_repo.soft_delete(payment, data.deleted_by, data.delete_reason)
            self.notifications.dismiss(action_reference=payment_reference(payment_id))
            for credit in credits:
                self.notifications.dismiss(action_reference=f"credit:{credit.id}")

        logger.info("Deleted payment %s (by %s)", payment_id, data.deleted_by)
        return payment

    def _get_customer(self, customer_id: UUID) -> Customer:
        customer = self.customer_repo.get_by_id(customer_id, lifecycle=LifecycleState.ACTIVE)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer
