"""Payment allocation repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from tiffin_billing.models.payment_allocation import PaymentAllocation
from tiffin_billing.models.shared import LifecycleState, utc_now


class PaymentAllocationRepository:
    """Repository for PaymentAllocation model."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        payment_record_id: UUID,
        invoice_id: UUID,
        customer_id: UUID,
        order_index: int,
        allocated_amount: Decimal,
        invoice_balance_before: Decimal,
        invoice_balance_after: Decimal,
        resulting_status: str,
        created_by: str | None = None,
    ) -> PaymentAllocation:
        allocation = PaymentAllocation(
            payment_record_id=payment_record_id,
            invoice_id=invoice_id,
            customer_id=customer_id,
            order_index=order_index,
            allocated_amount=allocated_amount,
            invoice_balance_before=invoice_balance_before,
            invoice_balance_after=invoice_balance_after,
            resulting_status=resulting_status,
            created_by=created_by,
        )
        self.db.add(allocation)
        self.db.flush()
        return allocation

    def get_by_payment_id(
        self, payment_record_id: UUID, *, lifecycle: LifecycleState | None
    ) -> list[PaymentAllocation]:
        """Get a payment's allocations in the order they were made."""
        query = self.db.query(PaymentAllocation).filter(
            PaymentAllocation.payment_record_id == payment_record_id
        )
        if lifecycle is not None:
            query = query.filter(PaymentAllocation.lifecycle_state == lifecycle.value)
        return query.order_by(PaymentAllocation.order_index.asc()).all()

    def get_by_invoice_id(
        self, invoice_id: UUID, *, lifecycle: LifecycleState | None
    ) -> list[PaymentAllocation]:
        query = self.db.query(PaymentAllocation).filter(PaymentAllocation.invoice_id == invoice_id)
        if lifecycle is not None:
            query = query.filter(PaymentAllocation.lifecycle_state == lifecycle.value)
        return query.order_by(PaymentAllocation.created_at.asc()).all()

    def next_order_index(self, payment_record_id: UUID) -> int:
        """Order indexes keep increasing across repeated allocations of one payment."""
        current = (
            self.db.query(sa_func.max(PaymentAllocation.order_index))
            .filter(PaymentAllocation.payment_record_id == payment_record_id)
            .scalar()
        )
        return int(current or 0) + 1

    def soft_delete(self, allocation: PaymentAllocation) -> PaymentAllocation:
        allocation.lifecycle_state = LifecycleState.DELETED.value  # type: ignore[assignment]
        allocation.deleted_at = utc_now()  # type: ignore[assignment]
        self.db.flush()
        return allocation
