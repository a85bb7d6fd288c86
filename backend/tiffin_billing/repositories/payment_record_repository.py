"""Payment record repository for data access."""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import ZERO, money
from tiffin_billing.models.payment_record import AllocationStatus, PaymentRecord, PaymentSource
from tiffin_billing.models.shared import LifecycleState, utc_now
from tiffin_billing.schemas.payment_record import PaymentRecordUpdate


class PaymentRecordRepository:
    """Repository for PaymentRecord model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        payment_id: UUID,
        *,
        lifecycle: LifecycleState | None,
        for_update: bool = False,
    ) -> PaymentRecord | None:
        query = self.db.query(PaymentRecord).filter(PaymentRecord.id == payment_id)
        if lifecycle is not None:
            query = query.filter(PaymentRecord.lifecycle_state == lifecycle.value)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_transfer_id(
        self, transfer_id: UUID, *, lifecycle: LifecycleState | None
    ) -> PaymentRecord | None:
        query = self.db.query(PaymentRecord).filter(PaymentRecord.transfer_id == transfer_id)
        if lifecycle is not None:
            query = query.filter(PaymentRecord.lifecycle_state == lifecycle.value)
        return query.first()

    def get_all(
        self,
        *,
        lifecycle: LifecycleState | None,
        skip: int = 0,
        limit: int = 100,
        source: PaymentSource | None = None,
        allocation_status: AllocationStatus | None = None,
        customer_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[PaymentRecord]:
        """Get payment records with optional filters, newest payment date first."""
        query = self.db.query(PaymentRecord)
        if lifecycle is not None:
            query = query.filter(PaymentRecord.lifecycle_state == lifecycle.value)
        if source:
            query = query.filter(PaymentRecord.source == source.value)
        if allocation_status:
            query = query.filter(PaymentRecord.allocation_status == allocation_status.value)
        if customer_id:
            query = query.filter(PaymentRecord.customer_id == customer_id)
        if start_date:
            query = query.filter(PaymentRecord.payment_date >= start_date)
        if end_date:
            query = query.filter(PaymentRecord.payment_date <= end_date)

        return (
            query.order_by(PaymentRecord.payment_date.desc(), PaymentRecord.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create(
        self,
        *,
        customer_id: UUID,
        amount: object,
        payment_date: date,
        source: PaymentSource = PaymentSource.CASH,
        transfer_id: UUID | None = None,
        payer_name: str | None = None,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> PaymentRecord:
        payment = PaymentRecord(
            customer_id=customer_id,
            amount=money(amount),
            payment_date=payment_date,
            source=source.value,
            transfer_id=transfer_id,
            payer_name=payer_name,
            notes=notes,
            created_by=created_by,
            total_allocated=ZERO,
            excess_amount=ZERO,
            allocation_status=AllocationStatus.UNALLOCATED.value,
        )
        self.db.add(payment)
        self.db.flush()
        return payment

    def update(self, payment: PaymentRecord, data: PaymentRecordUpdate) -> PaymentRecord:
        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(payment, key, value)
        self.db.flush()
        return payment

    def soft_delete(
        self,
        payment: PaymentRecord,
        deleted_by: str | None = None,
        delete_reason: str | None = None,
    ) -> PaymentRecord:
        payment.lifecycle_state = LifecycleState.DELETED.value  # type: ignore[assignment]
        payment.deleted_at = utc_now()  # type: ignore[assignment]
        payment.deleted_by = deleted_by  # type: ignore[assignment]
        payment.delete_reason = delete_reason  # type: ignore[assignment]
        self.db.flush()
        return payment
