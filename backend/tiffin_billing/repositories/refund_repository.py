"""Refund repository for data access."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import money, money_sum
from tiffin_billing.models.refund import Refund, RefundSourceType, RefundStatus
from tiffin_billing.models.shared import LifecycleState, utc_now


class RefundRepository:
    """Repository for Refund model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        refund_id: UUID,
        *,
        lifecycle: LifecycleState | None,
        for_update: bool = False,
    ) -> Refund | None:
        query = self.db.query(Refund).filter(Refund.id == refund_id)
        if lifecycle is not None:
            query = query.filter(Refund.lifecycle_state == lifecycle.value)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_all(
        self,
        *,
        lifecycle: LifecycleState | None,
        skip: int = 0,
        limit: int = 100,
        status: RefundStatus | None = None,
        customer_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Refund]:
        query = self.db.query(Refund)
        if lifecycle is not None:
            query = query.filter(Refund.lifecycle_state == lifecycle.value)
        if status:
            query = query.filter(Refund.status == status.value)
        if customer_id:
            query = query.filter(Refund.customer_id == customer_id)
        if start_date:
            query = query.filter(Refund.refund_date >= start_date)
        if end_date:
            query = query.filter(Refund.refund_date <= end_date)
        return query.order_by(Refund.created_at.desc()).offset(skip).limit(limit).all()

    def get_by_credit_id(
        self,
        credit_id: UUID,
        *,
        lifecycle: LifecycleState | None,
        status: RefundStatus | None = None,
    ) -> list[Refund]:
        query = self.db.query(Refund).filter(
            Refund.source_type == RefundSourceType.CREDIT.value,
            Refund.credit_id == credit_id,
        )
        if lifecycle is not None:
            query = query.filter(Refund.lifecycle_state == lifecycle.value)
        if status:
            query = query.filter(Refund.status == status.value)
        return query.order_by(Refund.created_at.asc()).all()

    def get_by_payment_record_id(
        self, payment_record_id: UUID, *, lifecycle: LifecycleState | None
    ) -> list[Refund]:
        query = self.db.query(Refund).filter(
            Refund.source_type == RefundSourceType.PAYMENT.value,
            Refund.payment_record_id == payment_record_id,
        )
        if lifecycle is not None:
            query = query.filter(Refund.lifecycle_state == lifecycle.value)
        return query.order_by(Refund.created_at.asc()).all()

    def get_total_completed_for_credit(self, credit_id: UUID) -> Decimal:
        refunds = self.get_by_credit_id(
            credit_id, lifecycle=LifecycleState.ACTIVE, status=RefundStatus.COMPLETED
        )
        return money_sum(refund.refund_amount for refund in refunds)

    def create(
        self,
        *,
        source_type: RefundSourceType,
        customer_id: UUID,
        refund_amount: Decimal,
        refund_method: str,
        refund_date: date,
        reason: str,
        requested_by: str,
        credit_id: UUID | None = None,
        payment_record_id: UUID | None = None,
        reference_number: str | None = None,
    ) -> Refund:
        refund = Refund(
            source_type=source_type.value,
            credit_id=credit_id,
            payment_record_id=payment_record_id,
            customer_id=customer_id,
            refund_amount=money(refund_amount),
            refund_method=refund_method,
            refund_date=refund_date,
            reference_number=reference_number,
            reason=reason,
            requested_by=requested_by,
            status=RefundStatus.PENDING.value,
        )
        self.db.add(refund)
        self.db.flush()
        return refund

    def mark_completed(
        self, refund: Refund, approved_by: str, reference_number: str | None = None
    ) -> Refund:
        refund.status = RefundStatus.COMPLETED.value  # type: ignore[assignment]
        refund.approved_by = approved_by  # type: ignore[assignment]
        refund.approved_at = utc_now()  # type: ignore[assignment]
        if reference_number is not None:
            refund.reference_number = reference_number  # type: ignore[assignment]
        self.db.flush()
        return refund

    def mark_cancelled(self, refund: Refund) -> Refund:
        refund.status = RefundStatus.CANCELLED.value  # type: ignore[assignment]
        self.db.flush()
        return refund

    def soft_delete(self, refund: Refund, deleted_by: str | None = None) -> Refund:
        refund.lifecycle_state = LifecycleState.DELETED.value  # type: ignore[assignment]
        refund.deleted_at = utc_now()  # type: ignore[assignment]
        refund.deleted_by = deleted_by  # type: ignore[assignment]
        self.db.flush()
        return refund
