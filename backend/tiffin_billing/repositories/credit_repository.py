"""Credit repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import ZERO, is_settled, money
from tiffin_billing.models.credit import Credit, CreditStatus
from tiffin_billing.models.shared import LifecycleState, utc_now


class CreditRepository:
    """Repository for Credit model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        credit_id: UUID,
        *,
        lifecycle: LifecycleState | None,
        for_update: bool = False,
    ) -> Credit | None:
        query = self.db.query(Credit).filter(Credit.id == credit_id)
        if lifecycle is not None:
            query = query.filter(Credit.lifecycle_state == lifecycle.value)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_all(
        self,
        *,
        lifecycle: LifecycleState | None,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        status: CreditStatus | None = None,
    ) -> list[Credit]:
        query = self.db.query(Credit)
        if lifecycle is not None:
            query = query.filter(Credit.lifecycle_state == lifecycle.value)
        if customer_id:
            query = query.filter(Credit.customer_id == customer_id)
        if status:
            query = query.filter(Credit.status == status.value)
        return query.order_by(Credit.created_at.desc()).offset(skip).limit(limit).all()

    def get_available_by_customer_id(
        self, customer_id: UUID, *, for_update: bool = False
    ) -> list[Credit]:
        """The FIFO pool: active, available credits with a balance, oldest first."""
        query = (
            self.db.query(Credit)
            .filter(
                Credit.customer_id == customer_id,
                Credit.lifecycle_state == LifecycleState.ACTIVE.value,
                Credit.status == CreditStatus.AVAILABLE.value,
                Credit.current_balance > 0,
            )
            .order_by(Credit.created_at.asc(), Credit.id.asc())
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.all()

    def get_by_source_payment_id(
        self, payment_record_id: UUID, *, lifecycle: LifecycleState | None
    ) -> list[Credit]:
        query = self.db.query(Credit).filter(Credit.source_payment_id == payment_record_id)
        if lifecycle is not None:
            query = query.filter(Credit.lifecycle_state == lifecycle.value)
        return query.order_by(Credit.created_at.asc()).all()

    def create(
        self,
        *,
        customer_id: UUID,
        amount: Decimal,
        source_payment_id: UUID | None = None,
        notes: str | None = None,
    ) -> Credit:
        credit = Credit(
            customer_id=customer_id,
            source_payment_id=source_payment_id,
            original_amount=money(amount),
            current_balance=money(amount),
            status=CreditStatus.AVAILABLE.value,
            notes=notes,
        )
        self.db.add(credit)
        self.db.flush()
        return credit

    def deduct(self, credit: Credit, amount: Decimal, exhausted_status: CreditStatus) -> Credit:
        """Lower the balance; a balance at or below a tenth of a cent is exhausted."""
        balance = money(money(credit.current_balance) - money(amount))
        credit.current_balance = balance if balance > ZERO else ZERO  # type: ignore[assignment]
        if is_settled(balance):
            credit.status = exhausted_status.value  # type: ignore[assignment]
        self.db.flush()
        return credit

    def soft_delete(self, credit: Credit) -> Credit:
        credit.lifecycle_state = LifecycleState.DELETED.value  # type: ignore[assignment]
        credit.deleted_at = utc_now()  # type: ignore[assignment]
        self.db.flush()
        return credit
