"""PaymentAllocation model: one portion of a payment applied to one invoice."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import LifecycleState, UUIDType, generate_uuid, utc_now


class PaymentAllocation(Base):
    """Immutable record of a distribution event; only soft-deleted on reversal."""

    __tablename__ = "payment_allocations"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    payment_record_id = Column(
        UUIDType, ForeignKey("payment_records.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    order_index = Column(Integer, nullable=False)
    allocated_amount = Column(Numeric(12, 2), nullable=False)
    invoice_balance_before = Column(Numeric(12, 2), nullable=False)
    invoice_balance_after = Column(Numeric(12, 2), nullable=False)
    resulting_status = Column(String(20), nullable=False)
    created_by = Column(String(255), nullable=True)

    lifecycle_state = Column(String(20), nullable=False, default=LifecycleState.ACTIVE.value)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_payment_allocations_payment_order", "payment_record_id", "order_index"),
    )
