"""Credit model: reusable stored value per customer."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import LifecycleState, UUIDType, generate_uuid, utc_now


class CreditStatus(str, Enum):
    AVAILABLE = "available"
    USED = "used"
    REFUNDED = "refunded"
    EXPIRED = "expired"


class Credit(Base):
    """Stored value created from an overpayment or a manual deposit.

    ``current_balance == original_amount - sum(usages) - sum(completed refunds)``.
    Credits are drawn oldest ``created_at`` first.
    """

    __tablename__ = "customer_credits"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    source_payment_id = Column(
        UUIDType, ForeignKey("payment_records.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    original_amount = Column(Numeric(12, 2), nullable=False)
    current_balance = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=CreditStatus.AVAILABLE.value, index=True)
    notes = Column(Text, nullable=True)

    lifecycle_state = Column(String(20), nullable=False, default=LifecycleState.ACTIVE.value)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Set in Python so FIFO ordering keeps sub-second precision
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
