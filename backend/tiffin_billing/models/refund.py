"""Refund model: money issued back to a customer."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import LifecycleState, UUIDType, generate_uuid, utc_now


class RefundSourceType(str, Enum):
    CREDIT = "credit"
    PAYMENT = "payment"


class RefundStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RefundMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    OTHER = "other"


class Refund(Base):
    """Refund request. ``pending`` moves to ``completed`` or ``cancelled`` and stops there."""

    __tablename__ = "refunds"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    source_type = Column(String(20), nullable=False)
    credit_id = Column(
        UUIDType, ForeignKey("customer_credits.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    payment_record_id = Column(
        UUIDType, ForeignKey("payment_records.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    refund_amount = Column(Numeric(12, 2), nullable=False)
    refund_method = Column(String(20), nullable=False)
    refund_date = Column(Date, nullable=False)
    reference_number = Column(String(255), nullable=True)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=RefundStatus.PENDING.value, index=True)

    requested_by = Column(String(255), nullable=False)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    lifecycle_state = Column(String(20), nullable=False, default=LifecycleState.ACTIVE.value)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
