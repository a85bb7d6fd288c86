"""PaymentRecord model: money received from a customer."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import LifecycleState, UUIDType, generate_uuid, utc_now


class AllocationStatus(str, Enum):
    UNALLOCATED = "unallocated"
    PARTIAL = "partial"
    FULLY_ALLOCATED = "fully_allocated"
    HAS_EXCESS = "has_excess"


class PaymentSource(str, Enum):
    CASH = "cash"
    EXTERNAL_TRANSFER = "external_transfer"


class PaymentRecord(Base):
    """A received payment and how much of it has been distributed.

    Once allocated, ``total_allocated + excess_amount == amount``.
    """

    __tablename__ = "payment_records"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    source = Column(String(20), nullable=False, default=PaymentSource.CASH.value)
    transfer_id = Column(
        UUIDType, ForeignKey("incoming_transfers.id", ondelete="RESTRICT"), nullable=True
    )
    payer_name = Column(String(255), nullable=True)
    payment_date = Column(Date, nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    total_allocated = Column(Numeric(12, 2), nullable=False, default=0)
    excess_amount = Column(Numeric(12, 2), nullable=False, default=0)
    allocation_status = Column(
        String(20), nullable=False, default=AllocationStatus.UNALLOCATED.value, index=True
    )

    notes = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)

    lifecycle_state = Column(String(20), nullable=False, default=LifecycleState.ACTIVE.value)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(255), nullable=True)
    delete_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
