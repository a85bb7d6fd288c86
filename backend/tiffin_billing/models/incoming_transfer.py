"""Bank transfers picked up by the mailbox scanner."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import UUIDType, generate_uuid, utc_now


class TransferStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    ALLOCATED = "allocated"


class IncomingTransfer(Base):
    __tablename__ = "incoming_transfers"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    reference = Column(String(255), unique=True, nullable=False, index=True)
    sender_name = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    status = Column(String(20), nullable=False, default=TransferStatus.PENDING.value)
    received_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
