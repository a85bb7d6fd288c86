"""Notification model for the staff dashboard."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import UUIDType, generate_uuid, utc_now


class NotificationType(str, Enum):
    EXCESS_PAYMENT = "excess_payment"
    REFUND_REQUEST = "refund_request"
    REFUND_COMPLETED = "refund_completed"
    TRANSFER_RECEIVED = "transfer_received"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Notification(Base):
    """Notification model - stores in-app notifications for staff users."""

    __tablename__ = "notifications"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    notification_type = Column(String(50), nullable=False, index=True)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=False)
    priority = Column(String(10), nullable=False, default=NotificationPriority.MEDIUM.value)
    action_reference = Column(String(255), nullable=True, index=True)
    is_dismissed = Column(Boolean, nullable=False, default=False, index=True)
    dismissed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
