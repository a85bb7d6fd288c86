"""Order rows whose payment status follows the invoice they were billed on."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import UUIDType, generate_uuid, utc_now


class OrderPaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL_PAID = "partial_paid"
    PAID = "paid"


class CustomerOrder(Base):
    __tablename__ = "customer_orders"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True
    )
    order_total = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default=OrderPaymentStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
