from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import LifecycleState, UUIDType, generate_uuid, utc_now


class InvoicePaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL_PAID = "partial_paid"
    PAID = "paid"


# Statuses that can still receive money
PAYABLE_STATUSES = (InvoicePaymentStatus.UNPAID.value, InvoicePaymentStatus.PARTIAL_PAID.value)


class Invoice(Base):
    """Finalized bill for a customer.

    ``balance_due`` always equals ``total_amount - amount_paid``; credit applied to
    the invoice is folded into ``amount_paid``.
    """

    __tablename__ = "invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    balance_due = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(
        String(20), nullable=False, default=InvoicePaymentStatus.UNPAID.value, index=True
    )

    due_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    lifecycle_state = Column(String(20), nullable=False, default=LifecycleState.ACTIVE.value)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
