"""InvoicePayment model: link written by the single-invoice payment path."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import UUIDType, generate_uuid, utc_now


class InvoicePayment(Base):
    __tablename__ = "invoice_payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    payment_record_id = Column(
        UUIDType, ForeignKey("payment_records.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    amount_applied = Column(Numeric(12, 2), nullable=False)
    applied_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
