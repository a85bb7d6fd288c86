"""CreditUsage model: one FIFO draw from a credit against an invoice."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric

from tiffin_billing.core.database import Base
from tiffin_billing.models.shared import UUIDType, generate_uuid, utc_now


class CreditUsage(Base):
    """Append-only; never updated or deleted."""

    __tablename__ = "customer_credit_usages"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    credit_id = Column(
        UUIDType, ForeignKey("customer_credits.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    amount_used = Column(Numeric(12, 2), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
