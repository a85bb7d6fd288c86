"""Invoice payment link repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.models.invoice_payment import InvoicePayment


class InvoicePaymentRepository:
    """Repository for InvoicePayment model."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        invoice_id: UUID,
        payment_record_id: UUID,
        amount_applied: Decimal,
        applied_by: str | None = None,
    ) -> InvoicePayment:
        link = InvoicePayment(
            invoice_id=invoice_id,
            payment_record_id=payment_record_id,
            amount_applied=amount_applied,
            applied_by=applied_by,
        )
        self.db.add(link)
        self.db.flush()
        return link

    def get_by_invoice_id(self, invoice_id: UUID) -> list[InvoicePayment]:
        return (
            self.db.query(InvoicePayment)
            .filter(InvoicePayment.invoice_id == invoice_id)
            .order_by(InvoicePayment.created_at.asc())
            .all()
        )
