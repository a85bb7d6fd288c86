"""Invoice repository for data access.

``apply_payment`` and ``reverse_payment`` are the only places an invoice's
paid amount changes, so every entry point shares one rounding and status rule.
"""

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import ZERO, clamp_balance, is_settled, money
from tiffin_billing.models.invoice import Invoice, InvoicePaymentStatus
from tiffin_billing.models.shared import LifecycleState, utc_now
from tiffin_billing.schemas.invoice import InvoiceCreate


class InvoiceRepository:
    """Repository for Invoice model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        invoice_id: UUID,
        *,
        lifecycle: LifecycleState | None,
        for_update: bool = False,
    ) -> Invoice | None:
        query = self.db.query(Invoice).filter(Invoice.id == invoice_id)
        if lifecycle is not None:
            query = query.filter(Invoice.lifecycle_state == lifecycle.value)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_many(
        self,
        invoice_ids: Iterable[UUID],
        *,
        lifecycle: LifecycleState | None,
        for_update: bool = False,
    ) -> dict[UUID, Invoice]:
        """Load invoices keyed by id; ids that do not resolve are absent."""
        ids = list(dict.fromkeys(invoice_ids))
        if not ids:
            return {}
        query = self.db.query(Invoice).filter(Invoice.id.in_(ids))
        if lifecycle is not None:
            query = query.filter(Invoice.lifecycle_state == lifecycle.value)
        if for_update:
            # Lock in id order so concurrent batches cannot deadlock each other
            query = query.order_by(Invoice.id).with_for_update().populate_existing()
        return {invoice.id: invoice for invoice in query.all()}

    def get_by_customer_id(
        self,
        customer_id: UUID,
        *,
        lifecycle: LifecycleState | None,
        payment_status: InvoicePaymentStatus | None = None,
    ) -> list[Invoice]:
        query = self.db.query(Invoice).filter(Invoice.customer_id == customer_id)
        if lifecycle is not None:
            query = query.filter(Invoice.lifecycle_state == lifecycle.value)
        if payment_status is not None:
            query = query.filter(Invoice.payment_status == payment_status.value)
        return query.order_by(Invoice.created_at.asc()).all()

    def create(self, data: InvoiceCreate) -> Invoice:
        """Create a finalized invoice with nothing paid yet."""
        total = money(data.total_amount)
        invoice = Invoice(
            invoice_number=data.invoice_number,
            customer_id=data.customer_id,
            total_amount=total,
            amount_paid=ZERO,
            balance_due=total,
            payment_status=InvoicePaymentStatus.UNPAID.value,
            due_date=data.due_date,
            notes=data.notes,
        )
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def apply_payment(self, invoice: Invoice, amount: Decimal) -> str:
        """Add ``amount`` to the invoice's paid total and return the new status."""
        amount_paid = money(money(invoice.amount_paid) + money(amount))
        balance = clamp_balance(money(invoice.total_amount) - amount_paid)
        status = (
            InvoicePaymentStatus.PAID.value
            if is_settled(balance)
            else InvoicePaymentStatus.PARTIAL_PAID.value
        )
        invoice.amount_paid = amount_paid  # type: ignore[assignment]
        invoice.balance_due = balance  # type: ignore[assignment]
        invoice.payment_status = status  # type: ignore[assignment]
        self.db.flush()
        return status

    def reverse_payment(self, invoice: Invoice, amount: Decimal) -> str:
        """Take ``amount`` back off the invoice's paid total and return the new status."""
        amount_paid = clamp_balance(money(invoice.amount_paid) - money(amount))
        balance = clamp_balance(money(invoice.total_amount) - amount_paid)
        if is_settled(amount_paid):
            status = InvoicePaymentStatus.UNPAID.value
        elif is_settled(balance):
            status = InvoicePaymentStatus.PAID.value
        else:
            status = InvoicePaymentStatus.PARTIAL_PAID.value
        invoice.amount_paid = amount_paid  # type: ignore[assignment]
        invoice.balance_due = balance  # type: ignore[assignment]
        invoice.payment_status = status  # type: ignore[assignment]
        self.db.flush()
        return status

    def soft_delete(self, invoice: Invoice) -> Invoice:
        invoice.lifecycle_state = LifecycleState.DELETED.value  # type: ignore[assignment]
        invoice.deleted_at = utc_now()  # type: ignore[assignment]
        self.db.flush()
        return invoice
