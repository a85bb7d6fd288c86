"""Keeps order payment statuses in step with the invoices that bill them."""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.models.customer_order import OrderPaymentStatus
from tiffin_billing.models.invoice import Invoice, InvoicePaymentStatus
from tiffin_billing.repositories.customer_order_repository import CustomerOrderRepository
from tiffin_billing.services.collaborators import OrderStatusSync

ORDER_STATUS_FOR_INVOICE = {
    InvoicePaymentStatus.UNPAID.value: OrderPaymentStatus.PENDING,
    InvoicePaymentStatus.PARTIAL_PAID.value: OrderPaymentStatus.PARTIAL_PAID,
    InvoicePaymentStatus.PAID.value: OrderPaymentStatus.PAID,
}


class SqlOrderStatusSync(OrderStatusSync):
    def __init__(self, db: Session):
        self.repo = CustomerOrderRepository(db)

    def set_payment_status(self, invoice_ids: Sequence[UUID], status: OrderPaymentStatus) -> int:
        return self.repo.set_payment_status_for_invoices(invoice_ids, status)


def sync_invoice_orders(sync: OrderStatusSync, invoices: Iterable[Invoice]) -> None:
    """Issue one ``set_payment_status`` call per resulting invoice status."""
    groups: dict[str, list[UUID]] = defaultdict(list)
    for invoice in invoices:
        if invoice.id not in groups[str(invoice.payment_status)]:
            groups[str(invoice.payment_status)].append(invoice.id)  # type: ignore[arg-type]
    for invoice_status, invoice_ids in groups.items():
        sync.set_payment_status(invoice_ids, ORDER_STATUS_FOR_INVOICE[invoice_status])
