"""Customer order repository, used for payment status sync."""

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import money
from tiffin_billing.models.customer_order import CustomerOrder, OrderPaymentStatus


class CustomerOrderRepository:
    """Repository for CustomerOrder model."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        customer_id: UUID,
        order_total: Decimal,
        invoice_id: UUID | None = None,
    ) -> CustomerOrder:
        order = CustomerOrder(
            customer_id=customer_id,
            invoice_id=invoice_id,
            order_total=money(order_total),
            payment_status=OrderPaymentStatus.PENDING.value,
        )
        self.db.add(order)
        self.db.flush()
        return order

    def get_by_invoice_ids(self, invoice_ids: Sequence[UUID]) -> list[CustomerOrder]:
        if not invoice_ids:
            return []
        return (
            self.db.query(CustomerOrder)
            .filter(CustomerOrder.invoice_id.in_(list(invoice_ids)))
            .all()
        )

    def set_payment_status_for_invoices(
        self, invoice_ids: Sequence[UUID], status: OrderPaymentStatus
    ) -> int:
        """Bulk update every order billed on the given invoices."""
        if not invoice_ids:
            return 0
        count = (
            self.db.query(CustomerOrder)
            .filter(CustomerOrder.invoice_id.in_(list(invoice_ids)))
            .update({"payment_status": status.value}, synchronize_session="fetch")
        )
        return int(count)
