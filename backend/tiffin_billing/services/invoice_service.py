"""Invoice lookups and the changes allowed after billing."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import NotFoundError, StateConflictError, ValidationError
from tiffin_billing.models.customer_order import OrderPaymentStatus
from tiffin_billing.models.invoice import Invoice, InvoicePaymentStatus
from tiffin_billing.models.invoice_payment import InvoicePayment
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.credit_usage_repository import CreditUsageRepository
from tiffin_billing.repositories.invoice_payment_repository import InvoicePaymentRepository
from tiffin_billing.repositories.invoice_repository import InvoiceRepository
from tiffin_billing.repositories.payment_allocation_repository import PaymentAllocationRepository
from tiffin_billing.schemas.invoice import InvoiceUpdate
from tiffin_billing.services.collaborators import OrderStatusSync
from tiffin_billing.services.order_sync_service import SqlOrderStatusSync

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, db: Session, *, order_sync: OrderStatusSync | None = None):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.allocation_repo = PaymentAllocationRepository(db)
        self.link_repo = InvoicePaymentRepository(db)
        self.usage_repo = CreditUsageRepository(db)
        self.order_sync = order_sync or SqlOrderStatusSync(db)

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id, lifecycle=LifecycleState.ACTIVE)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def get_invoice_payments(self, invoice_id: UUID) -> list[InvoicePayment]:
        self.get_invoice(invoice_id)
        return self.link_repo.get_by_invoice_id(invoice_id)

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        """Only notes and due date can change once an invoice exists."""
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No valid fields to update")
        with atomic(self.db):
            invoice = self.get_invoice(invoice_id)
            for key, value in update_data.items():
                setattr(invoice, key, value)
        return invoice

    def delete_invoice(self, invoice_id: UUID) -> None:
        """Delete an unpaid invoice and put its orders back to pending."""
        with atomic(self.db):
            invoice = self.invoice_repo.get_by_id(
                invoice_id, lifecycle=LifecycleState.ACTIVE, for_update=True
            )
            if invoice is None:
                raise NotFoundError("Invoice", invoice_id)
            has_payments = (
                invoice.payment_status != InvoicePaymentStatus.UNPAID.value
                or self.allocation_repo.get_by_invoice_id(
                    invoice_id, lifecycle=LifecycleState.ACTIVE
                )
                or self.link_repo.get_by_invoice_id(invoice_id)
                or self.usage_repo.get_by_invoice_id(invoice_id)
            )
            if has_payments:
                raise StateConflictError("Cannot delete an invoice that has received payments")
            self.invoice_repo.soft_delete(invoice)
            self.order_sync.set_payment_status([invoice_id], OrderPaymentStatus.PENDING)

        logger.info("Deleted invoice %s", invoice.invoice_number)
