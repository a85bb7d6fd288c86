"""Single-invoice payment entry point."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import (
    CrossTenantError,
    ExceedsBalanceError,
    NotFoundError,
    ValidationError,
)
from tiffin_billing.core.money import ZERO, money
from tiffin_billing.models.customer_order import OrderPaymentStatus
from tiffin_billing.models.invoice import InvoicePaymentStatus
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.invoice_payment_repository import InvoicePaymentRepository
from tiffin_billing.repositories.invoice_repository import InvoiceRepository
from tiffin_billing.repositories.payment_record_repository import PaymentRecordRepository
from tiffin_billing.services.collaborators import OrderStatusSync
from tiffin_billing.services.order_sync_service import SqlOrderStatusSync

logger = logging.getLogger(__name__)


@dataclass
class InvoicePaymentResult:
    invoice_id: UUID
    amount_applied: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_status: str


class InvoicePaymentService:
    """Record a payment against exactly one invoice.

    Shares ``InvoiceRepository.apply_payment`` with the allocation engine, so
    both paths round and derive status the same way.
    """

    def __init__(self, db: Session, *, order_sync: OrderStatusSync | None = None):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRecordRepository(db)
        self.link_repo = InvoicePaymentRepository(db)
        self.order_sync = order_sync or SqlOrderStatusSync(db)

    def pay_invoice(
        self,
        invoice_id: UUID,
        payment_record_id: UUID,
        amount: Decimal,
        applied_by: str | None = None,
    ) -> InvoicePaymentResult:
        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError("Payment amount must be positive")

        with atomic(self.db):
            invoice = self.invoice_repo.get_by_id(
                invoice_id, lifecycle=LifecycleState.ACTIVE, for_update=True
            )
            if invoice is None:
                raise NotFoundError("Invoice", invoice_id)
            payment = self.payment_repo.get_by_id(
                payment_record_id, lifecycle=LifecycleState.ACTIVE
            )
            if payment is None:
                raise NotFoundError("PaymentRecord", payment_record_id)
            if payment.customer_id != invoice.customer_id:
                raise CrossTenantError(
                    "PaymentRecord",
                    payment_record_id,
                    invoice.customer_id,  # type: ignore[arg-type]
                )

            balance_due = money(invoice.balance_due)
            if amount > balance_due:
                raise ExceedsBalanceError(amount, balance_due)

            self.link_repo.create(
                invoice_id=invoice_id,
                payment_record_id=payment_record_id,
                amount_applied=amount,
                applied_by=applied_by,
            )
            status = self.invoice_repo.apply_payment(invoice, amount)
            if status == InvoicePaymentStatus.PAID.value:
                self.order_sync.set_payment_status([invoice_id], OrderPaymentStatus.PAID)

        logger.info(
            "Recorded %s against invoice %s from payment %s (%s)",
            amount,
            invoice_id,
            payment_record_id,
            status,
        )
        return InvoicePaymentResult(
            invoice_id=invoice_id,
            amount_applied=amount,
            amount_paid=money(invoice.amount_paid),
            balance_due=money(invoice.balance_due),
            payment_status=status,
        )
