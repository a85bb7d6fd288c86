"""Credit application engine: pays invoices out of a customer's credit pool."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import (
    CrossTenantError,
    InsufficientCreditError,
    NoEligibleInvoicesError,
    NotFoundError,
    ValidationError,
)
from tiffin_billing.core.money import ZERO, money, money_sum
from tiffin_billing.models.invoice import PAYABLE_STATUSES, Invoice
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.customer_repository import CustomerRepository
from tiffin_billing.repositories.invoice_repository import InvoiceRepository
from tiffin_billing.services.collaborators import OrderStatusSync
from tiffin_billing.services.credit_ledger import CreditDraw, CreditLedger
from tiffin_billing.services.order_sync_service import SqlOrderStatusSync, sync_invoice_orders

logger = logging.getLogger(__name__)


@dataclass
class CreditRequest:
    invoice_id: UUID
    amount: Decimal


@dataclass
class AppliedCredit:
    invoice_id: UUID
    amount_applied: Decimal
    balance_due: Decimal
    resulting_status: str
    draws: list[CreditDraw] = field(default_factory=list)


@dataclass
class ApplyCreditResult:
    customer_id: UUID
    applications: list[AppliedCredit]
    total_applied: Decimal
    remaining_credit: Decimal


class CreditApplicationService:
    """Apply existing credit to invoices the caller picks.

    Unlike payment allocation, an invoice owned by another customer aborts the
    whole batch. Invoices that are unknown or already paid are left alone.
    """

    def __init__(self, db: Session, *, order_sync: OrderStatusSync | None = None):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.credit_ledger = CreditLedger(db)
        self.order_sync = order_sync or SqlOrderStatusSync(db)

    def apply_credit(
        self, customer_id: UUID, allocations: list[CreditRequest]
    ) -> ApplyCreditResult:
        """Apply credit to each requested invoice, in order, drawing oldest credit first.

        Raises:
            ValidationError: the requested total is not positive.
            InsufficientCreditError: the pool cannot cover the requested total.
            CrossTenantError: a requested invoice belongs to someone else.
            NoEligibleInvoicesError: none of the invoices can take a payment.
        """
        requested_total = money_sum(request.amount for request in allocations)
        if requested_total <= ZERO:
            raise ValidationError("Total credit amount must be greater than 0")

        with atomic(self.db):
            if self.customer_repo.get_by_id(customer_id, lifecycle=LifecycleState.ACTIVE) is None:
                raise NotFoundError("Customer", customer_id)

            pool = self.credit_ledger.available_pool(customer_id, for_update=True)
            available = money_sum(credit.current_balance for credit in pool)
            if available < requested_total:
                raise InsufficientCreditError(available, requested_total)

            found = self.invoice_repo.get_many(
                (request.invoice_id for request in allocations),
                lifecycle=LifecycleState.ACTIVE,
                for_update=True,
            )
            for invoice in found.values():
                if invoice.customer_id != customer_id:
                    raise CrossTenantError(
                        "Invoice", invoice.id, customer_id  # type: ignore[arg-type]
                    )
            payable = {
                invoice_id: invoice
                for invoice_id, invoice in found.items()
                if invoice.payment_status in PAYABLE_STATUSES
            }
            if not payable:
                raise NoEligibleInvoicesError([request.invoice_id for request in allocations])

            applications: list[AppliedCredit] = []
            touched: dict[UUID, Invoice] = {}
            for request in allocations:
                invoice = payable.get(request.invoice_id)
                if invoice is None:
                    logger.warning(
                        "Skipping invoice %s for customer %s credit: not payable",
                        request.invoice_id,
                        customer_id,
                    )
                    continue
                to_apply = money(min(money(request.amount), money(invoice.balance_due)))
                if to_apply <= ZERO:
                    continue
                draws = self.credit_ledger.draw_fifo(
                    pool, to_apply, invoice.id  # type: ignore[arg-type]
                )
                resulting_status = self.invoice_repo.apply_payment(invoice, to_apply)
                touched[invoice.id] = invoice  # type: ignore[index]
                applications.append(
                    AppliedCredit(
                        invoice_id=invoice.id,  # type: ignore[arg-type]
                        amount_applied=to_apply,
                        balance_due=money(invoice.balance_due),
                        resulting_status=resulting_status,
                        draws=draws,
                    )
                )

            sync_invoice_orders(self.order_sync, touched.values())
            total_applied = money_sum(application.amount_applied for application in applications)

        logger.info(
            "Applied %s credit for customer %s to %d invoice(s)",
            total_applied,
            customer_id,
            len(applications),
        )
        return ApplyCreditResult(
            customer_id=customer_id,
            applications=applications,
            total_applied=total_applied,
            remaining_credit=money(available - total_applied),
        )
