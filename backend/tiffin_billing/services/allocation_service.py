"""Allocation engine: distributes one payment across caller-ordered invoices."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import (
    NoEligibleInvoicesError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from tiffin_billing.core.money import SETTLED_EPSILON, ZERO, money, money_sum
from tiffin_billing.models.credit import CreditStatus
from tiffin_billing.models.invoice import PAYABLE_STATUSES, Invoice
from tiffin_billing.models.notification import NotificationPriority, NotificationType
from tiffin_billing.models.payment_record import AllocationStatus, PaymentRecord
from tiffin_billing.models.refund import RefundStatus
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.credit_repository import CreditRepository
from tiffin_billing.repositories.invoice_repository import InvoiceRepository
from tiffin_billing.repositories.payment_allocation_repository import PaymentAllocationRepository
from tiffin_billing.repositories.payment_record_repository import PaymentRecordRepository
from tiffin_billing.repositories.refund_repository import RefundRepository
from tiffin_billing.services.collaborators import (
    AllocationReverser,
    NotificationSink,
    OrderStatusSync,
    TransferGateway,
)
from tiffin_billing.services.credit_application_service import AppliedCredit
from tiffin_billing.services.credit_ledger import CreditLedger
from tiffin_billing.services.notification_service import guarded_sink
from tiffin_billing.services.order_sync_service import SqlOrderStatusSync, sync_invoice_orders
from tiffin_billing.services.transfer_service import SqlTransferGateway

logger = logging.getLogger(__name__)

SKIP_NOT_FOUND = "not_found"
SKIP_NOT_PAYABLE = "not_payable"
SKIP_CUSTOMER_MISMATCH = "customer_mismatch"
SKIP_NO_BALANCE = "no_balance"


def payment_reference(payment_id: UUID) -> str:
    return f"payment:{payment_id}"


@dataclass
class AllocationTarget:
    """An invoice to pay, with an optional cap and an optional credit top-up."""

    invoice_id: UUID
    amount: Decimal | None = None
    credit_amount: Decimal | None = None


@dataclass
class SkippedInvoice:
    invoice_id: UUID
    reason: str


@dataclass
class AppliedAllocation:
    invoice_id: UUID
    amount_applied: Decimal
    balance_before: Decimal
    balance_after: Decimal
    resulting_status: str


@dataclass
class AllocationResult:
    """Result of allocating a payment."""

    payment_record_id: UUID
    allocations: list[AppliedAllocation]
    total_applied: Decimal
    total_allocated: Decimal
    excess_amount: Decimal
    allocation_status: str
    credit_id: UUID | None = None
    credit_applied: Decimal = ZERO
    credit_applications: list[AppliedCredit] = field(default_factory=list)
    skipped: list[SkippedInvoice] = field(default_factory=list)


class AllocationService:
    """Allocate payments to invoices and turn leftovers into credit.

    A payment can be allocated several times while it still has money left:
    ``remaining`` always starts from ``amount - total_allocated``. Unknown or
    unpayable invoices are skipped, reported in ``AllocationResult.skipped``
    and logged; only a request with no eligible invoice at all is rejected.
    """

    def __init__(
        self,
        db: Session,
        *,
        notifications: NotificationSink | None = None,
        order_sync: OrderStatusSync | None = None,
        transfers: TransferGateway | None = None,
    ):
        self.db = db
        self.payment_repo = PaymentRecordRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.allocation_repo = PaymentAllocationRepository(db)
        self.credit_ledger = CreditLedger(db)
        self.notifications = guarded_sink(db, notifications)
        self.order_sync = order_sync or SqlOrderStatusSync(db)
        self.transfers = transfers or SqlTransferGateway(db)

    def allocate_payment(
        self,
        payment_id: UUID,
        targets: list[AllocationTarget] | list[UUID],
        *,
        hold_excess: bool = False,
        allocated_by: str | None = None,
    ) -> AllocationResult:
        """Allocate a payment across ``targets`` in the order given.

        Args:
            payment_id: The payment record to distribute.
            targets: Invoices to pay, in payment order. Plain ids are accepted.
            hold_excess: Keep any remainder on the payment (status ``partial``)
                instead of converting it into a credit.
            allocated_by: Staff member recorded on each allocation row.

        Returns:
            AllocationResult with the per-invoice allocations, the resulting
            payment totals, the credit created from excess (if any) and the
            invoices that were skipped.
        """
        normalized = [
            target if isinstance(target, AllocationTarget) else AllocationTarget(invoice_id=target)
            for target in targets
        ]
        if not normalized:
            raise ValidationError("At least one invoice is required")

        with atomic(self.db):
            payment = self.payment_repo.get_by_id(
                payment_id, lifecycle=LifecycleState.ACTIVE, for_update=True
            )
            if payment is None:
                raise NotFoundError("PaymentRecord", payment_id)
            if payment.allocation_status == AllocationStatus.FULLY_ALLOCATED.value:
                raise StateConflictError(f"Payment {payment_id} is already fully allocated")
            if payment.allocation_status == AllocationStatus.HAS_EXCESS.value:
                raise StateConflictError(
                    f"Payment {payment_id} excess was already converted to credit"
                )

            amount = money(payment.amount)
            prior_allocated = money(payment.total_allocated)
            remaining = money(amount - prior_allocated)

            invoices = self.invoice_repo.get_many(
                (target.invoice_id for target in normalized),
                lifecycle=LifecycleState.ACTIVE,
                for_update=True,
            )
            eligible, skipped = self._screen_targets(payment, normalized, invoices)
            if not eligible:
                raise NoEligibleInvoicesError([target.invoice_id for target in normalized])

            applied: list[AppliedAllocation] = []
            touched: dict[UUID, Invoice] = {}
            order_index = self.allocation_repo.next_order_index(
                payment.id  # type: ignore[arg-type]
            )
            for target, invoice in eligible:
                if remaining <= ZERO:
                    break
                balance_before = money(invoice.balance_due)
                to_apply = min(remaining, balance_before)
                if target.amount is not None:
                    to_apply = min(to_apply, money(target.amount))
                to_apply = money(to_apply)
                if to_apply <= ZERO:
                    skipped.append(
                        SkippedInvoice(invoice_id=target.invoice_id, reason=SKIP_NO_BALANCE)
                    )
                    logger.warning(
                        "Skipping invoice %s for payment %s: nothing left to pay",
                        target.invoice_id,
                        payment_id,
                    )
                    continue

                resulting_status = self.invoice_repo.apply_payment(invoice, to_apply)
                balance_after = money(invoice.balance_due)
                self.allocation_repo.create(
                    payment_record_id=payment.id,  # type: ignore[arg-type]
                    invoice_id=invoice.id,  # type: ignore[arg-type]
                    customer_id=payment.customer_id,  # type: ignore[arg-type]
                    order_index=order_index,
                    allocated_amount=to_apply,
                    invoice_balance_before=balance_before,
                    invoice_balance_after=balance_after,
                    resulting_status=resulting_status,
                    created_by=allocated_by,
                )
                order_index += 1
                applied.append(
                    AppliedAllocation(
                        invoice_id=invoice.id,  # type: ignore[arg-type]
                        amount_applied=to_apply,
                        balance_before=balance_before,
                        balance_after=balance_after,
                        resulting_status=resulting_status,
                    )
                )
                touched[invoice.id] = invoice  # type: ignore[index]
                remaining = money(remaining - to_apply)

            credit_applications = self._apply_requested_credit(payment, eligible, touched)

            total_applied = money_sum(allocation.amount_applied for allocation in applied)
            total_allocated = money(prior_allocated + total_applied)
            excess = money(amount - total_allocated)

            credit_id = None
            if excess > SETTLED_EPSILON:
                if hold_excess:
                    status = AllocationStatus.PARTIAL
                else:
                    credit = self.credit_ledger.create(
                        payment.customer_id,  # type: ignore[arg-type]
                        excess,
                        source_payment_id=payment.id,  # type: ignore[arg-type]
                        notes="Auto-created from excess payment",
                    )
                    credit_id = credit.id
                    status = AllocationStatus.HAS_EXCESS
            else:
                excess = ZERO
                status = AllocationStatus.FULLY_ALLOCATED

            payment.total_allocated = total_allocated  # type: ignore[assignment]
            payment.excess_amount = excess  # type: ignore[assignment]
            payment.allocation_status = status.value  # type: ignore[assignment]
            self.db.flush()

            if payment.transfer_id is not None:
                self.transfers.mark_allocated(payment.transfer_id)  # type: ignore[arg-type]

            sync_invoice_orders(self.order_sync, touched.values())

            if credit_id is not None:
                self.notifications.notify(
                    notification_type=NotificationType.EXCESS_PAYMENT,
                    customer_id=payment.customer_id,  # type: ignore[arg-type]
                    title=f"Excess Payment: ${excess:.2f}",
                    message=(
                        f"Customer has ${excess:.2f} credit available from payment. "
                        "Consider refund if needed."
                    ),
                    priority=NotificationPriority.MEDIUM,
                    action_reference=f"credit:{credit_id}",
                )
            self.notifications.dismiss(
                notification_type=NotificationType.TRANSFER_RECEIVED,
                customer_id=payment.customer_id,  # type: ignore[arg-type]
                action_reference=payment_reference(payment.id),  # type: ignore[arg-type]
            )

        logger.info(
            "Allocated %s of payment %s to %d invoice(s); excess %s (%s)",
            total_applied,
            payment_id,
            len(applied),
            excess,
            status.value,
        )
        return AllocationResult(
            payment_record_id=payment_id,
            allocations=applied,
            total_applied=total_applied,
            total_allocated=total_allocated,
            excess_amount=excess,
            allocation_status=status.value,
            credit_id=credit_id,  # type: ignore[arg-type]
            credit_applied=money_sum(item.amount_applied for item in credit_applications),
            credit_applications=credit_applications,
            skipped=skipped,
        )

    def _screen_targets(
        self,
        payment: PaymentRecord,
        targets: list[AllocationTarget],
        invoices: dict[UUID, Invoice],
    ) -> tuple[list[tuple[AllocationTarget, Invoice]], list[SkippedInvoice]]:
        eligible: list[tuple[AllocationTarget, Invoice]] = []
        skipped: list[SkippedInvoice] = []
        for target in targets:
            invoice = invoices.get(target.invoice_id)
            if invoice is None:
                reason = SKIP_NOT_FOUND
            elif invoice.customer_id != payment.customer_id:
                reason = SKIP_CUSTOMER_MISMATCH
            elif invoice.payment_status not in PAYABLE_STATUSES:
                reason = SKIP_NOT_PAYABLE
            else:
                eligible.append((target, invoice))
                continue
            skipped.append(SkippedInvoice(invoice_id=target.invoice_id, reason=reason))
            logger.warning(
                "Skipping invoice %s for payment %s: %s", target.invoice_id, payment.id, reason
            )
        return eligible, skipped

    def _apply_requested_credit(
        self,
        payment: PaymentRecord,
        eligible: list[tuple[AllocationTarget, Invoice]],
        touched: dict[UUID, Invoice],
    ) -> list[AppliedCredit]:
        """Top up invoices from the customer's credit after the payment pass."""
        requested = [
            (target, invoice)
            for target, invoice in eligible
            if target.credit_amount is not None and money(target.credit_amount) > ZERO
        ]
        if not requested:
            return []

        pool = self.credit_ledger.available_pool(
            payment.customer_id, for_update=True  # type: ignore[arg-type]
        )
        applications: list[AppliedCredit] = []
        for target, invoice in requested:
            to_apply = money(min(money(target.credit_amount), money(invoice.balance_due)))
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
        return applications


class LedgerAllocationReverser(AllocationReverser):
    """Undo a payment's allocations before the payment record is deleted.

    Restores every invoice the payment paid, soft-deletes its allocation rows and
    retires the credit its excess became. A credit that has already been drawn
    on, refunded or has a refund in progress cannot be retired, so the reversal
    is refused.
    """

    def __init__(self, db: Session, *, order_sync: OrderStatusSync | None = None):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.allocation_repo = PaymentAllocationRepository(db)
        self.credit_repo = CreditRepository(db)
        self.refund_repo = RefundRepository(db)
        self.credit_ledger = CreditLedger(db)
        self.order_sync = order_sync or SqlOrderStatusSync(db)

    def reverse(self, payment: PaymentRecord, *, reversed_by: str | None = None) -> None:
        credits = self.credit_repo.get_by_source_payment_id(
            payment.id, lifecycle=LifecycleState.ACTIVE  # type: ignore[arg-type]
        )
        for credit in credits:
            self._check_retirable(credit.id)  # type: ignore[arg-type]

        refunds = self.refund_repo.get_by_payment_record_id(
            payment.id, lifecycle=LifecycleState.ACTIVE  # type: ignore[arg-type]
        )
        for refund in refunds:
            if refund.status != RefundStatus.CANCELLED.value:
                raise StateConflictError(
                    f"Payment {payment.id} has refund {refund.id} ({refund.status})"
                )

        touched: dict[UUID, Invoice] = {}
        allocations = self.allocation_repo.get_by_payment_id(
            payment.id, lifecycle=LifecycleState.ACTIVE  # type: ignore[arg-type]
        )
        for allocation in allocations:
            invoice = self.invoice_repo.get_by_id(
                allocation.invoice_id,  # type: ignore[arg-type]
                lifecycle=None,
                for_update=True,
            )
            if invoice is not None:
                self.invoice_repo.reverse_payment(invoice, money(allocation.allocated_amount))
                touched[invoice.id] = invoice  # type: ignore[index]
            self.allocation_repo.soft_delete(allocation)

        for credit in credits:
            self.credit_repo.soft_delete(credit)

        payment.total_allocated = ZERO  # type: ignore[assignment]
        payment.excess_amount = ZERO  # type: ignore[assignment]
        payment.allocation_status = AllocationStatus.UNALLOCATED.value  # type: ignore[assignment]
        self.db.flush()

        sync_invoice_orders(self.order_sync, touched.values())
        logger.info(
            "Reversed %d allocation(s) and %d credit(s) of payment %s (by %s)",
            len(allocations),
            len(credits),
            payment.id,
            reversed_by,
        )

    def _check_retirable(self, credit_id: UUID) -> None:
        credit = self.credit_repo.get_by_id(
            credit_id, lifecycle=LifecycleState.ACTIVE, for_update=True
        )
        if credit is None:
            return
        drawn = (
            credit.status != CreditStatus.AVAILABLE.value
            or money(credit.current_balance) != money(credit.original_amount)
            or self.credit_ledger.usage_repo.get_by_credit_id(credit_id)
        )
        if drawn:
            raise StateConflictError(
                f"Credit {credit_id} from this payment has already been used or refunded"
            )
        pending = self.refund_repo.get_by_credit_id(
            credit_id, lifecycle=LifecycleState.ACTIVE, status=RefundStatus.PENDING
        )
        if pending:
            raise StateConflictError(f"Credit {credit_id} has a pending refund")
