"""Tagged commands for the ledger's exposed operations.

Callers build one of the command dataclasses below and hand it to
``BillingLedger.execute``, which routes it to the owning engine.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.models.refund import Refund, RefundMethod, RefundSourceType
from tiffin_billing.schemas.refund import RefundCreate
from tiffin_billing.services.allocation_service import (
    AllocationResult,
    AllocationService,
    AllocationTarget,
)
from tiffin_billing.services.collaborators import NotificationSink, OrderStatusSync, TransferGateway
from tiffin_billing.services.credit_application_service import (
    ApplyCreditResult,
    CreditApplicationService,
    CreditRequest,
)
from tiffin_billing.services.credit_ledger import CreditBalance, CreditLedger
from tiffin_billing.services.invoice_payment_service import (
    InvoicePaymentResult,
    InvoicePaymentService,
)
from tiffin_billing.services.refund_service import RefundService


@dataclass(frozen=True)
class AllocatePayment:
    payment_id: UUID
    targets: tuple[AllocationTarget, ...]
    hold_excess: bool = False
    allocated_by: str | None = None


@dataclass(frozen=True)
class ApplyCredit:
    customer_id: UUID
    allocations: tuple[CreditRequest, ...]


@dataclass(frozen=True)
class CreateRefund:
    source_type: RefundSourceType
    customer_id: UUID
    refund_amount: Decimal
    refund_method: RefundMethod
    reason: str
    requested_by: str
    credit_id: UUID | None = None
    payment_record_id: UUID | None = None
    refund_date: date = field(default_factory=date.today)
    reference_number: str | None = None


@dataclass(frozen=True)
class ApproveRefund:
    refund_id: UUID
    approved_by: str
    reference_number: str | None = None


@dataclass(frozen=True)
class CompleteRefund:
    refund_id: UUID
    approved_by: str
    reference_number: str | None = None


@dataclass(frozen=True)
class CancelRefund:
    refund_id: UUID


@dataclass(frozen=True)
class DeleteRefund:
    refund_id: UUID
    deleted_by: str | None = None


@dataclass(frozen=True)
class PayInvoice:
    invoice_id: UUID
    payment_record_id: UUID
    amount: Decimal
    applied_by: str | None = None


@dataclass(frozen=True)
class GetCustomerCreditBalance:
    customer_id: UUID


LedgerCommand = (
    AllocatePayment
    | ApplyCredit
    | CreateRefund
    | ApproveRefund
    | CompleteRefund
    | CancelRefund
    | DeleteRefund
    | PayInvoice
    | GetCustomerCreditBalance
)

LedgerResult = (
    AllocationResult | ApplyCreditResult | Refund | InvoicePaymentResult | CreditBalance | None
)


class BillingLedger:
    """Single entry point for the ledger operations.

    Collaborators passed here are shared by every engine the ledger builds.
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
        self.notifications = notifications
        self.order_sync = order_sync
        self.transfers = transfers

    def execute(self, command: LedgerCommand) -> LedgerResult:
        match command:
            case AllocatePayment():
                return self._allocations().allocate_payment(
                    command.payment_id,
                    list(command.targets),
                    hold_excess=command.hold_excess,
                    allocated_by=command.allocated_by,
                )
            case ApplyCredit():
                return CreditApplicationService(
                    self.db, order_sync=self.order_sync
                ).apply_credit(command.customer_id, list(command.allocations))
            case CreateRefund():
                return self._refunds().create_refund(
                    RefundCreate(
                        source_type=command.source_type,
                        customer_id=command.customer_id,
                        credit_id=command.credit_id,
                        payment_record_id=command.payment_record_id,
                        refund_amount=command.refund_amount,
                        refund_method=command.refund_method,
                        refund_date=command.refund_date,
                        reference_number=command.reference_number,
                        reason=command.reason,
                        requested_by=command.requested_by,
                    )
                )
            case ApproveRefund():
                return self._refunds().approve_refund(
                    command.refund_id, command.approved_by, command.reference_number
                )
            case CompleteRefund():
                return self._refunds().complete_refund(
                    command.refund_id, command.approved_by, command.reference_number
                )
            case CancelRefund():
                return self._refunds().cancel_refund(command.refund_id)
            case DeleteRefund():
                self._refunds().delete_refund(command.refund_id, command.deleted_by)
                return None
            case PayInvoice():
                return InvoicePaymentService(self.db, order_sync=self.order_sync).pay_invoice(
                    command.invoice_id,
                    command.payment_record_id,
                    command.amount,
                    command.applied_by,
                )
            case GetCustomerCreditBalance():
                return CreditLedger(self.db).customer_balance(command.customer_id)
            case _:
                raise TypeError(f"Unsupported ledger command: {type(command).__name__}")

    def _allocations(self) -> AllocationService:
        return AllocationService(
            self.db,
            notifications=self.notifications,
            order_sync=self.order_sync,
            transfers=self.transfers,
        )

    def _refunds(self) -> RefundService:
        return RefundService(self.db, notifications=self.notifications)
