"""Credit ledger: per-customer stored value.

Every balance change on a credit goes through ``consume`` or ``refund_deduct``
so that, for every credit,

    current_balance == original_amount - sum(usages) - sum(completed refunds)

The ledger does not open transactions of its own (apart from ``deposit``);
engines call it inside theirs.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import (
    InsufficientCreditBalanceError,
    InsufficientCreditError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from tiffin_billing.core.money import ZERO, money, money_sum
from tiffin_billing.models.credit import Credit, CreditStatus
from tiffin_billing.models.credit_usage import CreditUsage
from tiffin_billing.models.shared import LifecycleState
from tiffin_billing.repositories.credit_repository import CreditRepository
from tiffin_billing.repositories.credit_usage_repository import CreditUsageRepository
from tiffin_billing.repositories.customer_repository import CustomerRepository
from tiffin_billing.repositories.refund_repository import RefundRepository
from tiffin_billing.schemas.credit import CreditCreate

logger = logging.getLogger(__name__)


@dataclass
class CreditDraw:
    """One slice of a FIFO draw taken from a single credit."""

    credit_id: UUID
    amount: Decimal


@dataclass
class CreditBalance:
    customer_id: UUID
    total_available: Decimal
    credits: list[Credit] = field(default_factory=list)


class CreditLedger:
    """Service for credit business logic."""

    def __init__(self, db: Session):
        self.db = db
        self.credit_repo = CreditRepository(db)
        self.usage_repo = CreditUsageRepository(db)
        self.refund_repo = RefundRepository(db)
        self.customer_repo = CustomerRepository(db)

    def create(
        self,
        customer_id: UUID,
        amount: Decimal,
        source_payment_id: UUID | None = None,
        notes: str | None = None,
    ) -> Credit:
        """Create an available credit with its full amount as balance."""
        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError(f"Credit amount must be positive, got {amount:.2f}")
        return self.credit_repo.create(
            customer_id=customer_id,
            amount=amount,
            source_payment_id=source_payment_id,
            notes=notes,
        )

    def consume(self, credit_id: UUID, amount: Decimal, invoice_id: UUID) -> CreditUsage:
        """Spend ``amount`` of a credit on an invoice and record the usage row."""
        credit, amount = self._lock_for_deduction(credit_id, amount)
        usage = self.usage_repo.create(
            credit_id=credit.id,  # type: ignore[arg-type]
            invoice_id=invoice_id,
            amount_used=amount,
        )
        self.credit_repo.deduct(credit, amount, CreditStatus.USED)
        return usage

    def refund_deduct(self, credit_id: UUID, amount: Decimal) -> Credit:
        """Pay ``amount`` of a credit back out; an emptied credit ends ``refunded``."""
        credit, amount = self._lock_for_deduction(credit_id, amount)
        return self.credit_repo.deduct(credit, amount, CreditStatus.REFUNDED)

    def available_pool(self, customer_id: UUID, *, for_update: bool = False) -> list[Credit]:
        return self.credit_repo.get_available_by_customer_id(customer_id, for_update=for_update)

    def draw_fifo(self, pool: list[Credit], amount: Decimal, invoice_id: UUID) -> list[CreditDraw]:
        """Draw ``amount`` from ``pool`` oldest credit first.

        ``pool`` must come from ``available_pool(..., for_update=True)`` in the
        current transaction. Each slice is rounded on its own so slices always
        add up to ``amount`` exactly.
        """
        requested = money(amount)
        available = money_sum(
            credit.current_balance
            for credit in pool
            if credit.status == CreditStatus.AVAILABLE.value
        )
        if available < requested:
            raise InsufficientCreditError(available, requested)

        remaining = requested
        draws: list[CreditDraw] = []
        for credit in pool:
            if remaining <= ZERO:
                break
            balance = money(credit.current_balance)
            if credit.status != CreditStatus.AVAILABLE.value or balance <= ZERO:
                continue
            draw = money(min(remaining, balance))
            self.consume(credit.id, draw, invoice_id)  # type: ignore[arg-type]
            draws.append(CreditDraw(credit_id=credit.id, amount=draw))  # type: ignore[arg-type]
            remaining = money(remaining - draw)
        return draws

    def customer_balance(self, customer_id: UUID) -> CreditBalance:
        if self.customer_repo.get_by_id(customer_id, lifecycle=LifecycleState.ACTIVE) is None:
            raise NotFoundError("Customer", customer_id)
        credits = self.available_pool(customer_id)
        return CreditBalance(
            customer_id=customer_id,
            total_available=money_sum(credit.current_balance for credit in credits),
            credits=credits,
        )

    def expected_balance(self, credit: Credit) -> Decimal:
        """Balance recomputed from the usage and refund history, for reconciliation."""
        used = self.usage_repo.get_total_used(credit.id)  # type: ignore[arg-type]
        refunded = self.refund_repo.get_total_completed_for_credit(
            credit.id  # type: ignore[arg-type]
        )
        return money(money(credit.original_amount) - used - refunded)

    def deposit(self, data: CreditCreate) -> Credit:
        """Staff deposit: a credit that did not come from a payment."""
        with atomic(self.db):
            customer = self.customer_repo.get_by_id(
                data.customer_id, lifecycle=LifecycleState.ACTIVE
            )
            if customer is None:
                raise NotFoundError("Customer", data.customer_id)
            credit = self.create(
                data.customer_id, data.amount, notes=data.notes or "Manual deposit"
            )
        logger.info(
            "Deposited credit %s of %s for customer %s",
            credit.id,
            credit.original_amount,
            data.customer_id,
        )
        return credit

    def get_credit(self, credit_id: UUID) -> Credit:
        credit = self.credit_repo.get_by_id(credit_id, lifecycle=LifecycleState.ACTIVE)
        if credit is None:
            raise NotFoundError("Credit", credit_id)
        return credit

    def list_credits(
        self,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        status: CreditStatus | None = None,
    ) -> list[Credit]:
        return self.credit_repo.get_all(
            lifecycle=LifecycleState.ACTIVE,
            skip=skip,
            limit=limit,
            customer_id=customer_id,
            status=status,
        )

    def get_usages(self, credit_id: UUID) -> list[CreditUsage]:
        return self.usage_repo.get_by_credit_id(credit_id)

    def _lock_for_deduction(self, credit_id: UUID, amount: Decimal) -> tuple[Credit, Decimal]:
        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError(f"Deduction must be positive, got {amount:.2f}")
        credit = self.credit_repo.get_by_id(
            credit_id, lifecycle=LifecycleState.ACTIVE, for_update=True
        )
        if credit is None:
            raise NotFoundError("Credit", credit_id)
        if credit.status != CreditStatus.AVAILABLE.value:
            raise StateConflictError(f"Credit {credit_id} is {credit.status}, not available")
        balance = money(credit.current_balance)
        if amount > balance:
            raise InsufficientCreditBalanceError(credit_id, balance, amount)
        return credit, amount
