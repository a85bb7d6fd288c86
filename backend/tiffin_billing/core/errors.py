"""Typed errors raised by the billing ledger.

Every error carries a machine-readable ``code`` and the amounts or ids that
explain it, so callers catch by type instead of parsing messages.

    BillingError
    +-- ValidationError
    |   +-- NoEligibleInvoicesError
    |   +-- ExceedsBalanceError
    +-- NotFoundError
    +-- StateConflictError
    +-- InsufficientFundsError
    |   +-- InsufficientCreditError
    |   +-- InsufficientCreditBalanceError
    +-- CrossTenantError
    +-- PersistenceError
"""

from decimal import Decimal
from uuid import UUID


class BillingError(Exception):
    """Base class for all ledger errors."""

    code: str = "BILLING_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BillingError):
    """Request is malformed; detected before any write."""

    code: str = "VALIDATION_ERROR"


class NoEligibleInvoicesError(ValidationError):
    code: str = "NO_ELIGIBLE_INVOICES"

    def __init__(self, invoice_ids: list[UUID]):
        self.invoice_ids = invoice_ids
        super().__init__("No valid invoices found for allocation")


class ExceedsBalanceError(ValidationError):
    code: str = "EXCEEDS_BALANCE"

    def __init__(self, amount: Decimal, balance_due: Decimal):
        self.amount = amount
        self.balance_due = balance_due
        super().__init__(f"Payment amount ({amount:.2f}) exceeds balance due ({balance_due:.2f})")


class NotFoundError(BillingError):
    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: UUID):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StateConflictError(BillingError):
    """The entity is in the wrong state for the requested transition."""

    code: str = "STATE_CONFLICT"


class InsufficientFundsError(BillingError):
    code: str = "INSUFFICIENT_FUNDS"

    def __init__(self, message: str, available: Decimal, requested: Decimal):
        self.available = available
        self.requested = requested
        super().__init__(message)


class InsufficientCreditError(InsufficientFundsError):
    """The customer's credit pool cannot cover the requested total."""

    code: str = "INSUFFICIENT_CREDIT"

    def __init__(self, available: Decimal, requested: Decimal):
        super().__init__(
            f"Insufficient credit. Available: ${available:.2f}, Requested: ${requested:.2f}",
            available,
            requested,
        )


class InsufficientCreditBalanceError(InsufficientFundsError):
    """A single credit cannot cover the requested amount."""

    code: str = "INSUFFICIENT_CREDIT_BALANCE"

    def __init__(self, credit_id: UUID, available: Decimal, requested: Decimal):
        self.credit_id = credit_id
        super().__init__(
            f"Insufficient credit balance. Available: ${available:.2f}, "
            f"Requested: ${requested:.2f}",
            available,
            requested,
        )


class CrossTenantError(BillingError):
    """A record referenced by the request belongs to a different customer."""

    code: str = "CROSS_TENANT"

    def __init__(self, entity: str, entity_id: UUID, customer_id: UUID):
        self.entity = entity
        self.entity_id = entity_id
        self.customer_id = customer_id
        super().__init__(f"{entity} {entity_id} does not belong to customer {customer_id}")


class PersistenceError(BillingError):
    """The store failed mid-transaction; every write was rolled back."""

    code: str = "PERSISTENCE_ERROR"
