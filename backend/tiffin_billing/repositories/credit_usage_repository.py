"""Credit usage repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import money_sum
from tiffin_billing.models.credit_usage import CreditUsage


class CreditUsageRepository:
    """Append-only repository for CreditUsage model."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, *, credit_id: UUID, invoice_id: UUID, amount_used: Decimal) -> CreditUsage:
        usage = CreditUsage(credit_id=credit_id, invoice_id=invoice_id, amount_used=amount_used)
        self.db.add(usage)
        self.db.flush()
        return usage

    def get_by_credit_id(self, credit_id: UUID) -> list[CreditUsage]:
        """Get a credit's usage history, most recent first."""
        return (
            self.db.query(CreditUsage)
            .filter(CreditUsage.credit_id == credit_id)
            .order_by(CreditUsage.used_at.desc())
            .all()
        )

    def get_by_invoice_id(self, invoice_id: UUID) -> list[CreditUsage]:
        return (
            self.db.query(CreditUsage)
            .filter(CreditUsage.invoice_id == invoice_id)
            .order_by(CreditUsage.used_at.asc())
            .all()
        )

    def get_total_used(self, credit_id: UUID) -> Decimal:
        return money_sum(usage.amount_used for usage in self.get_by_credit_id(credit_id))
