"""Incoming transfer repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.money import money
from tiffin_billing.models.incoming_transfer import IncomingTransfer, TransferStatus


class IncomingTransferRepository:
    """Repository for IncomingTransfer model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, transfer_id: UUID, *, for_update: bool = False) -> IncomingTransfer | None:
        query = self.db.query(IncomingTransfer).filter(IncomingTransfer.id == transfer_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_reference(self, reference: str) -> IncomingTransfer | None:
        return (
            self.db.query(IncomingTransfer).filter(IncomingTransfer.reference == reference).first()
        )

    def create(
        self,
        *,
        reference: str,
        amount: Decimal,
        sender_name: str | None = None,
        customer_id: UUID | None = None,
    ) -> IncomingTransfer:
        transfer = IncomingTransfer(
            reference=reference,
            amount=money(amount),
            sender_name=sender_name,
            customer_id=customer_id,
            status=TransferStatus.PENDING.value,
        )
        self.db.add(transfer)
        self.db.flush()
        return transfer

    def set_status(self, transfer: IncomingTransfer, status: TransferStatus) -> IncomingTransfer:
        transfer.status = status.value  # type: ignore[assignment]
        self.db.flush()
        return transfer
