"""Incoming bank transfers that payment records are created from."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.core.errors import NotFoundError
from tiffin_billing.models.incoming_transfer import IncomingTransfer, TransferStatus
from tiffin_billing.repositories.incoming_transfer_repository import IncomingTransferRepository
from tiffin_billing.services.collaborators import TransferGateway


class SqlTransferGateway(TransferGateway):
    def __init__(self, db: Session):
        self.repo = IncomingTransferRepository(db)

    def register_matched(
        self,
        *,
        reference: str,
        amount: Decimal,
        customer_id: UUID,
        sender_name: str | None = None,
    ) -> IncomingTransfer:
        """Record a transfer that has been matched to a customer upstream."""
        transfer = self.repo.get_by_reference(reference)
        if transfer is None:
            transfer = self.repo.create(
                reference=reference,
                amount=amount,
                sender_name=sender_name,
                customer_id=customer_id,
            )
        return self.repo.set_status(transfer, TransferStatus.MATCHED)

    def mark_allocated(self, transfer_id: UUID) -> None:
        transfer = self.repo.get_by_id(transfer_id, for_update=True)
        if transfer is None:
            raise NotFoundError("IncomingTransfer", transfer_id)
        self.repo.set_status(transfer, TransferStatus.ALLOCATED)
