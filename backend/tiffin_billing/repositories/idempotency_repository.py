"""Repository for replayable responses keyed by ``Idempotency-Key`` and path."""

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from tiffin_billing.models.idempotency_record import IdempotencyRecord


class IdempotencyRepository:
    """Records are committed on their own, outside any ledger transaction.

    A reservation is written before the endpoint runs and only gets a response
    once the endpoint succeeds; a reservation without a response never replays.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_for_request(self, idempotency_key: str, request_path: str) -> IdempotencyRecord | None:
        """The same key sent to two different endpoints names two records."""
        return (
            self.db.query(IdempotencyRecord)
            .filter(
                IdempotencyRecord.idempotency_key == idempotency_key,
                IdempotencyRecord.request_path == request_path,
            )
            .first()
        )

    def reserve(
        self, *, idempotency_key: str, request_method: str, request_path: str
    ) -> IdempotencyRecord:
        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            request_method=request_method,
            request_path=request_path,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def store_response(
        self,
        record: IdempotencyRecord,
        response_status: int,
        response_body: dict[str, Any],
    ) -> IdempotencyRecord:
        record.response_status = response_status  # type: ignore[assignment]
        record.response_body = response_body  # type: ignore[assignment]
        self.db.commit()
        return record

    def purge_created_before(self, cutoff: datetime) -> int:
        """Drop records created before ``cutoff``, answered or not; returns the count."""
        count = (
            self.db.query(IdempotencyRecord)
            .filter(IdempotencyRecord.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return int(count)
