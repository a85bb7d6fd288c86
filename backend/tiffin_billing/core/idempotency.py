"""Idempotency support for the money-moving endpoints.

Provides a helper that checks for the ``Idempotency-Key`` header. If a cached
response exists for the key and path, the helper returns a JSONResponse directly;
otherwise it returns ``None`` (no header) or an ``IdempotencyResult`` so the
endpoint can proceed. After the endpoint completes, call
``record_idempotency_response`` to persist the response for future replays.

A failed call leaves its record without a response, so a retry runs again.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tiffin_billing.core.config import settings
from tiffin_billing.repositories.idempotency_repository import IdempotencyRepository


@dataclass
class IdempotencyResult:
    """Holds pending idempotency key info for later recording."""

    key: str
    method: str
    path: str


def check_idempotency(request: Request, db: Session) -> JSONResponse | IdempotencyResult | None:
    """Check the ``Idempotency-Key`` header for a cached response.

    Returns:
        - ``None`` if no ``Idempotency-Key`` header is present.
        - A ``JSONResponse`` with the cached response and ``Idempotency-Replayed: true``
          header if a completed record already exists.
        - An ``IdempotencyResult`` with the key details if this is a new request that
          should be recorded after processing.
    """
    key = request.headers.get("Idempotency-Key")
    if not key:
        return None

    repo = IdempotencyRepository(db)
    path = request.url.path
    existing = repo.get_for_request(key, path)

    if existing is not None and existing.response_status is not None:
        response = JSONResponse(
            content=existing.response_body,
            status_code=int(existing.response_status),
        )
        response.headers["Idempotency-Replayed"] = "true"
        return response

    if existing is None:
        repo.reserve(idempotency_key=key, request_method=request.method, request_path=path)

    return IdempotencyResult(key=key, method=request.method, path=path)


def record_idempotency_response(
    db: Session,
    idempotency: IdempotencyResult | None,
    status: int,
    body: dict[str, Any],
) -> None:
    """Persist the endpoint response so subsequent calls return the cached result."""
    if idempotency is None:
        return
    repo = IdempotencyRepository(db)
    record = repo.get_for_request(idempotency.key, idempotency.path)
    if record is not None:
        repo.store_response(record, status, body)


def purge_expired_idempotency_records(db: Session, max_age_hours: int | None = None) -> int:
    """Delete records older than ``IDEMPOTENCY_MAX_AGE_HOURS``; returns how many."""
    hours = max_age_hours if max_age_hours is not None else settings.IDEMPOTENCY_MAX_AGE_HOURS
    cutoff = datetime.now(UTC) - timedelta(hours=hours)
    return IdempotencyRepository(db).purge_created_before(cutoff)
