"""Refund API endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tiffin_billing.core.database import get_db
from tiffin_billing.core.idempotency import check_idempotency, record_idempotency_response
from tiffin_billing.models.refund import Refund, RefundStatus
from tiffin_billing.schemas.refund import (
    ApproveRefundAction,
    CancelRefundAction,
    CompleteRefundAction,
    RefundActionRequest,
    RefundCreate,
    RefundResponse,
)
from tiffin_billing.services.commands import (
    ApproveRefund,
    BillingLedger,
    CancelRefund,
    CompleteRefund,
    CreateRefund,
    DeleteRefund,
    LedgerCommand,
)
from tiffin_billing.services.refund_service import RefundService

router = APIRouter()


@router.get("/", response_model=list[RefundResponse], summary="List refunds")
async def list_refunds(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: RefundStatus | None = None,
    customer_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
) -> list[Refund]:
    return RefundService(db).list_refunds(
        skip=skip,
        limit=limit,
        status=status,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.post(
    "/",
    response_model=RefundResponse,
    status_code=201,
    summary="Request refund",
    responses={
        400: {"description": "Credit balance too low"},
        403: {"description": "Source belongs to another customer"},
        404: {"description": "Customer, credit or payment not found"},
    },
)
async def create_refund(
    data: RefundCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> RefundResponse | JSONResponse:
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    refund = BillingLedger(db).execute(
        CreateRefund(
            source_type=data.source_type,
            customer_id=data.customer_id,
            credit_id=data.credit_id,
            payment_record_id=data.payment_record_id,
            refund_amount=data.refund_amount,
            refund_method=data.refund_method,
            refund_date=data.refund_date,
            reference_number=data.reference_number,
            reason=data.reason,
            requested_by=data.requested_by,
        )
    )
    response = RefundResponse.model_validate(refund)
    record_idempotency_response(db, idempotency, 201, response.model_dump(mode="json"))
    return response


@router.get(
    "/{refund_id}",
    response_model=RefundResponse,
    summary="Get refund",
    responses={404: {"description": "Refund not found"}},
)
async def get_refund(refund_id: UUID, db: Session = Depends(get_db)) -> Refund:
    return RefundService(db).get_refund(refund_id)


@router.put(
    "/{refund_id}",
    response_model=RefundResponse,
    summary="Approve, complete or cancel refund",
    responses={
        404: {"description": "Refund not found"},
        409: {"description": "Refund is no longer pending"},
    },
)
async def update_refund(
    refund_id: UUID,
    data: RefundActionRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> RefundResponse | JSONResponse:
    """Move a pending refund to ``completed`` (approve/complete) or ``cancelled``."""
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    command: LedgerCommand
    match data.root:
        case ApproveRefundAction(approved_by=approved_by, reference_number=reference):
            command = ApproveRefund(refund_id, approved_by, reference)
        case CompleteRefundAction(approved_by=approved_by, reference_number=reference):
            command = CompleteRefund(refund_id, approved_by, reference)
        case CancelRefundAction():
            command = CancelRefund(refund_id)

    refund = BillingLedger(db).execute(command)
    response = RefundResponse.model_validate(refund)
    record_idempotency_response(db, idempotency, 200, response.model_dump(mode="json"))
    return response


@router.delete(
    "/{refund_id}",
    status_code=204,
    summary="Delete refund",
    responses={
        404: {"description": "Refund not found"},
        409: {"description": "Only pending refunds can be deleted"},
    },
)
async def delete_refund(
    refund_id: UUID,
    deleted_by: str | None = None,
    db: Session = Depends(get_db),
) -> None:
    BillingLedger(db).execute(DeleteRefund(refund_id=refund_id, deleted_by=deleted_by))
