"""Payment record API endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tiffin_billing.core.database import get_db
from tiffin_billing.core.idempotency import check_idempotency, record_idempotency_response
from tiffin_billing.models.payment_allocation import PaymentAllocation
from tiffin_billing.models.payment_record import AllocationStatus, PaymentRecord, PaymentSource
from tiffin_billing.schemas.payment_record import (
    AllocatePaymentRequest,
    AllocationResultResponse,
    CashPaymentCreate,
    PaymentAllocationResponse,
    PaymentRecordDelete,
    PaymentRecordDetailResponse,
    PaymentRecordResponse,
    PaymentRecordUpdate,
    TransferPaymentCreate,
)
from tiffin_billing.services.allocation_service import AllocationService, AllocationTarget
from tiffin_billing.services.payment_record_service import PaymentRecordService

router = APIRouter()


@router.get(
    "/",
    response_model=list[PaymentRecordResponse],
    summary="List payment records",
)
async def list_payment_records(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    source: PaymentSource | None = None,
    allocation_status: AllocationStatus | None = None,
    customer_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    include_deleted: bool = False,
    db: Session = Depends(get_db),
) -> list[PaymentRecord]:
    """List payment records, newest payment date first."""
    return PaymentRecordService(db).list_payments(
        skip=skip,
        limit=limit,
        source=source,
        allocation_status=allocation_status,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        include_deleted=include_deleted,
    )


@router.post(
    "/",
    response_model=PaymentRecordResponse,
    status_code=201,
    summary="Record cash payment",
    responses={404: {"description": "Customer not found"}},
)
async def create_cash_payment(
    data: CashPaymentCreate,
    db: Session = Depends(get_db),
) -> PaymentRecord:
    return PaymentRecordService(db).record_cash_payment(data)


@router.post(
    "/transfers",
    response_model=PaymentRecordResponse,
    status_code=201,
    summary="Record matched bank transfer",
    responses={
        404: {"description": "Customer not found"},
        409: {"description": "Transfer already recorded"},
    },
)
async def create_transfer_payment(
    data: TransferPaymentCreate,
    db: Session = Depends(get_db),
) -> PaymentRecord:
    """Record a transfer whose sender was already matched to a customer."""
    return PaymentRecordService(db).record_transfer_payment(data)


@router.get(
    "/{payment_id}",
    response_model=PaymentRecordDetailResponse,
    summary="Get payment record",
    responses={404: {"description": "Payment record not found"}},
)
async def get_payment_record(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> PaymentRecordDetailResponse:
    """Get a payment record with its active allocations in allocation order."""
    service = PaymentRecordService(db)
    payment = service.get_payment(payment_id)
    allocations = service.get_allocations(payment_id)
    return PaymentRecordDetailResponse(
        **PaymentRecordResponse.model_validate(payment).model_dump(),
        allocations=[PaymentAllocationResponse.model_validate(a) for a in allocations],
    )


@router.put(
    "/{payment_id}",
    response_model=PaymentRecordResponse,
    summary="Update payment record",
    responses={404: {"description": "Payment record not found"}},
)
async def update_payment_record(
    payment_id: UUID,
    data: PaymentRecordUpdate,
    db: Session = Depends(get_db),
) -> PaymentRecord:
    """Update notes or payer name; amounts never change after recording."""
    return PaymentRecordService(db).update_payment(payment_id, data)


@router.delete(
    "/{payment_id}",
    status_code=204,
    summary="Delete payment record",
    responses={
        404: {"description": "Payment record not found"},
        409: {"description": "Credit from this payment has already been used"},
    },
)
async def delete_payment_record(
    payment_id: UUID,
    deleted_by: str | None = None,
    delete_reason: str | None = None,
    db: Session = Depends(get_db),
) -> None:
    """Reverse the payment's allocations and soft-delete it."""
    PaymentRecordService(db).delete_payment(
        payment_id, PaymentRecordDelete(deleted_by=deleted_by, delete_reason=delete_reason)
    )


@router.post(
    "/{payment_id}/allocate",
    response_model=AllocationResultResponse,
    summary="Allocate payment to invoices",
    responses={
        400: {"description": "No eligible invoices"},
        404: {"description": "Payment record not found"},
        409: {"description": "Payment already allocated"},
    },
)
async def allocate_payment(
    payment_id: UUID,
    data: AllocatePaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AllocationResultResponse | JSONResponse:
    """Allocate a payment to invoices in the order given; leftovers become credit."""
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    result = AllocationService(db).allocate_payment(
        payment_id,
        [
            AllocationTarget(
                invoice_id=target.invoice_id,
                amount=target.amount,
                credit_amount=target.credit_amount,
            )
            for target in data.invoices
        ],
        hold_excess=data.hold_excess,
        allocated_by=data.allocated_by,
    )
    response = AllocationResultResponse.model_validate(result, from_attributes=True)
    record_idempotency_response(db, idempotency, 200, response.model_dump(mode="json"))
    return response


@router.get(
    "/{payment_id}/allocations",
    response_model=list[PaymentAllocationResponse],
    summary="List payment allocations",
    responses={404: {"description": "Payment record not found"}},
)
async def list_payment_allocations(
    payment_id: UUID,
    include_deleted: bool = False,
    db: Session = Depends(get_db),
) -> list[PaymentAllocation]:
    return PaymentRecordService(db).get_allocations(payment_id, include_deleted=include_deleted)
