"""Customer credit API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tiffin_billing.core.database import get_db
from tiffin_billing.core.idempotency import check_idempotency, record_idempotency_response
from tiffin_billing.models.credit import Credit, CreditStatus
from tiffin_billing.schemas.credit import (
    ApplyCreditRequest,
    ApplyCreditResultResponse,
    CreditCreate,
    CreditDetailResponse,
    CreditResponse,
    CreditUsageResponse,
)
from tiffin_billing.services.credit_application_service import (
    CreditApplicationService,
    CreditRequest,
)
from tiffin_billing.services.credit_ledger import CreditLedger

router = APIRouter()


@router.get("/", response_model=list[CreditResponse], summary="List credits")
async def list_credits(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    customer_id: UUID | None = None,
    status: CreditStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Credit]:
    return CreditLedger(db).list_credits(
        skip=skip, limit=limit, customer_id=customer_id, status=status
    )


@router.post(
    "/",
    response_model=CreditResponse,
    status_code=201,
    summary="Deposit credit",
    responses={404: {"description": "Customer not found"}},
)
async def deposit_credit(
    data: CreditCreate,
    db: Session = Depends(get_db),
) -> Credit:
    """Add stored value for a customer without a payment behind it."""
    return CreditLedger(db).deposit(data)


@router.post(
    "/apply",
    response_model=ApplyCreditResultResponse,
    summary="Apply credit to invoices",
    responses={
        400: {"description": "Nothing requested or not enough credit"},
        403: {"description": "Invoice belongs to another customer"},
        404: {"description": "Customer not found"},
    },
)
async def apply_credit(
    data: ApplyCreditRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> ApplyCreditResultResponse | JSONResponse:
    """Apply a customer's credit to invoices, oldest credit first."""
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    result = CreditApplicationService(db).apply_credit(
        data.customer_id,
        [
            CreditRequest(invoice_id=item.invoice_id, amount=item.amount)
            for item in data.allocations
        ],
    )
    response = ApplyCreditResultResponse.model_validate(result, from_attributes=True)
    record_idempotency_response(db, idempotency, 200, response.model_dump(mode="json"))
    return response


@router.get(
    "/{credit_id}",
    response_model=CreditDetailResponse,
    summary="Get credit",
    responses={404: {"description": "Credit not found"}},
)
async def get_credit(
    credit_id: UUID,
    db: Session = Depends(get_db),
) -> CreditDetailResponse:
    """Get a credit with its usage history and the balance its history implies."""
    ledger = CreditLedger(db)
    credit = ledger.get_credit(credit_id)
    return CreditDetailResponse(
        **CreditResponse.model_validate(credit).model_dump(),
        usages=[CreditUsageResponse.model_validate(u) for u in ledger.get_usages(credit_id)],
        expected_balance=ledger.expected_balance(credit),
    )
