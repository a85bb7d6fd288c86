"""Customer credit summary endpoint."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tiffin_billing.core.database import get_db
from tiffin_billing.schemas.credit import CustomerCreditSummary
from tiffin_billing.services.commands import BillingLedger, GetCustomerCreditBalance

router = APIRouter()


@router.get(
    "/{customer_id}/credit",
    response_model=CustomerCreditSummary,
    summary="Get customer credit balance",
    responses={404: {"description": "Customer not found"}},
)
async def get_customer_credit(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> CustomerCreditSummary:
    """Total available credit and the credits making it up, oldest first."""
    balance = BillingLedger(db).execute(GetCustomerCreditBalance(customer_id=customer_id))
    return CustomerCreditSummary.model_validate(balance, from_attributes=True)
