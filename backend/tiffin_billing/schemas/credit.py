"""Customer credit schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreditCreate(BaseModel):
    """Manual deposit; credits from overpayment are created by allocation."""

    customer_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    notes: str | None = None


class CreditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    source_payment_id: UUID | None = None
    original_amount: Decimal
    current_balance: Decimal
    status: str
    notes: str | None = None
    lifecycle_state: str
    created_at: datetime
    updated_at: datetime


class CreditUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    credit_id: UUID
    invoice_id: UUID
    amount_used: Decimal
    used_at: datetime


class CreditDetailResponse(CreditResponse):
    usages: list[CreditUsageResponse] = []
    expected_balance: Decimal


class CreditAllocationIn(BaseModel):
    invoice_id: UUID
    amount: Decimal = Field(..., decimal_places=2)


class ApplyCreditRequest(BaseModel):
    customer_id: UUID
    allocations: list[CreditAllocationIn] = Field(..., min_length=1)


class CreditDrawResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    credit_id: UUID
    amount: Decimal


class AppliedCreditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    amount_applied: Decimal
    balance_due: Decimal
    resulting_status: str
    draws: list[CreditDrawResponse]


class ApplyCreditResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: UUID
    applications: list[AppliedCreditResponse]
    total_applied: Decimal
    remaining_credit: Decimal


class CustomerCreditSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: UUID
    total_available: Decimal
    credits: list[CreditResponse]
