"""Payment record and allocation schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tiffin_billing.schemas.credit import AppliedCreditResponse


class CashPaymentCreate(BaseModel):
    customer_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date
    payer_name: str | None = Field(default=None, max_length=255)
    notes: str | None = None
    created_by: str | None = Field(default=None, max_length=255)


class TransferPaymentCreate(BaseModel):
    """A bank transfer already matched to a customer upstream."""

    customer_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    reference: str = Field(..., min_length=1, max_length=255)
    sender_name: str | None = Field(default=None, max_length=255)
    payment_date: date
    notes: str | None = None
    created_by: str | None = Field(default=None, max_length=255)


class PaymentRecordUpdate(BaseModel):
    notes: str | None = None
    payer_name: str | None = Field(default=None, max_length=255)


class PaymentRecordDelete(BaseModel):
    deleted_by: str | None = Field(default=None, max_length=255)
    delete_reason: str | None = None


class PaymentRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    source: str
    transfer_id: UUID | None = None
    payer_name: str | None = None
    payment_date: date
    amount: Decimal
    total_allocated: Decimal
    excess_amount: Decimal
    allocation_status: str
    notes: str | None = None
    created_by: str | None = None
    lifecycle_state: str
    deleted_at: datetime | None = None
    deleted_by: str | None = None
    delete_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class PaymentAllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_record_id: UUID
    invoice_id: UUID
    customer_id: UUID
    order_index: int
    allocated_amount: Decimal
    invoice_balance_before: Decimal
    invoice_balance_after: Decimal
    resulting_status: str
    created_by: str | None = None
    lifecycle_state: str
    created_at: datetime


class PaymentRecordDetailResponse(PaymentRecordResponse):
    allocations: list[PaymentAllocationResponse] = []


class AllocationTargetIn(BaseModel):
    invoice_id: UUID
    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    credit_amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)


class AllocatePaymentRequest(BaseModel):
    """Invoices are paid in the order given."""

    invoices: list[AllocationTargetIn] = Field(..., min_length=1)
    hold_excess: bool = False
    allocated_by: str | None = Field(default=None, max_length=255)


class AppliedAllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    amount_applied: Decimal
    balance_before: Decimal
    balance_after: Decimal
    resulting_status: str


class SkippedInvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    reason: str


class AllocationResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_record_id: UUID
    allocations: list[AppliedAllocationResponse]
    total_applied: Decimal
    total_allocated: Decimal
    excess_amount: Decimal
    allocation_status: str
    credit_id: UUID | None = None
    credit_applied: Decimal
    credit_applications: list[AppliedCreditResponse] = []
    skipped: list[SkippedInvoiceResponse] = []
