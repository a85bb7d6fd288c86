"""Invoice schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class InvoiceCreate(BaseModel):
    invoice_number: str = Field(..., min_length=1, max_length=50)
    customer_id: UUID
    total_amount: Decimal = Field(..., ge=0, decimal_places=2)
    due_date: datetime | None = None
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    due_date: datetime | None = None
    notes: str | None = None


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_number: str
    customer_id: UUID
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_status: str
    due_date: datetime | None = None
    notes: str | None = None
    lifecycle_state: str
    created_at: datetime
    updated_at: datetime


class InvoicePayRequest(BaseModel):
    payment_record_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    applied_by: str | None = Field(default=None, max_length=255)


class InvoicePaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    payment_record_id: UUID
    amount_applied: Decimal
    applied_by: str | None = None
    created_at: datetime


class InvoicePayResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    amount_applied: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_status: str
