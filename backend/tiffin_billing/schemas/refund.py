"""Refund schemas.

Transitions arrive on one endpoint as a union discriminated by ``action``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, RootModel, model_validator

from tiffin_billing.models.refund import RefundMethod, RefundSourceType


class RefundCreate(BaseModel):
    source_type: RefundSourceType
    customer_id: UUID
    credit_id: UUID | None = None
    payment_record_id: UUID | None = None
    refund_amount: Decimal = Field(..., gt=0, decimal_places=2)
    refund_method: RefundMethod
    refund_date: date
    reference_number: str | None = Field(default=None, max_length=255)
    reason: str = Field(..., min_length=1)
    requested_by: str = Field(..., min_length=1, max_length=255)

    @model_validator(mode="after")
    def check_source(self) -> "RefundCreate":
        if self.source_type == RefundSourceType.CREDIT and self.credit_id is None:
            raise ValueError("credit_id is required for credit refunds")
        if self.source_type == RefundSourceType.PAYMENT and self.payment_record_id is None:
            raise ValueError("payment_record_id is required for payment refunds")
        return self


class ApproveRefundAction(BaseModel):
    action: Literal["approve"]
    approved_by: str = Field(..., min_length=1, max_length=255)
    reference_number: str | None = Field(default=None, max_length=255)


class CompleteRefundAction(BaseModel):
    action: Literal["complete"]
    approved_by: str = Field(..., min_length=1, max_length=255)
    reference_number: str | None = Field(default=None, max_length=255)


class CancelRefundAction(BaseModel):
    action: Literal["cancel"]


RefundAction = Annotated[
    ApproveRefundAction | CompleteRefundAction | CancelRefundAction,
    Field(discriminator="action"),
]


class RefundActionRequest(RootModel[RefundAction]):
    pass


class RefundDelete(BaseModel):
    deleted_by: str | None = Field(default=None, max_length=255)


class RefundResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source_type: str
    credit_id: UUID | None = None
    payment_record_id: UUID | None = None
    customer_id: UUID
    refund_amount: Decimal
    refund_method: str
    refund_date: date
    reference_number: str | None = None
    reason: str
    status: str
    requested_by: str
    approved_by: str | None = None
    approved_at: datetime | None = None
    lifecycle_state: str
    created_at: datetime
    updated_at: datetime
