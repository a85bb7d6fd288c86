"""Invoice API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from tiffin_billing.core.database import get_db
from tiffin_billing.core.idempotency import check_idempotency, record_idempotency_response
from tiffin_billing.models.invoice import Invoice
from tiffin_billing.models.invoice_payment import InvoicePayment
from tiffin_billing.schemas.invoice import (
    InvoicePaymentResponse,
    InvoicePayRequest,
    InvoicePayResultResponse,
    InvoiceResponse,
    InvoiceUpdate,
)
from tiffin_billing.services.commands import BillingLedger, PayInvoice
from tiffin_billing.services.invoice_service import InvoiceService

router = APIRouter()


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice(invoice_id: UUID, db: Session = Depends(get_db)) -> Invoice:
    return InvoiceService(db).get_invoice(invoice_id)


@router.put(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Update invoice",
    responses={
        400: {"description": "No valid fields to update"},
        404: {"description": "Invoice not found"},
    },
)
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
) -> Invoice:
    """Update notes or due date."""
    return InvoiceService(db).update_invoice(invoice_id, data)


@router.get(
    "/{invoice_id}/payments",
    response_model=list[InvoicePaymentResponse],
    summary="List invoice payments",
    responses={404: {"description": "Invoice not found"}},
)
async def list_invoice_payments(
    invoice_id: UUID, db: Session = Depends(get_db)
) -> list[InvoicePayment]:
    return InvoiceService(db).get_invoice_payments(invoice_id)


@router.post(
    "/{invoice_id}/payments",
    response_model=InvoicePayResultResponse,
    summary="Record payment on invoice",
    responses={
        400: {"description": "Amount exceeds balance due"},
        403: {"description": "Payment belongs to another customer"},
        404: {"description": "Invoice or payment record not found"},
    },
)
async def pay_invoice(
    invoice_id: UUID,
    data: InvoicePayRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> InvoicePayResultResponse | JSONResponse:
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    result = BillingLedger(db).execute(
        PayInvoice(
            invoice_id=invoice_id,
            payment_record_id=data.payment_record_id,
            amount=data.amount,
            applied_by=data.applied_by,
        )
    )
    response = InvoicePayResultResponse.model_validate(result, from_attributes=True)
    record_idempotency_response(db, idempotency, 200, response.model_dump(mode="json"))
    return response


@router.delete(
    "/{invoice_id}",
    status_code=204,
    summary="Delete invoice",
    responses={
        404: {"description": "Invoice not found"},
        409: {"description": "Invoice has received payments"},
    },
)
async def delete_invoice(invoice_id: UUID, db: Session = Depends(get_db)) -> None:
    """Delete an unpaid invoice; its orders go back to pending."""
    InvoiceService(db).delete_invoice(invoice_id)
