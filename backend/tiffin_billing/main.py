import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tiffin_billing.core.config import settings
from tiffin_billing.core.errors import (
    BillingError,
    CrossTenantError,
    InsufficientFundsError,
    NotFoundError,
    PersistenceError,
    StateConflictError,
    ValidationError,
)
from tiffin_billing.core.logging_config import configure_logging
from tiffin_billing.routers import (
    customer_credits,
    customers,
    invoices,
    notifications,
    payment_records,
    refunds,
)

logger = logging.getLogger(__name__)

configure_logging()

OPENAPI_TAGS = [
    {"name": "Payment Records", "description": "Record received money and allocate it."},
    {"name": "Credits", "description": "Customer credit balances, deposits and application."},
    {"name": "Refunds", "description": "Request, approve and cancel refunds."},
    {"name": "Invoices", "description": "Invoice balances and single-invoice payments."},
    {"name": "Notifications", "description": "Staff notifications raised by the ledger."},
]

ERROR_STATUS_CODES: list[tuple[type[BillingError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (StateConflictError, 409),
    (InsufficientFundsError, 400),
    (CrossTenantError, 403),
    (PersistenceError, 503),
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Payment allocation and credit/refund ledger for a meal delivery service. "
        "Distributes payments across invoices, keeps overpayments as credit and "
        "runs refunds against that credit."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def status_code_for(exc: BillingError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(
    payment_records.router, prefix="/v1/payment_records", tags=["Payment Records"]
)
app.include_router(customer_credits.router, prefix="/v1/customer_credits", tags=["Credits"])
app.include_router(customers.router, prefix="/v1/customers", tags=["Credits"])
app.include_router(refunds.router, prefix="/v1/refunds", tags=["Refunds"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])


@app.get("/health")
async def health() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
