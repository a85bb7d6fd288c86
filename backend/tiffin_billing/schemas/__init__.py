from tiffin_billing.schemas.credit import (
    ApplyCreditRequest,
    ApplyCreditResultResponse,
    CreditCreate,
    CreditDetailResponse,
    CreditResponse,
    CreditUsageResponse,
    CustomerCreditSummary,
)
from tiffin_billing.schemas.customer import CustomerCreate, CustomerResponse
from tiffin_billing.schemas.invoice import (
    InvoiceCreate,
    InvoicePayRequest,
    InvoicePayResultResponse,
    InvoiceResponse,
    InvoiceUpdate,
)
from tiffin_billing.schemas.notification import NotificationResponse
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
from tiffin_billing.schemas.refund import (
    RefundActionRequest,
    RefundCreate,
    RefundDelete,
    RefundResponse,
)

__all__ = [
    "AllocatePaymentRequest",
    "AllocationResultResponse",
    "ApplyCreditRequest",
    "ApplyCreditResultResponse",
    "CashPaymentCreate",
    "CreditCreate",
    "CreditDetailResponse",
    "CreditResponse",
    "CreditUsageResponse",
    "CustomerCreate",
    "CustomerCreditSummary",
    "CustomerResponse",
    "InvoiceCreate",
    "InvoicePayRequest",
    "InvoicePayResultResponse",
    "InvoiceResponse",
    "InvoiceUpdate",
    "NotificationResponse",
    "PaymentAllocationResponse",
    "PaymentRecordDelete",
    "PaymentRecordDetailResponse",
    "PaymentRecordResponse",
    "PaymentRecordUpdate",
    "RefundActionRequest",
    "RefundCreate",
    "RefundDelete",
    "RefundResponse",
    "TransferPaymentCreate",
]
