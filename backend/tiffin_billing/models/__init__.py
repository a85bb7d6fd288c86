from tiffin_billing.models.credit import Credit, CreditStatus
from tiffin_billing.models.credit_usage import CreditUsage
from tiffin_billing.models.customer import Customer
from tiffin_billing.models.customer_order import CustomerOrder, OrderPaymentStatus
from tiffin_billing.models.idempotency_record import IdempotencyRecord
from tiffin_billing.models.incoming_transfer import IncomingTransfer, TransferStatus
from tiffin_billing.models.invoice import PAYABLE_STATUSES, Invoice, InvoicePaymentStatus
from tiffin_billing.models.invoice_payment import InvoicePayment
from tiffin_billing.models.notification import Notification, NotificationPriority, NotificationType
from tiffin_billing.models.payment_allocation import PaymentAllocation
from tiffin_billing.models.payment_record import AllocationStatus, PaymentRecord, PaymentSource
from tiffin_billing.models.refund import Refund, RefundMethod, RefundSourceType, RefundStatus
from tiffin_billing.models.shared import LifecycleState

__all__ = [
    "AllocationStatus",
    "Credit",
    "CreditStatus",
    "CreditUsage",
    "Customer",
    "CustomerOrder",
    "IdempotencyRecord",
    "IncomingTransfer",
    "Invoice",
    "InvoicePayment",
    "InvoicePaymentStatus",
    "LifecycleState",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "OrderPaymentStatus",
    "PAYABLE_STATUSES",
    "PaymentAllocation",
    "PaymentRecord",
    "PaymentSource",
    "Refund",
    "RefundMethod",
    "RefundSourceType",
    "RefundStatus",
    "TransferStatus",
]
