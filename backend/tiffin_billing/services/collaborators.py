"""Collaborator interfaces the ledger engines call out to.

Each engine takes these in its constructor and falls back to the SQL-backed
default, so tests can swap in doubles and an outer system can plug in its own.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import UUID

from tiffin_billing.models.customer_order import OrderPaymentStatus
from tiffin_billing.models.notification import Notification, NotificationPriority, NotificationType
from tiffin_billing.models.payment_record import PaymentRecord


class NotificationSink(ABC):
    """Fire-and-forget notifications; engines call sinks through ``GuardedNotificationSink``."""

    @abstractmethod
    def notify(
        self,
        *,
        notification_type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        customer_id: UUID | None = None,
        action_reference: str | None = None,
    ) -> Notification | None:
        pass  # pragma: no cover

    @abstractmethod
    def dismiss(
        self,
        *,
        notification_type: NotificationType | None = None,
        customer_id: UUID | None = None,
        action_reference: str | None = None,
    ) -> int:
        pass  # pragma: no cover


class OrderStatusSync(ABC):
    """Owned by the order subsystem; accepts one status per call."""

    @abstractmethod
    def set_payment_status(self, invoice_ids: Sequence[UUID], status: OrderPaymentStatus) -> int:
        pass  # pragma: no cover


class TransferGateway(ABC):
    """Incoming bank transfer source that payment records can originate from."""

    @abstractmethod
    def mark_allocated(self, transfer_id: UUID) -> None:
        pass  # pragma: no cover


class AllocationReverser(ABC):
    """Undo everything an allocation did before a payment record is deleted."""

    @abstractmethod
    def reverse(self, payment: PaymentRecord, *, reversed_by: str | None = None) -> None:
        pass  # pragma: no cover
