"""Service for creating and managing in-app notifications."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tiffin_billing.core.database import atomic
from tiffin_billing.core.errors import NotFoundError
from tiffin_billing.models.notification import Notification, NotificationPriority, NotificationType
from tiffin_billing.repositories.notification_repository import NotificationRepository
from tiffin_billing.services.collaborators import NotificationSink

logger = logging.getLogger(__name__)


class NotificationService(NotificationSink):
    """Stores notifications in the same database the ledger writes to.

    Each write runs inside a savepoint: if the insert fails, only the savepoint
    is rolled back and the surrounding ledger transaction carries on.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository(db)

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
        """Create a notification."""
        try:
            with self.db.begin_nested():
                return self.repo.create(
                    notification_type=notification_type.value,
                    customer_id=customer_id,
                    title=title,
                    message=message,
                    priority=priority.value,
                    action_reference=action_reference,
                )
        except SQLAlchemyError:
            logger.warning(
                "Failed to store %s notification for customer %s",
                notification_type.value,
                customer_id,
                exc_info=True,
            )
            return None

    def dismiss(
        self,
        *,
        notification_type: NotificationType | None = None,
        customer_id: UUID | None = None,
        action_reference: str | None = None,
    ) -> int:
        """Dismiss every open notification matching the filters."""
        try:
            with self.db.begin_nested():
                return self.repo.dismiss_matching(
                    notification_type=notification_type.value if notification_type else None,
                    customer_id=customer_id,
                    action_reference=action_reference,
                )
        except SQLAlchemyError:
            logger.warning(
                "Failed to dismiss notifications (type=%s, reference=%s)",
                notification_type.value if notification_type else None,
                action_reference,
                exc_info=True,
            )
            return 0

    def list_notifications(
        self,
        skip: int = 0,
        limit: int = 50,
        notification_type: NotificationType | None = None,
        customer_id: UUID | None = None,
        include_dismissed: bool = False,
    ) -> list[Notification]:
        return self.repo.get_all(
            skip=skip,
            limit=limit,
            notification_type=notification_type.value if notification_type else None,
            customer_id=customer_id,
            include_dismissed=include_dismissed,
        )

    def dismiss_notification(self, notification_id: UUID) -> Notification:
        """Dismiss one notification on staff request."""
        with atomic(self.db):
            notification = self.repo.get_by_id(notification_id)
            if notification is None:
                raise NotFoundError("Notification", notification_id)
            if not notification.is_dismissed:
                self.repo.dismiss(notification)
        return notification


class GuardedNotificationSink(NotificationSink):
    """Wraps any sink so a failing notify or dismiss is logged, never raised.

    Engines wrap whatever sink they are given, so a custom sink that raises
    cannot roll back the ledger transaction it was called from.
    """

    def __init__(self, sink: NotificationSink):
        self.sink = sink

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
        try:
            return self.sink.notify(
                notification_type=notification_type,
                title=title,
                message=message,
                priority=priority,
                customer_id=customer_id,
                action_reference=action_reference,
            )
        except Exception:
            logger.warning(
                "Notification sink failed on %s for customer %s",
                notification_type.value,
                customer_id,
                exc_info=True,
            )
            return None

    def dismiss(
        self,
        *,
        notification_type: NotificationType | None = None,
        customer_id: UUID | None = None,
        action_reference: str | None = None,
    ) -> int:
        try:
            return self.sink.dismiss(
                notification_type=notification_type,
                customer_id=customer_id,
                action_reference=action_reference,
            )
        except Exception:
            logger.warning(
                "Notification sink failed to dismiss (type=%s, reference=%s)",
                notification_type.value if notification_type else None,
                action_reference,
                exc_info=True,
            )
            return 0


def guarded_sink(db: Session, sink: NotificationSink | None = None) -> NotificationSink:
    """The sink an engine should call: ``sink`` or the SQL default, guarded."""
    return GuardedNotificationSink(sink or NotificationService(db))
