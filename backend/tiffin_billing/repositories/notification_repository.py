"""Repository for Notification CRUD operations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from tiffin_billing.models.notification import Notification
from tiffin_billing.models.shared import utc_now


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        notification_type: str,
        title: str,
        message: str,
        priority: str,
        customer_id: UUID | None = None,
        action_reference: str | None = None,
    ) -> Notification:
        notification = Notification(
            notification_type=notification_type,
            customer_id=customer_id,
            title=title,
            message=message,
            priority=priority,
            action_reference=action_reference,
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_by_id(self, notification_id: UUID) -> Notification | None:
        return self.db.query(Notification).filter(Notification.id == notification_id).first()

    def get_all(
        self,
        skip: int = 0,
        limit: int = 50,
        notification_type: str | None = None,
        customer_id: UUID | None = None,
        include_dismissed: bool = False,
    ) -> list[Notification]:
        query = self.db.query(Notification)
        if notification_type is not None:
            query = query.filter(Notification.notification_type == notification_type)
        if customer_id is not None:
            query = query.filter(Notification.customer_id == customer_id)
        if not include_dismissed:
            query = query.filter(Notification.is_dismissed == False)  # noqa: E712
        return query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

    def dismiss(self, notification: Notification) -> Notification:
        notification.is_dismissed = True  # type: ignore[assignment]
        notification.dismissed_at = utc_now()  # type: ignore[assignment]
        self.db.flush()
        return notification

    def dismiss_matching(
        self,
        *,
        notification_type: str | None = None,
        customer_id: UUID | None = None,
        action_reference: str | None = None,
    ) -> int:
        query = self.db.query(Notification).filter(
            Notification.is_dismissed == False  # noqa: E712
        )
        if notification_type is not None:
            query = query.filter(Notification.notification_type == notification_type)
        if customer_id is not None:
            query = query.filter(Notification.customer_id == customer_id)
        if action_reference is not None:
            query = query.filter(Notification.action_reference == action_reference)
        count = query.update(
            {"is_dismissed": True, "dismissed_at": utc_now()}, synchronize_session="fetch"
        )
        return int(count)
