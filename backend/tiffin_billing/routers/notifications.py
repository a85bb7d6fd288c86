"""Notification API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tiffin_billing.core.database import get_db
from tiffin_billing.models.notification import Notification, NotificationType
from tiffin_billing.schemas.notification import NotificationResponse
from tiffin_billing.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=list[NotificationResponse], summary="List notifications")
async def list_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    notification_type: NotificationType | None = None,
    customer_id: UUID | None = None,
    include_dismissed: bool = False,
    db: Session = Depends(get_db),
) -> list[Notification]:
    return NotificationService(db).list_notifications(
        skip=skip,
        limit=limit,
        notification_type=notification_type,
        customer_id=customer_id,
        include_dismissed=include_dismissed,
    )


@router.post(
    "/{notification_id}/dismiss",
    response_model=NotificationResponse,
    summary="Dismiss notification",
    responses={404: {"description": "Notification not found"}},
)
async def dismiss_notification(
    notification_id: UUID, db: Session = Depends(get_db)
) -> Notification:
    return NotificationService(db).dismiss_notification(notification_id)
