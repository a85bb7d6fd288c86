"""Notification schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    notification_type: str
    customer_id: UUID | None = None
    title: str
    message: str
    priority: str
    action_reference: str | None = None
    is_dismissed: bool
    dismissed_at: datetime | None = None
    created_at: datetime
