"""
Pydantic schemas for notification requests.
"""

from pydantic import BaseModel, Field
from typing import Optional
import uuid
from realty_api.models.notification import NotificationType, NotificationPriority


class NotificationCreate(BaseModel):
    """Admin-authored notification for a single recipient."""

    recipient_id: uuid.UUID = Field(..., alias="recipient")
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: NotificationType = NotificationType.INFO
    priority: NotificationPriority = NotificationPriority.MEDIUM
    related_model: Optional[str] = Field(None, max_length=50)
    related_id: Optional[str] = Field(None, max_length=64)
    action_url: Optional[str] = Field(None, max_length=500)

    model_config = {"populate_by_name": True}
