"""
Pydantic schemas for client-side analytics tracking.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from realty_api.models.analytics import EventType, DeviceType


class AnalyticsTrackRequest(BaseModel):
    """Event reported by a web or mobile client. Accepts camelCase keys."""

    event_type: EventType = Field(..., alias="eventType")
    event_name: str = Field(..., min_length=1, max_length=100, alias="eventName")
    session_id: str = Field(..., min_length=1, max_length=100, alias="sessionId")
    device: DeviceType = DeviceType.UNKNOWN
    browser: Optional[str] = Field(None, max_length=100)
    os: Optional[str] = Field(None, max_length=100)
    referrer: Optional[str] = Field(None, max_length=500)
    path: Optional[str] = Field(None, max_length=500)
    query: Optional[Dict[str, Any]] = None
    related_model: Optional[str] = Field(None, max_length=50, alias="relatedModel")
    related_id: Optional[str] = Field(None, max_length=64, alias="relatedId")
    metadata: Optional[Dict[str, Any]] = None
    duration: Optional[int] = Field(None, ge=0, description="Milliseconds")

    model_config = {"populate_by_name": True}
