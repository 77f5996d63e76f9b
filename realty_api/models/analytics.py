"""
Analytics and token bookkeeping models.
AnalyticsEvent stores usage events; TokenBlacklist stores revoked JWTs until they expire.
"""

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Uuid, JSON, Enum as SQLEnum, Index
from sqlalchemy.orm import Mapped, mapped_column
from realty_api.database import Base
from datetime import datetime
from typing import Optional, Dict, Any
import enum
import uuid


class EventType(str, enum.Enum):
    PAGE_VIEW = "page_view"
    PROPERTY_VIEW = "property_view"
    PROPERTY_SEARCH = "property_search"
    INQUIRY_SUBMITTED = "inquiry_submitted"
    USER_REGISTERED = "user_registered"
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"
    PROPERTY_CREATED = "property_created"
    PROPERTY_UPDATED = "property_updated"
    PROPERTY_DELETED = "property_deleted"
    PROPERTY_FAVORITE = "property_favorite"
    PROPERTY_SHARE = "property_share"
    FORM_SUBMITTED = "form_submitted"
    BUTTON_CLICK = "button_click"
    ERROR_OCCURRED = "error_occurred"
    API_CALL = "api_call"
    OTHER = "other"


class DeviceType(str, enum.Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"
    UNKNOWN = "unknown"


class AnalyticsEvent(Base):
    """A single usage event, optionally tied to a user and a related record."""

    __tablename__ = "analytics_events"

    event_type: Mapped[EventType] = mapped_column(SQLEnum(EventType), nullable=False, index=True)
    event_name: Mapped[str] = mapped_column(String(100), nullable=False)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Client-side tracking sends these; server-side events leave them empty
    session_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    device: Mapped[DeviceType] = mapped_column(SQLEnum(DeviceType), nullable=False, default=DeviceType.UNKNOWN)
    browser: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    os: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    referrer: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    query: Mapped[Dict[str, Any]] = mapped_column("query_params", JSON, nullable=False, default=dict)

    related_model: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    related_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    event_metadata: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "event_type": self.event_type.value,
            "event_name": self.event_name,
            "user_id": str(self.user_id) if self.user_id else None,
            "session_id": self.session_id,
            "device": self.device.value if self.device else DeviceType.UNKNOWN.value,
            "browser": self.browser,
            "os": self.os,
            "referrer": self.referrer,
            "path": self.path,
            "query": self.query or {},
            "related_model": self.related_model,
            "related_id": self.related_id,
            "metadata": self.event_metadata or {},
            "duration": self.duration,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class TokenBlacklist(Base):
    """Revoked token kept until its natural expiry."""

    __tablename__ = "token_blacklist"

    token: Mapped[str] = mapped_column(Text, nullable=False)
    token_digest: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    token_type: Mapped[str] = mapped_column(String(20), nullable=False, default="access")

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True
    )

    reason: Mapped[str] = mapped_column(String(50), nullable=False, default="logout")
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


event_type_created_index = Index(
    "idx_analytics_events_type_created",
    AnalyticsEvent.event_type,
    AnalyticsEvent.created_at.desc()
)
