"""
Inquiry model for prospective-buyer messages about a property.
Public submissions have no user; status moves forward by admin/agent action only.
"""

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, Uuid, Enum as SQLEnum, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from realty_api.database import Base
from datetime import datetime
from typing import Optional, TYPE_CHECKING
import enum
import uuid

if TYPE_CHECKING:
    from realty_api.models.property import Property
    from realty_api.models.user import User


class InquiryType(str, enum.Enum):
    VIEWING = "viewing"
    INFORMATION = "information"
    PURCHASE = "purchase"
    RENT = "rent"
    OTHER = "other"


class InquiryStatus(str, enum.Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ContactMethod(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"
    ANY = "any"


class Inquiry(Base):
    """Message from a prospective buyer or tenant about a listing."""

    __tablename__ = "inquiries"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Submitting user, empty for anonymous submissions"
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    inquiry_type: Mapped[InquiryType] = mapped_column(
        SQLEnum(InquiryType),
        nullable=False,
        default=InquiryType.INFORMATION,
        index=True
    )

    status: Mapped[InquiryStatus] = mapped_column(
        SQLEnum(InquiryStatus),
        nullable=False,
        default=InquiryStatus.PENDING,
        index=True
    )

    preferred_contact_method: Mapped[ContactMethod] = mapped_column(
        SQLEnum(ContactMethod),
        nullable=False,
        default=ContactMethod.EMAIL
    )

    preferred_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    preferred_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    response_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the inquiry status was first changed"
    )

    property_rel: Mapped["Property"] = relationship("Property", lazy="selectin")
    user: Mapped[Optional["User"]] = relationship("User", foreign_keys=[user_id], lazy="selectin")

    def __repr__(self) -> str:
        return f"<Inquiry(id={self.id}, property_id={self.property_id}, status={self.status})>"

    def to_dict(self) -> dict:
        result = {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "user_id": str(self.user_id) if self.user_id else None,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "message": self.message,
            "inquiry_type": self.inquiry_type.value,
            "status": self.status.value,
            "preferred_contact_method": self.preferred_contact_method.value,
            "preferred_date": self.preferred_date.isoformat() if self.preferred_date else None,
            "preferred_time": self.preferred_time,
            "assigned_to_id": str(self.assigned_to_id) if self.assigned_to_id else None,
            "notes": self.notes,
            "is_read": self.is_read,
            "response_time": self.response_time.isoformat() if self.response_time else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if self.property_rel is not None:
            result["property"] = {
                "id": str(self.property_rel.id),
                "title": self.property_rel.title,
                "city": self.property_rel.city,
            }

        return result


inquiry_status_index = Index(
    "idx_inquiries_status_created",
    Inquiry.status,
    Inquiry.created_at.desc()
)
