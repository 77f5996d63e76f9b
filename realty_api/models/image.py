"""
PropertyImage model for media attached to a listing.
Each record points at an object held by the media storage (Cloudinary or local disk).
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column
from realty_api.database import Base
import uuid
from typing import Optional


class PropertyImage(Base):
    """Uploaded image or document belonging to a property."""

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Public URL of the stored file"
    )

    public_id: Mapped[str] = mapped_column(
        String(300),
        nullable=False,
        comment="Storage key used to delete the file"
    )

    caption: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    file_size: Mapped[int] = mapped_column(Integer, nullable=False, comment="File size in bytes")

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the primary image for the property"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Insertion order within the property's gallery"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, filename={self.filename})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "url": self.url,
            "public_id": self.public_id,
            "caption": self.caption,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "is_primary": self.is_primary,
            "display_order": self.display_order,
        }


property_images_order_index = Index(
    "idx_property_images_property_order",
    PropertyImage.property_id,
    PropertyImage.display_order.asc()
)
