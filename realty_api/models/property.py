"""
Property model for sale and rental listings.
Handles address, geolocation, feature set, images and agent ownership.
"""

from sqlalchemy import (
    String, Text, Integer, Float, Numeric, Boolean, JSON, Uuid,
    Enum as SQLEnum, Index, ForeignKey
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from realty_api.database import Base
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from realty_api.models.user import User
    from realty_api.models.image import PropertyImage


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    VILLA = "villa"
    LAND = "land"
    COMMERCIAL = "commercial"
    OFFICE = "office"
    OTHER = "other"


class PropertyStatus(str, enum.Enum):
    """Lifecycle status of a listing."""
    AVAILABLE = "available"
    SOLD = "sold"
    RENTED = "rented"
    PENDING = "pending"
    DRAFT = "draft"


class ListingType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"


class AreaUnit(str, enum.Enum):
    SQFT = "sqft"
    SQM = "sqm"


# Statuses that anonymous and regular users are allowed to browse
PUBLIC_STATUSES = (
    PropertyStatus.AVAILABLE,
    PropertyStatus.PENDING,
    PropertyStatus.SOLD,
    PropertyStatus.RENTED,
)


class Property(Base):
    """
    Property listing owned by an agent (or admin).
    The address and feature set are stored as flat columns so they can be filtered on.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType),
        nullable=False,
        index=True
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
        index=True
    )

    listing_type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType),
        nullable=False,
        index=True,
        comment="Whether the property is for sale or rent"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD"
    )

    # Address
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="USA")

    # Geolocation
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Features
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area: Mapped[float] = mapped_column(Float, nullable=False)
    area_unit: Mapped[AreaUnit] = mapped_column(
        SQLEnum(AreaUnit),
        nullable=False,
        default=AreaUnit.SQFT
    )
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    parking: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    floors: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the agent who owns this property"
    )

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    agent: Mapped["User"] = relationship("User", lazy="selectin")

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.display_order.asc()"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        """The image flagged primary, else the first image in insertion order."""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def is_public(self) -> bool:
        return self.is_published and self.status in PUBLIC_STATUSES

    def to_dict(self, include_agent: bool = True) -> dict:
        primary = self.primary_image
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "property_type": self.property_type.value,
            "status": self.status.value,
            "listing_type": self.listing_type.value,
            "price": float(self.price),
            "currency": self.currency,
            "address": {
                "street": self.street,
                "city": self.city,
                "state": self.state,
                "zip_code": self.zip_code,
                "country": self.country,
            },
            "location": (
                {"latitude": self.latitude, "longitude": self.longitude}
                if self.latitude is not None and self.longitude is not None
                else None
            ),
            "features": {
                "bedrooms": self.bedrooms,
                "bathrooms": self.bathrooms,
                "area": self.area,
                "area_unit": self.area_unit.value,
                "year_built": self.year_built,
                "parking": self.parking,
                "floors": self.floors,
            },
            "amenities": list(self.amenities or []),
            "images": [image.to_dict() for image in self.images],
            "primary_image": primary.to_dict() if primary else None,
            "agent_id": str(self.agent_id),
            "views": self.views,
            "is_featured": self.is_featured,
            "is_published": self.is_published,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_agent and self.agent:
            result["agent"] = self.agent.to_summary()

        return result


# Composite indexes for the common listing filters
status_type_index = Index(
    "idx_properties_status_type",
    Property.status,
    Property.property_type,
    Property.created_at.desc()
)

city_price_index = Index(
    "idx_properties_city_price",
    Property.city,
    Property.price
)

coordinates_index = Index(
    "idx_properties_coordinates",
    Property.latitude,
    Property.longitude
)
