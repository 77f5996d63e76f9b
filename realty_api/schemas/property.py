"""
Pydantic schemas for property requests.
Address, location and features arrive nested and are flattened onto the model columns.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from decimal import Decimal
from realty_api.models.property import PropertyType, PropertyStatus, ListingType, AreaUnit


class AddressSchema(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("USA", max_length=100)

    @field_validator("street", "city", "state", "zip_code", "country")
    @classmethod
    def strip_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class LocationSchema(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class FeaturesSchema(BaseModel):
    bedrooms: int = Field(0, ge=0, le=100)
    bathrooms: int = Field(0, ge=0, le=100)
    area: float = Field(..., gt=0, description="Living or lot area")
    area_unit: AreaUnit = AreaUnit.SQFT
    year_built: Optional[int] = Field(None, ge=1800, le=2100)
    parking: int = Field(0, ge=0, le=100)
    floors: int = Field(1, ge=0, le=200)


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    title: str = Field(..., min_length=1, max_length=200, examples=["Sunny 3BR house with garden"])
    description: str = Field(..., min_length=1, max_length=5000)
    property_type: PropertyType
    status: PropertyStatus = PropertyStatus.AVAILABLE
    listing_type: ListingType
    price: Decimal = Field(..., ge=0, le=Decimal("999999999999.99"))
    currency: str = Field("USD", min_length=3, max_length=3)
    address: AddressSchema
    location: Optional[LocationSchema] = None
    features: FeaturesSchema
    amenities: List[str] = Field(default_factory=list)
    is_featured: bool = False
    is_published: bool = True

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper()

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        return [item.strip() for item in v if item and item.strip()]

    def to_model_fields(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"address", "location", "features"})
        data.update(self.address.model_dump())
        data.update(self.features.model_dump())
        if self.location is not None:
            data.update(self.location.model_dump())
        return data


class PropertyUpdate(BaseModel):
    """Partial update; nested groups replace only the keys they carry."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    listing_type: Optional[ListingType] = None
    price: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999999999.99"))
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    address: Optional[Dict[str, Any]] = None
    location: Optional[LocationSchema] = None
    features: Optional[Dict[str, Any]] = None
    amenities: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    is_published: Optional[bool] = None

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if v is None:
            return v
        allowed = set(AddressSchema.model_fields)
        unknown = set(v) - allowed
        if unknown:
            raise ValueError(f"Unknown address fields: {', '.join(sorted(unknown))}")
        for key, value in v.items():
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Address field '{key}' cannot be empty")
        return {key: value.strip() for key, value in v.items()}

    @field_validator("features")
    @classmethod
    def validate_features(cls, v):
        if v is None:
            return v
        allowed = set(FeaturesSchema.model_fields)
        unknown = set(v) - allowed
        if unknown:
            raise ValueError(f"Unknown feature fields: {', '.join(sorted(unknown))}")
        # Validate the partial values against the full schema's constraints
        sample = {"area": 1, **v}
        validated = FeaturesSchema(**sample).model_dump()
        return {key: validated[key] for key in v}

    def to_model_fields(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude={"address", "location", "features"})
        # Explicit nulls are not meaningful for these columns
        data = {key: value for key, value in data.items() if value is not None}
        if self.address:
            data.update(self.address)
        if self.features:
            data.update(self.features)
        if "location" in self.model_fields_set:
            if self.location is None:
                data.update({"latitude": None, "longitude": None})
            else:
                data.update(self.location.model_dump())
        if "currency" in data:
            data["currency"] = data["currency"].upper()
        return data
