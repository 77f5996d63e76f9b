"""
Pydantic schemas for inquiry requests.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
import uuid
from realty_api.models.inquiry import InquiryType, InquiryStatus, ContactMethod


class InquiryCreate(BaseModel):
    """
    Inquiry submitted about a listing.
    Used by both the public and the authenticated endpoint.
    """

    property_id: uuid.UUID = Field(..., alias="property", description="ID of the property asked about")
    name: Optional[str] = Field(None, max_length=100)
    email: EmailStr = Field(..., description="Where the agent should reply")
    phone: Optional[str] = Field(None, max_length=30)
    message: str = Field(..., min_length=1, max_length=1000)
    inquiry_type: InquiryType = InquiryType.INFORMATION
    preferred_contact_method: ContactMethod = ContactMethod.EMAIL
    preferred_date: Optional[datetime] = None
    preferred_time: Optional[str] = Field(None, max_length=20)

    model_config = {"populate_by_name": True}

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()

    @field_validator("name")
    @classmethod
    def clean_name(cls, v):
        return v.strip() if v and v.strip() else None


class InquiryUpdate(BaseModel):
    status: Optional[InquiryStatus] = None
    assigned_to_id: Optional[uuid.UUID] = Field(None, alias="assigned_to")
    notes: Optional[str] = Field(None, max_length=2000)

    model_config = {"populate_by_name": True}
