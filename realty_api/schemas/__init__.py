"""
Pydantic schemas for request validation.
"""

from .auth import RegisterRequest, LoginRequest, RefreshTokenRequest, TokenResponse
from .user import UserBase, UserCreate, UserUpdate
from .property import AddressSchema, LocationSchema, FeaturesSchema, PropertyCreate, PropertyUpdate
from .inquiry import InquiryCreate, InquiryUpdate
from .notification import NotificationCreate
from .admin import BulkDeleteRequest
from .analytics import AnalyticsTrackRequest

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "TokenResponse",
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "AddressSchema",
    "LocationSchema",
    "FeaturesSchema",
    "PropertyCreate",
    "PropertyUpdate",
    "InquiryCreate",
    "InquiryUpdate",
    "NotificationCreate",
    "BulkDeleteRequest",
    "AnalyticsTrackRequest",
]
