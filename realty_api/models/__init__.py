"""
Database models for the Realty API.
"""

from realty_api.models.user import User, UserRole
from realty_api.models.property import Property, PropertyType, PropertyStatus, ListingType, AreaUnit
from realty_api.models.image import PropertyImage
from realty_api.models.inquiry import Inquiry, InquiryType, InquiryStatus, ContactMethod
from realty_api.models.notification import Notification, NotificationType, NotificationPriority
from realty_api.models.analytics import AnalyticsEvent, EventType, DeviceType, TokenBlacklist

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "ListingType",
    "AreaUnit",
    "PropertyImage",
    "Inquiry",
    "InquiryType",
    "InquiryStatus",
    "ContactMethod",
    "Notification",
    "NotificationType",
    "NotificationPriority",
    "AnalyticsEvent",
    "EventType",
    "DeviceType",
    "TokenBlacklist",
]
