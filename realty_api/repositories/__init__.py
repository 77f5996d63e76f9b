"""
Repository layer for database operations.
"""

from .base import BaseRepository
from .user import UserRepository
from .property import PropertyRepository, PropertySearchFilters
from .image import ImageRepository
from .inquiry import InquiryRepository, InquiryFilters
from .notification import NotificationRepository
from .analytics import AnalyticsRepository, TokenBlacklistRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "ImageRepository",
    "InquiryRepository",
    "InquiryFilters",
    "NotificationRepository",
    "AnalyticsRepository",
    "TokenBlacklistRepository",
]
