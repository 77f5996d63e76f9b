"""
Service layer for business logic implementation.
"""

from .auth import AuthService
from .property import PropertyService
from .inquiry import InquiryService
from .notification import NotificationService
from .user import UserService
from .admin import AdminService
from .analytics import AnalyticsService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "InquiryService",
    "NotificationService",
    "UserService",
    "AdminService",
    "AnalyticsService",
    "ErrorHandlerService",
]
