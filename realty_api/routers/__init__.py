"""
API routers for different endpoints.
"""

from .auth import router as auth_router
from .users import router as users_router
from .properties import router as properties_router
from .inquiries import router as inquiries_router
from .notifications import router as notifications_router
from .admin import router as admin_router
from .analytics import router as analytics_router

__all__ = [
    "auth_router",
    "users_router",
    "properties_router",
    "inquiries_router",
    "notifications_router",
    "admin_router",
    "analytics_router",
]
