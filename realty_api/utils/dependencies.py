"""
FastAPI dependency injection utilities for authentication, services and
shared infrastructure (cache, email queue, media storage).
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.database import get_db
from realty_api.models.user import User, UserRole
from realty_api.services.auth import AuthService
from realty_api.services.property import PropertyService
from realty_api.services.inquiry import InquiryService
from realty_api.services.notification import NotificationService
from realty_api.services.user import UserService
from realty_api.services.admin import AdminService
from realty_api.services.analytics import AnalyticsService
from realty_api.services.email_queue import EmailQueue
from realty_api.services.cache import ResponseCache
from realty_api.services.media_storage import MediaStorage, get_storage
from realty_api.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    ForbiddenError
)
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

PERMISSION_DENIED = "You do not have permission to perform this action"


def get_media_storage() -> MediaStorage:
    return get_storage()


def get_email_queue_dep(request: Request) -> Optional[EmailQueue]:
    return getattr(request.app.state, "email_queue", None)


def get_response_cache(request: Request) -> Optional[ResponseCache]:
    return getattr(request.app.state, "response_cache", None)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
) -> PropertyService:
    return PropertyService(db, storage)


async def get_inquiry_service(
    db: AsyncSession = Depends(get_db),
    email_queue: Optional[EmailQueue] = Depends(get_email_queue_dep)
) -> InquiryService:
    return InquiryService(db, email_queue)


async def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


async def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


async def get_admin_service(
    db: AsyncSession = Depends(get_db),
    cache: Optional[ResponseCache] = Depends(get_response_cache),
    email_queue: Optional[EmailQueue] = Depends(get_email_queue_dep),
    storage: MediaStorage = Depends(get_media_storage)
) -> AdminService:
    return AdminService(db, cache, email_queue, storage)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from the bearer token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid, expired or revoked
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, InactiveUserError):
        raise
    except Exception as e:
        logger.error(f"Authentication failed: {e}")
        raise UnauthorizedError("Authentication required")


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    if not credentials:
        raise UnauthorizedError("Authentication required")
    return credentials.credentials


def require_roles(*roles: UserRole):
    """Dependency factory allowing only the given roles."""

    async def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"User {current_user.email} ({current_user.role.value}) denied; requires {[r.value for r in roles]}")
            raise ForbiddenError(PERMISSION_DENIED)
        return current_user

    return role_dependency


get_current_admin_user = require_roles(UserRole.ADMIN)
get_current_agent_user = require_roles(UserRole.ADMIN, UserRole.AGENT)


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Current user when a valid token is sent, None otherwise.
    Public endpoints use it to widen visibility for agents and admins.
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, InactiveUserError) as e:
        logger.debug(f"Ignoring invalid credentials on public endpoint: {e.detail}")
        return None
