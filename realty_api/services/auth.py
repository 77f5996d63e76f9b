"""
Authentication service for registration, login, token refresh and logout.
"""

from typing import Optional, Tuple
from datetime import datetime, timezone
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.config import settings
from realty_api.repositories.user import UserRepository
from realty_api.repositories.analytics import TokenBlacklistRepository
from realty_api.models.user import User
from realty_api.models.analytics import EventType
from realty_api.schemas.auth import RegisterRequest
from realty_api.services.analytics import AnalyticsService
from realty_api.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    token_digest
)
from realty_api.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    DuplicateResourceError,
    ValidationError,
    InternalServerError
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication flows and token management.
    Tokens revoked at logout are kept in the blacklist until they expire.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.blacklist_repo = TokenBlacklistRepository(db_session)
        self.analytics = AnalyticsService(db_session)

    async def register(self, data: RegisterRequest, request: Optional[Request] = None) -> Tuple[User, str, str]:
        """
        Create an account and sign it in.

        Raises:
            DuplicateResourceError: If the email is already registered
        """
        try:
            if not await self.user_repo.check_email_availability(data.email):
                raise DuplicateResourceError("User", data.email)

            user = await self.user_repo.create_user(data.model_dump())
            access_token, refresh_token = self.create_tokens(user)
            logger.info(f"User registered: {user.email}")
            await self.analytics.record_event(
                EventType.USER_REGISTERED, user_id=user.id, request=request,
                related_model="user", related_id=user.id
            )
            return user, access_token, refresh_token
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Registration failed for {data.email}: {e}")
            raise InternalServerError("Failed to register user")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise InactiveUserError()

        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str, request: Optional[Request] = None) -> Tuple[User, str, str]:
        """
        Authenticate, stamp last_login and issue tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        try:
            user = await self.user_repo.update(user.id, {"last_login": datetime.now(timezone.utc)})
        except Exception as e:
            logger.error(f"Failed to update last_login for {email}: {e}")
            raise InternalServerError("Login failed")

        access_token, refresh_token = self.create_tokens(user)
        logger.info(f"User logged in: {user.email}")
        await self.analytics.record_event(EventType.USER_LOGIN, user_id=user.id, request=request)
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> Tuple[str, str]:
        """
        Exchange a refresh token for a new token pair.

        Raises:
            InvalidTokenError, TokenExpiredError, InactiveUserError
        """
        payload = self._decode(refresh_token, "refresh")

        if await self.blacklist_repo.is_blacklisted(token_digest(refresh_token)):
            raise InvalidTokenError("Token has been revoked")

        user = await self._load_user(payload.user_id)
        return self.create_tokens(user)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            InvalidTokenError: If token is invalid, revoked or its user is gone
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        payload = self._decode(token, "access")

        if await self.blacklist_repo.is_blacklisted(token_digest(token)):
            raise InvalidTokenError("Token has been revoked")

        return await self._load_user(payload.user_id)

    async def logout(self, token: str, user: User, request: Optional[Request] = None) -> None:
        """Blacklist the access token until its natural expiry."""
        payload = self._decode(token, "access")
        digest = token_digest(token)

        if not await self.blacklist_repo.is_blacklisted(digest):
            try:
                await self.blacklist_repo.create({
                    "token": token,
                    "token_digest": digest,
                    "token_type": "access",
                    "user_id": user.id,
                    "reason": "logout",
                    "expires_at": payload.exp,
                })
            except Exception as e:
                logger.error(f"Failed to blacklist token for {user.email}: {e}")
                raise InternalServerError("Logout failed")

        logger.info(f"User logged out: {user.email}")
        await self.analytics.record_event(EventType.USER_LOGOUT, user_id=user.id, request=request)

    @staticmethod
    def _decode(token: str, token_type: str):
        try:
            return verify_token(token, token_type=token_type)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(str(e) or "Invalid token")

    async def _load_user(self, user_id: str) -> User:
        try:
            user = await self.user_repo.get_by_id(uuid.UUID(user_id))
        except ValueError:
            raise InvalidTokenError("Invalid token subject")

        if not user:
            raise InvalidTokenError("User no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user

    @staticmethod
    def access_token_lifetime_seconds() -> int:
        return settings.access_token_expire_minutes * 60
