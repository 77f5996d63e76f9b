"""
User management service for administrators.
"""

from typing import Optional, Tuple, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.repositories.user import UserRepository
from realty_api.models.user import User, UserRole
from realty_api.schemas.user import UserCreate, UserUpdate
from realty_api.utils.exceptions import (
    APIException,
    NotFoundError,
    DuplicateResourceError,
    BadRequestError,
    ValidationError,
    InternalServerError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None
    ) -> Tuple[List[User], int]:
        try:
            return await self.user_repo.search_users(page, limit, role, is_active, search)
        except Exception as e:
            logger.error(f"Failed to list users: {e}")
            raise InternalServerError("Failed to retrieve users")

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def create_user(self, data: UserCreate, current_user: User) -> User:
        try:
            if not await self.user_repo.check_email_availability(data.email):
                raise DuplicateResourceError("User", data.email)

            user = await self.user_repo.create_user(data.model_dump())
            logger.info(f"User created by {current_user.email}: {user.email} ({user.role.value})")
            return user
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise InternalServerError("Failed to create user")

    async def update_user(self, user_id: uuid.UUID, data: UserUpdate, current_user: User) -> User:
        user = await self.get_user(user_id)

        try:
            update_data: Dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)

            if "email" in update_data:
                update_data["email"] = User.validate_email_format(update_data["email"])
                if not await self.user_repo.check_email_availability(update_data["email"], exclude_user_id=user.id):
                    raise DuplicateResourceError("User", update_data["email"])

            if "password" in update_data:
                update_data["hashed_password"] = User.hash_password(update_data.pop("password"))

            if user.id == current_user.id and (
                update_data.get("is_active") is False
                or update_data.get("role", UserRole.ADMIN) != UserRole.ADMIN
            ):
                raise BadRequestError("You cannot deactivate or demote your own account")

            updated = await self.user_repo.update(user.id, update_data)
            logger.info(f"User {user_id} updated by {current_user.email}")
            return updated
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {e}")
            raise InternalServerError("Failed to update user")

    async def delete_user(self, user_id: uuid.UUID, current_user: User) -> None:
        if user_id == current_user.id:
            raise BadRequestError("You cannot delete your own account")

        await self.get_user(user_id)
        try:
            await self.user_repo.delete(user_id)
            logger.info(f"User {user_id} deleted by {current_user.email}")
        except Exception as e:
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise InternalServerError("Failed to delete user")

    async def toggle_status(self, user_id: uuid.UUID, current_user: User) -> User:
        if user_id == current_user.id:
            raise BadRequestError("You cannot change the status of your own account")

        user = await self.get_user(user_id)
        try:
            updated = await self.user_repo.update(user.id, {"is_active": not user.is_active})
            state = "activated" if updated.is_active else "deactivated"
            logger.info(f"User {user_id} {state} by {current_user.email}")
            return updated
        except Exception as e:
            logger.error(f"Failed to toggle status for user {user_id}: {e}")
            raise InternalServerError("Failed to update user status")

    async def get_statistics(self) -> Dict[str, Any]:
        try:
            return await self.user_repo.get_user_statistics()
        except Exception as e:
            logger.error(f"Failed to compute user statistics: {e}")
            raise InternalServerError("Failed to retrieve user statistics")

    async def bulk_delete(self, ids: List[uuid.UUID], current_user: User) -> int:
        """Delete many users at once; the caller's own id is always skipped."""
        targets = [user_id for user_id in ids if user_id != current_user.id]
        try:
            deleted = await self.user_repo.bulk_delete(targets)
            logger.info(f"Bulk deleted {deleted} users by {current_user.email}")
            return deleted
        except Exception as e:
            logger.error(f"Failed to bulk delete users: {e}")
            raise InternalServerError("Failed to delete users")
