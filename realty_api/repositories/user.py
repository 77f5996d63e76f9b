"""
User repository for authentication and user management operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, desc
from realty_api.repositories.base import BaseRepository
from realty_api.models.user import User, UserRole
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts.
    Emails are stored normalised, so lookups lower-case their input.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email, password, full_name; role defaults to USER

        Raises:
            ValueError: If the email is malformed, taken, or the password too short
        """
        try:
            email = User.validate_email_format(user_data["email"])

            if await self.get_by_email(email):
                raise ValueError(f"User with email {email} already exists")

            data = dict(user_data)
            password = data.pop("password")

            create_data = {
                **data,
                "email": email,
                "hashed_password": User.hash_password(password),
                "role": data.get("role") or UserRole.USER,
                "is_active": data.get("is_active", True),
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.warning(f"User validation failed: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            query = (
                select(User)
                .where(User.email == email.lower().strip())
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Return the user when the password matches, None otherwise.
        Inactive accounts are returned so the caller can report them distinctly.
        """
        user = await self.get_by_email(email)
        if not user:
            logger.debug(f"Authentication failed: no user {email}")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: bad password for {email}")
            return None

        return user

    async def search_users(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None
    ) -> Tuple[List[User], int]:
        try:
            query = select(User)

            if role:
                query = query.where(User.role == role)
            if is_active is not None:
                query = query.where(User.is_active.is_(is_active))
            if search:
                term = f"%{search}%"
                query = query.where(or_(User.full_name.ilike(term), User.email.ilike(term)))

            query = query.order_by(desc(User.created_at), desc(User.id))
            return await self.paginate(query, page, limit)
        except Exception as e:
            logger.error(f"Failed to search users: {e}")
            raise

    async def check_email_availability(self, email: str, exclude_user_id: Optional[uuid.UUID] = None) -> bool:
        existing = await self.get_by_email(email)
        if existing is None:
            return True
        return exclude_user_id is not None and existing.id == exclude_user_id

    async def get_user_statistics(self) -> Dict[str, Any]:
        try:
            total = await self.count()
            active = await self.count({"is_active": True})
            by_role = await self.count_by("role")

            return {
                "total": total,
                "active": active,
                "inactive": total - active,
                "by_role": {role.value: by_role.get(role.value, 0) for role in UserRole},
            }
        except Exception as e:
            logger.error(f"Failed to get user statistics: {e}")
            raise
