"""
Notification service: the per-user feed plus the internal `notify` helper
used by other services when something happens to a user's records.
"""

from typing import Optional, Tuple, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.repositories.notification import NotificationRepository
from realty_api.repositories.user import UserRepository
from realty_api.models.notification import Notification, NotificationType, NotificationPriority
from realty_api.models.user import User
from realty_api.schemas.notification import NotificationCreate
from realty_api.utils.exceptions import NotFoundError, NotificationNotFoundError, InternalServerError
import uuid
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.repo = NotificationRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def notify(
        self,
        recipient_id: uuid.UUID,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        sender_id: Optional[uuid.UUID] = None,
        related_model: Optional[str] = None,
        related_id: Optional[Any] = None,
        action_url: Optional[str] = None
    ) -> Optional[Notification]:
        """
        Store a notification for a user.

        Side-effect helper: failures are logged and None is returned so the
        triggering operation still succeeds.
        """
        try:
            notification = await self.repo.create({
                "recipient_id": recipient_id,
                "sender_id": sender_id,
                "title": title[:100],
                "message": message[:500],
                "type": type,
                "priority": priority,
                "related_model": related_model,
                "related_id": str(related_id) if related_id is not None else None,
                "action_url": action_url,
            })
            logger.debug(f"Notification {notification.id} sent to {recipient_id}")
            return notification
        except Exception as e:
            logger.error(f"Failed to notify user {recipient_id}: {e}")
            return None

    async def create(self, data: NotificationCreate, sender: User) -> Notification:
        if not await self.user_repo.exists(data.recipient_id):
            raise NotFoundError("User", str(data.recipient_id))

        try:
            payload = data.model_dump()
            payload["sender_id"] = sender.id
            notification = await self.repo.create(payload)
            logger.info(f"Notification {notification.id} created by {sender.email}")
            return notification
        except Exception as e:
            logger.error(f"Failed to create notification: {e}")
            raise InternalServerError("Failed to create notification")

    async def list_for_user(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False
    ) -> Tuple[List[Notification], int, int]:
        """
        Returns:
            Tuple of (notifications on the page, total, unread count)
        """
        try:
            items, total = await self.repo.list_for_recipient(user.id, page, limit, unread_only)
            unread = await self.repo.unread_count(user.id)
            return items, total, unread
        except Exception as e:
            logger.error(f"Failed to list notifications for {user.id}: {e}")
            raise InternalServerError("Failed to retrieve notifications")

    async def unread_count(self, user: User) -> int:
        return await self.repo.unread_count(user.id)

    async def get(self, notification_id: uuid.UUID, user: User) -> Notification:
        notification = await self.repo.get_for_recipient(notification_id, user.id)
        if notification is None:
            raise NotificationNotFoundError(str(notification_id))
        return notification

    async def mark_read(self, notification_id: uuid.UUID, user: User) -> Notification:
        notification = await self.repo.mark_read(notification_id, user.id)
        if notification is None:
            raise NotificationNotFoundError(str(notification_id))
        return notification

    async def mark_all_read(self, user: User) -> int:
        updated = await self.repo.mark_all_read(user.id)
        logger.info(f"Marked {updated} notifications read for {user.id}")
        return updated

    async def delete(self, notification_id: uuid.UUID, user: User) -> None:
        if not await self.repo.delete_for_recipient(notification_id, user.id):
            raise NotificationNotFoundError(str(notification_id))

    async def delete_all(self, user: User) -> int:
        return await self.repo.delete_all_for_recipient(user.id)
