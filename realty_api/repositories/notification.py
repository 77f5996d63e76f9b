"""
Notification repository scoped by recipient.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, desc
from realty_api.repositories.base import BaseRepository
from realty_api.models.notification import Notification
from datetime import datetime, timezone
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def get_for_recipient(self, notification_id: uuid.UUID, recipient_id: uuid.UUID) -> Optional[Notification]:
        query = (
            select(Notification)
            .where(and_(Notification.id == notification_id, Notification.recipient_id == recipient_id))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_recipient(
        self,
        recipient_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False
    ) -> Tuple[List[Notification], int]:
        query = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(desc(Notification.created_at), desc(Notification.id))
        return await self.paginate(query, page, limit)

    async def unread_count(self, recipient_id: uuid.UUID) -> int:
        return await self.count({"recipient_id": recipient_id, "is_read": False})

    async def mark_read(self, notification_id: uuid.UUID, recipient_id: uuid.UUID) -> Optional[Notification]:
        notification = await self.get_for_recipient(notification_id, recipient_id)
        if notification is None:
            return None
        if notification.is_read:
            return notification
        return await self.update(notification_id, {"is_read": True, "read_at": datetime.now(timezone.utc)})

    async def mark_all_read(self, recipient_id: uuid.UUID) -> int:
        try:
            result = await self.db.execute(
                update(Notification)
                .where(and_(Notification.recipient_id == recipient_id, Notification.is_read.is_(False)))
                .values(is_read=True, read_at=datetime.now(timezone.utc))
            )
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to mark notifications read for {recipient_id}: {e}")
            raise

    async def delete_for_recipient(self, notification_id: uuid.UUID, recipient_id: uuid.UUID) -> bool:
        try:
            result = await self.db.execute(
                delete(Notification).where(
                    and_(Notification.id == notification_id, Notification.recipient_id == recipient_id)
                )
            )
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete notification {notification_id}: {e}")
            raise

    async def delete_all_for_recipient(self, recipient_id: uuid.UUID) -> int:
        try:
            result = await self.db.execute(delete(Notification).where(Notification.recipient_id == recipient_id))
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete notifications for {recipient_id}: {e}")
            raise

    async def delete_read_before(self, cutoff: datetime) -> int:
        """Remove read notifications created before cutoff."""
        try:
            result = await self.db.execute(
                delete(Notification).where(
                    and_(Notification.is_read.is_(True), Notification.created_at < cutoff)
                )
            )
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to clean up old notifications: {e}")
            raise
