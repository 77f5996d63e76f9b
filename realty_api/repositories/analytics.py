"""
Repositories for analytics events and revoked tokens.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, and_, desc
from realty_api.repositories.base import BaseRepository
from realty_api.models.analytics import AnalyticsEvent, EventType, TokenBlacklist
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class AnalyticsRepository(BaseRepository[AnalyticsEvent]):
    def __init__(self, db: AsyncSession):
        super().__init__(AnalyticsEvent, db)

    async def counts_by_type(self, since: datetime) -> Dict[str, int]:
        result = await self.db.execute(
            select(AnalyticsEvent.event_type, func.count(AnalyticsEvent.id))
            .where(AnalyticsEvent.created_at >= since)
            .group_by(AnalyticsEvent.event_type)
        )
        return {row[0].value: row[1] for row in result.all()}

    async def daily_counts(self, since: datetime) -> List[Dict[str, Any]]:
        day = func.date(AnalyticsEvent.created_at)
        result = await self.db.execute(
            select(day.label("day"), func.count(AnalyticsEvent.id))
            .where(AnalyticsEvent.created_at >= since)
            .group_by(day)
            .order_by(day)
        )
        return [{"date": str(row[0]), "count": row[1]} for row in result.all()]

    @staticmethod
    def _window(start: Optional[datetime], end: Optional[datetime]) -> List[Any]:
        conditions = []
        if start is not None:
            conditions.append(AnalyticsEvent.created_at >= start)
        if end is not None:
            conditions.append(AnalyticsEvent.created_at <= end)
        return conditions

    async def list_events(
        self,
        page: int = 1,
        limit: int = 50,
        event_type: Optional[EventType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Tuple[List[AnalyticsEvent], int]:
        conditions = self._window(start, end)
        if event_type is not None:
            conditions.append(AnalyticsEvent.event_type == event_type)

        query = select(AnalyticsEvent)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(desc(AnalyticsEvent.created_at), desc(AnalyticsEvent.id))
        return await self.paginate(query, page, limit)

    async def summary(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        """Event totals in a window: overall, per type (largest first) and per device."""
        conditions = self._window(start, end)

        def windowed(query):
            return query.where(and_(*conditions)) if conditions else query

        total = (await self.db.execute(windowed(select(func.count(AnalyticsEvent.id))))).scalar() or 0

        count = func.count(AnalyticsEvent.id).label("count")
        by_type = await self.db.execute(
            windowed(select(AnalyticsEvent.event_type, count))
            .group_by(AnalyticsEvent.event_type)
            .order_by(desc("count"))
        )
        by_device = await self.db.execute(
            windowed(select(AnalyticsEvent.device, count))
            .group_by(AnalyticsEvent.device)
        )
        return {
            "total_events": total,
            "events_by_type": [{"type": row[0].value, "count": row[1]} for row in by_type.all()],
            "device_breakdown": {row[0].value: row[1] for row in by_device.all()},
        }

    async def property_view_counts(self, since: Optional[datetime] = None) -> Dict[uuid.UUID, int]:
        """Number of recorded property_view events per property."""
        conditions = [
            AnalyticsEvent.event_type == EventType.PROPERTY_VIEW,
            AnalyticsEvent.related_id.isnot(None),
        ]
        if since is not None:
            conditions.append(AnalyticsEvent.created_at >= since)

        result = await self.db.execute(
            select(AnalyticsEvent.related_id, func.count(AnalyticsEvent.id))
            .where(and_(*conditions))
            .group_by(AnalyticsEvent.related_id)
        )
        counts = {}
        for related_id, count in result.all():
            try:
                counts[uuid.UUID(related_id)] = count
            except ValueError:
                logger.warning(f"Skipping property_view event with malformed related_id {related_id!r}")
        return counts

    async def delete_before(self, cutoff: datetime) -> int:
        try:
            result = await self.db.execute(delete(AnalyticsEvent).where(AnalyticsEvent.created_at < cutoff))
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to clean up analytics events: {e}")
            raise


class TokenBlacklistRepository(BaseRepository[TokenBlacklist]):
    def __init__(self, db: AsyncSession):
        super().__init__(TokenBlacklist, db)

    async def is_blacklisted(self, digest: str) -> bool:
        result = await self.db.execute(
            select(func.count(TokenBlacklist.id)).where(TokenBlacklist.token_digest == digest)
        )
        return (result.scalar() or 0) > 0

    async def delete_expired(self, now: datetime) -> int:
        try:
            result = await self.db.execute(delete(TokenBlacklist).where(TokenBlacklist.expires_at < now))
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to clean up expired blacklisted tokens: {e}")
            raise
