"""
Maintenance jobs: data retention cleanup, analytics aggregation, view count
recalculation and the weekly activity report.

The jobs run as dramatiq actors on the worker; cron triggers only enqueue them.
"""

from typing import Any, Dict
from datetime import datetime, timedelta, timezone
import logging

import dramatiq
from sqlalchemy.ext.asyncio import AsyncSession

from realty_api.database import AsyncSessionLocal
from realty_api.repositories.analytics import AnalyticsRepository, TokenBlacklistRepository
from realty_api.repositories.notification import NotificationRepository
from realty_api.repositories.property import PropertyRepository
from realty_api.repositories.user import UserRepository
from realty_api.services.scheduler import TaskScheduler

logger = logging.getLogger(__name__)

NOTIFICATION_RETENTION_DAYS = 30
ANALYTICS_RETENTION_DAYS = 90
MAINTENANCE_QUEUE = "maintenance"

# actor name -> cron expression
MAINTENANCE_SCHEDULE = {
    "cleanup_expired_data": "0 2 * * *",
    "aggregate_daily_analytics": "55 23 * * *",
    "update_property_view_counts": "0 * * * *",
    "generate_weekly_report": "0 9 * * mon",
}


class MaintenanceService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.notification_repo = NotificationRepository(db_session)
        self.analytics_repo = AnalyticsRepository(db_session)
        self.blacklist_repo = TokenBlacklistRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def cleanup_expired_notifications(self, days: int = NOTIFICATION_RETENTION_DAYS) -> int:
        """Delete read notifications older than `days`."""
        deleted = await self.notification_repo.delete_read_before(self._now() - timedelta(days=days))
        logger.info(f"Cleanup: deleted {deleted} old notifications")
        return deleted

    async def cleanup_old_analytics(self, days: int = ANALYTICS_RETENTION_DAYS) -> int:
        deleted = await self.analytics_repo.delete_before(self._now() - timedelta(days=days))
        logger.info(f"Cleanup: deleted {deleted} old analytics events")
        return deleted

    async def cleanup_expired_tokens(self) -> int:
        deleted = await self.blacklist_repo.delete_expired(self._now())
        logger.info(f"Cleanup: removed {deleted} expired blacklisted tokens")
        return deleted

    async def run_all_cleanup_tasks(self) -> Dict[str, int]:
        logger.info("Starting cleanup tasks")
        deleted = {
            "notifications": await self.cleanup_expired_notifications(),
            "analytics": await self.cleanup_old_analytics(),
            "tokens": await self.cleanup_expired_tokens(),
        }
        logger.info(f"All cleanup tasks completed: {deleted}")
        return deleted

    async def aggregate_daily_analytics(self) -> Dict[str, Any]:
        """Event counts by type since midnight UTC."""
        today = self._now().replace(hour=0, minute=0, second=0, microsecond=0)
        events = await self.analytics_repo.counts_by_type(today)
        logger.info(f"Daily analytics aggregated for {today.date()}: {events}")
        return {"date": today.date().isoformat(), "events": events}

    async def update_property_view_counts(self) -> Dict[str, int]:
        """Overwrite each property's counter with its recorded property_view events."""
        counts = await self.analytics_repo.property_view_counts()
        updated = await self.property_repo.set_view_counts(counts)
        logger.info(f"Updated view counts for {updated} properties")
        return {"updated": updated}

    async def generate_weekly_report(self) -> Dict[str, Any]:
        since = self._now() - timedelta(days=7)

        views = await self.analytics_repo.property_view_counts(since=since)
        top = sorted(views.items(), key=lambda item: item[1], reverse=True)[:10]

        report = {
            "period": "Last 7 days",
            "total_events": await self.analytics_repo.count_created_since(since),
            "new_users": await self.user_repo.count_created_since(since),
            "new_properties": await self.property_repo.count_created_since(since),
            "top_properties": [{"property_id": str(pid), "views": count} for pid, count in top],
            "generated_at": self._now().isoformat(),
        }
        logger.info(f"Weekly report generated: {report}")
        return report


def create_maintenance_tasks(broker, session_factory=None):
    """Declare one actor per maintenance job on the broker."""
    session_factory = session_factory or AsyncSessionLocal

    def make_actor(name: str, job: str):
        @dramatiq.actor(actor_name=name, queue_name=MAINTENANCE_QUEUE, max_retries=3, broker=broker)
        async def run_job():
            async with session_factory() as db:
                return await getattr(MaintenanceService(db), job)()

        return run_job

    return {
        "cleanup_expired_data": make_actor("cleanup_expired_data", "run_all_cleanup_tasks"),
        "aggregate_daily_analytics": make_actor("aggregate_daily_analytics", "aggregate_daily_analytics"),
        "update_property_view_counts": make_actor("update_property_view_counts", "update_property_view_counts"),
        "generate_weekly_report": make_actor("generate_weekly_report", "generate_weekly_report"),
    }


def register_maintenance_schedule(scheduler: TaskScheduler, broker) -> None:
    """Cron triggers that enqueue each maintenance actor."""
    for name, expression in MAINTENANCE_SCHEDULE.items():
        scheduler.schedule_task(name, expression, lambda actor_name=name: broker.get_actor(actor_name).send())
