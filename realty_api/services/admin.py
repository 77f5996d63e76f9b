"""
Admin service: dashboard totals, analytics summaries, system health and
maintenance operations.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
import logging
import os
import time

import psutil
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from realty_api.config import settings
from realty_api.models.inquiry import InquiryStatus
from realty_api.models.user import User
from realty_api.repositories.inquiry import InquiryRepository
from realty_api.repositories.property import PropertyRepository
from realty_api.repositories.user import UserRepository
from realty_api.services.analytics import AnalyticsService
from realty_api.services.cache import ResponseCache
from realty_api.services.email_queue import EmailQueue
from realty_api.services.maintenance import MaintenanceService
from realty_api.services.media_storage import MediaStorage
from realty_api.services.property import PropertyService
from realty_api.services.user import UserService
from realty_api.utils.exceptions import InternalServerError

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


class AdminService:
    def __init__(
        self,
        db_session: AsyncSession,
        cache: Optional[ResponseCache] = None,
        email_queue: Optional[EmailQueue] = None,
        storage: Optional[MediaStorage] = None
    ):
        self.db = db_session
        self.cache = cache
        self.email_queue = email_queue
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.inquiry_repo = InquiryRepository(db_session)
        self.analytics = AnalyticsService(db_session)
        self.maintenance = MaintenanceService(db_session)
        self.property_service = PropertyService(db_session, storage)
        self.user_service = UserService(db_session)

    async def get_dashboard(self) -> Dict[str, Any]:
        try:
            recent_properties = await self.property_repo.get_recent(RECENT_LIMIT)
            recent_inquiries = await self.inquiry_repo.get_recent(RECENT_LIMIT)
            return {
                "totals": {
                    "users": await self.user_repo.count(),
                    "properties": await self.property_repo.count(),
                    "inquiries": await self.inquiry_repo.count(),
                    "pending_inquiries": await self.inquiry_repo.count({"status": InquiryStatus.PENDING}),
                },
                "recent_properties": [p.to_dict(include_agent=False) for p in recent_properties],
                "recent_inquiries": [i.to_dict() for i in recent_inquiries],
            }
        except Exception as e:
            logger.error(f"Failed to build admin dashboard: {e}")
            raise InternalServerError("Failed to retrieve dashboard data")

    async def get_analytics(self, days: int = 30) -> Dict[str, Any]:
        try:
            return await self.analytics.get_analytics(days)
        except Exception as e:
            logger.error(f"Failed to compute analytics for {days} days: {e}")
            raise InternalServerError("Failed to retrieve analytics")

    async def _check_database(self) -> Dict[str, Any]:
        start = time.time()
        try:
            await self.db.execute(text("SELECT 1"))
            return {"status": "healthy", "response_time_ms": round((time.time() - start) * 1000, 2)}
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}

    async def _check_cache(self) -> Dict[str, Any]:
        if self.cache is None:
            return {"status": "disabled"}
        try:
            await self.cache.ping()
            return {"status": "healthy"}
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}

    async def _check_email_queue(self) -> Dict[str, Any]:
        if self.email_queue is None:
            return {"status": "disabled"}
        try:
            stats = await run_in_threadpool(self.email_queue.get_queue_stats)
            return {"status": "healthy", "stats": stats}
        except Exception as e:
            logger.error(f"Email queue health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}

    @staticmethod
    def _process_metrics() -> Dict[str, Any]:
        memory = psutil.virtual_memory()
        process = psutil.Process(os.getpid())
        process_memory = process.memory_info()
        return {
            "system": {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory_percent": memory.percent,
                "memory_total": memory.total,
                "memory_available": memory.available,
            },
            "process": {
                "memory_rss": process_memory.rss,
                "memory_vms": process_memory.vms,
                "cpu_percent": process.cpu_percent(),
                "num_threads": process.num_threads(),
                "uptime_seconds": round(time.time() - process.create_time(), 1),
            },
        }

    async def get_system_health(self) -> Dict[str, Any]:
        """
        Reachability of each dependency plus process metrics.
        Overall status is unhealthy when the database is down and degraded
        when only an auxiliary dependency is.
        """
        checks = {
            "database": await self._check_database(),
            "cache": await self._check_cache(),
            "email_queue": await self._check_email_queue(),
        }

        if checks["database"]["status"] != "healthy":
            status = "unhealthy"
        elif any(check["status"] == "unhealthy" for check in checks.values()):
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
            "checks": checks,
            "features": settings.optional_features(),
            **self._process_metrics(),
        }

    async def run_cleanup(self) -> Dict[str, int]:
        try:
            return await self.maintenance.run_all_cleanup_tasks()
        except Exception as e:
            logger.error(f"Manual cleanup failed: {e}")
            raise InternalServerError("Cleanup failed")

    async def bulk_delete_users(self, ids: List, current_user: User) -> int:
        return await self.user_service.bulk_delete(ids, current_user)

    async def bulk_delete_properties(self, ids: List, current_user: User) -> int:
        return await self.property_service.bulk_delete(ids, current_user)
