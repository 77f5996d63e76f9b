"""
Analytics service for recording usage events and summarising them.
record_event never raises: a failed insert is logged and rolled back.
"""

from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime, timedelta, timezone
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.models.analytics import AnalyticsEvent, EventType
from realty_api.models.user import User
from realty_api.repositories.analytics import AnalyticsRepository
from realty_api.schemas.analytics import AnalyticsTrackRequest
from realty_api.utils.exceptions import InternalServerError, ValidationError
import uuid
import logging

logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class AnalyticsService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.repo = AnalyticsRepository(db_session)

    async def record_event(
        self,
        event_type: EventType,
        event_name: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        request: Optional[Request] = None,
        related_model: Optional[str] = None,
        related_id: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **client_fields: Any
    ) -> Optional[AnalyticsEvent]:
        """
        Persist one analytics event.

        Args:
            client_fields: Client-reported columns (session_id, device, path, ...);
                a reported path replaces the request path

        Returns:
            The stored event, or None if it could not be written
        """
        event = AnalyticsEvent(
            event_type=event_type,
            event_name=event_name or event_type.value,
            user_id=user_id,
            related_model=related_model,
            related_id=str(related_id) if related_id is not None else None,
            event_metadata=metadata or {},
        )
        if request is not None:
            event.ip_address = _client_ip(request)
            event.user_agent = (request.headers.get("user-agent") or "")[:500] or None
            event.path = request.url.path
        for name, value in client_fields.items():
            if value is not None:
                setattr(event, name, value)

        try:
            self.db.add(event)
            await self.db.commit()
            return event
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to record analytics event {event_type.value}: {e}")
            return None

    async def get_analytics(self, days: int = 30) -> Dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        return {
            "period_days": days,
            "events_by_type": await self.repo.counts_by_type(since),
            "daily_events": await self.repo.daily_counts(since),
        }

    async def track(self, data: AnalyticsTrackRequest, user: Optional[User], request: Request) -> AnalyticsEvent:
        """
        Store an event reported by a client application.

        Raises:
            InternalServerError: If the event could not be stored
        """
        event = await self.record_event(
            data.event_type,
            event_name=data.event_name,
            user_id=user.id if user else None,
            request=request,
            related_model=data.related_model,
            related_id=data.related_id,
            metadata=data.metadata,
            session_id=data.session_id,
            device=data.device,
            browser=data.browser,
            os=data.os,
            referrer=data.referrer,
            path=data.path,
            query=data.query,
            duration=data.duration,
        )
        if event is None:
            raise InternalServerError("Failed to track event")
        logger.info(f"Analytics event tracked: {data.event_type.value} - {data.event_name}")
        return event

    async def list_events(
        self,
        page: int,
        limit: int,
        event_type: Optional[EventType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        self._check_window(start, end)
        events, total = await self.repo.list_events(page, limit, event_type, start, end)
        return [event.to_dict() for event in events], total

    async def get_summary(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        self._check_window(start, end)
        return await self.repo.summary(start, end)

    @staticmethod
    def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
        if start is not None and end is not None and start > end:
            raise ValidationError(
                "Invalid date range",
                field_errors=[{"field": "start_date", "message": "start_date must not be after end_date"}]
            )
