"""
Client analytics: event ingestion from the web and mobile apps, plus admin
queries over the stored events.
"""

from fastapi import APIRouter, Depends, Request, Query, status
from datetime import datetime
from typing import Optional

from realty_api.models.analytics import EventType
from realty_api.models.user import User
from realty_api.schemas.analytics import AnalyticsTrackRequest
from realty_api.services.analytics import AnalyticsService
from realty_api.utils.dependencies import (
    get_analytics_service,
    get_current_admin_user,
    get_optional_current_user
)
from realty_api.utils.responses import success_response, paginated_response
from realty_api.utils.throttling import tracking_throttle


router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.post(
    "/track",
    status_code=status.HTTP_201_CREATED,
    summary="Track a client event",
    description="Open to anonymous clients; a valid token attributes the event to the user",
    dependencies=[Depends(tracking_throttle)]
)
async def track_event(
    data: AnalyticsTrackRequest,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_current_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    event = await analytics_service.track(data, current_user, request)
    return success_response("Event tracked successfully", {"eventId": str(event.id)})


@router.get("/events", summary="List tracked events")
async def list_events(
    event_type: Optional[EventType] = Query(None, alias="eventType"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_admin_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    events, total = await analytics_service.list_events(page, limit, event_type, start_date, end_date)
    return paginated_response(events, page, limit, total)


@router.get("/summary", summary="Event totals by type and device")
async def summary(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_admin_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    data = await analytics_service.get_summary(start_date, end_date)
    return success_response("Analytics summary retrieved", data)
