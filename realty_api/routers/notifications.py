"""
Notification inbox of the current user, plus admin-authored notifications.
"""

from fastapi import APIRouter, Depends, Query, Path, status
from uuid import UUID

from realty_api.config import settings
from realty_api.models.user import User
from realty_api.services.notification import NotificationService
from realty_api.schemas.notification import NotificationCreate
from realty_api.utils.dependencies import (
    get_current_user,
    get_current_admin_user,
    get_notification_service
)
from realty_api.utils.responses import success_response, paginated_response


router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", summary="List my notifications")
async def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    items, total, unread = await notification_service.list_for_user(current_user, page, limit, unread_only)
    return paginated_response([n.to_dict() for n in items], page, limit, total, unreadCount=unread)


@router.get("/unread-count", summary="Unread notification count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    count = await notification_service.unread_count(current_user)
    return success_response("Unread count retrieved", {"unreadCount": count})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Send notification")
async def create_notification(
    data: NotificationCreate,
    current_user: User = Depends(get_current_admin_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    notification = await notification_service.create(data, current_user)
    return success_response("Notification created successfully", notification.to_dict())


@router.patch("/read-all", summary="Mark every notification read")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    updated = await notification_service.mark_all_read(current_user)
    return success_response(f"{updated} notification(s) marked as read", {"updated": updated})


@router.delete("", summary="Delete all my notifications")
async def delete_all_notifications(
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    deleted = await notification_service.delete_all(current_user)
    return success_response(f"{deleted} notification(s) deleted", {"deleted": deleted})


@router.get("/{notification_id}", summary="Get notification")
async def get_notification(
    notification_id: UUID = Path(..., description="Notification ID"),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    notification = await notification_service.get(notification_id, current_user)
    return success_response("Notification retrieved", notification.to_dict())


@router.patch("/{notification_id}/read", summary="Mark notification read")
async def mark_read(
    notification_id: UUID = Path(..., description="Notification ID"),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    notification = await notification_service.mark_read(notification_id, current_user)
    return success_response("Notification marked as read", notification.to_dict())


@router.delete("/{notification_id}", summary="Delete notification")
async def delete_notification(
    notification_id: UUID = Path(..., description="Notification ID"),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    await notification_service.delete(notification_id, current_user)
    return success_response("Notification deleted successfully")
