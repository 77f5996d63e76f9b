"""
User administration endpoints. Admin only.
"""

from fastapi import APIRouter, Depends, Query, Path, status
from fastapi.responses import Response
from typing import Optional
from uuid import UUID

from realty_api.config import settings
from realty_api.models.user import User, UserRole
from realty_api.services.user import UserService
from realty_api.schemas.user import UserCreate, UserUpdate
from realty_api.utils.dependencies import get_current_admin_user, get_user_service
from realty_api.utils.responses import success_response, paginated_response


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", summary="List users")
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    is_active: Optional[bool] = Query(None, description="Filter by active status"),
    search: Optional[str] = Query(None, max_length=100, description="Match email or full name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    users, total = await user_service.list_users(page, limit, role, is_active, search)
    return paginated_response([user.to_dict() for user in users], page, limit, total)


@router.get("/stats", summary="User statistics")
async def user_statistics(
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    stats = await user_service.get_statistics()
    return success_response("User statistics retrieved", stats)


@router.get("/{user_id}", summary="Get user")
async def get_user(
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.get_user(user_id)
    return success_response("User retrieved", user.to_dict())


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create user")
async def create_user(
    data: UserCreate,
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.create_user(data, current_user)
    return success_response("User created successfully", user.to_dict())


@router.put("/{user_id}", summary="Update user")
async def update_user(
    data: UserUpdate,
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.update_user(user_id, data, current_user)
    return success_response("User updated successfully", user.to_dict())


@router.patch("/{user_id}/toggle-status", summary="Activate or deactivate user")
async def toggle_user_status(
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.toggle_status(user_id, current_user)
    state = "activated" if user.is_active else "deactivated"
    return success_response(f"User {state} successfully", user.to_dict())


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete user")
async def delete_user(
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    await user_service.delete_user(user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
