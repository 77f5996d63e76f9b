"""
Administration endpoints: dashboard, analytics, health and maintenance.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from realty_api.models.user import User
from realty_api.services.admin import AdminService
from realty_api.schemas.admin import BulkDeleteRequest
from realty_api.utils.dependencies import get_current_admin_user, get_admin_service
from realty_api.utils.responses import success_response


router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard", summary="Dashboard totals and recent activity")
async def dashboard(
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    data = await admin_service.get_dashboard()
    return success_response("Dashboard data retrieved", data)


@router.get("/analytics", summary="Event analytics")
async def analytics(
    days: int = Query(30, ge=1, le=365, description="Window size in days"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    data = await admin_service.get_analytics(days)
    return success_response("Analytics retrieved", data)


@router.get("/system-health", summary="Dependency and process health")
async def system_health(
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    """Returns 503 when the database is unreachable."""
    health = await admin_service.get_system_health()
    body = success_response("System health retrieved", health)
    if health["status"] == "unhealthy":
        body["success"] = False
        return JSONResponse(status_code=503, content=body)
    return body


@router.post("/cleanup", summary="Run maintenance cleanup now")
async def cleanup(
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    deleted = await admin_service.run_cleanup()
    return success_response("Cleanup completed", deleted)


@router.post("/users/bulk-delete", summary="Delete many users")
async def bulk_delete_users(
    data: BulkDeleteRequest,
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    deleted = await admin_service.bulk_delete_users(data.ids, current_user)
    return success_response(f"{deleted} user(s) deleted", {"deleted": deleted})


@router.post("/properties/bulk-delete", summary="Delete many properties")
async def bulk_delete_properties(
    data: BulkDeleteRequest,
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    deleted = await admin_service.bulk_delete_properties(data.ids, current_user)
    return success_response(f"{deleted} property(ies) deleted", {"deleted": deleted})
