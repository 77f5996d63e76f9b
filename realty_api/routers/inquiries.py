"""
Inquiry endpoints: public and authenticated submission, and the agent/admin
inbox.
"""

from fastapi import APIRouter, Depends, Request, status, Query, Path
from fastapi.responses import Response
from typing import Optional
from uuid import UUID

from realty_api.config import settings
from realty_api.models.user import User
from realty_api.models.inquiry import InquiryStatus, InquiryType
from realty_api.repositories.inquiry import InquiryFilters
from realty_api.services.inquiry import InquiryService
from realty_api.schemas.inquiry import InquiryCreate, InquiryUpdate
from realty_api.utils.dependencies import (
    get_current_user,
    get_current_agent_user,
    get_inquiry_service
)
from realty_api.utils.responses import success_response, paginated_response
from realty_api.utils.throttling import strict_throttle


router = APIRouter(prefix="/inquiries", tags=["Inquiries"])


@router.post(
    "/public",
    status_code=status.HTTP_201_CREATED,
    summary="Submit inquiry without an account",
    description="Anyone can ask about a published listing. A confirmation email is queued to the submitter.",
    dependencies=[Depends(strict_throttle)]
)
async def create_public_inquiry(
    data: InquiryCreate,
    request: Request,
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    inquiry = await inquiry_service.create_inquiry(data, None, request)
    return success_response("Inquiry submitted successfully", inquiry)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Submit inquiry")
async def create_inquiry(
    data: InquiryCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    inquiry = await inquiry_service.create_inquiry(data, current_user, request)
    return success_response("Inquiry submitted successfully", inquiry)


@router.get(
    "",
    summary="List inquiries",
    description="Admins see every inquiry; agents see inquiries about their listings or assigned to them"
)
async def list_inquiries(
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    inquiry_type: Optional[InquiryType] = Query(None),
    property_id: Optional[UUID] = Query(None, alias="property"),
    user_id: Optional[UUID] = Query(None, alias="user"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_agent_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    filters = InquiryFilters(
        status=status_filter,
        inquiry_type=inquiry_type,
        property_id=property_id,
        user_id=user_id
    )
    items, total = await inquiry_service.list_inquiries(filters, page, limit, current_user)
    return paginated_response(items, page, limit, total)


@router.get("/my", summary="Inquiries I submitted")
async def my_inquiries(
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    items, total = await inquiry_service.my_inquiries(current_user, page, limit, status_filter)
    return paginated_response(items, page, limit, total)


@router.get("/stats", summary="Inquiry statistics")
async def inquiry_statistics(
    current_user: User = Depends(get_current_agent_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    stats = await inquiry_service.get_statistics(current_user)
    return success_response("Inquiry statistics retrieved", stats)


@router.get("/{inquiry_id}", summary="Get inquiry")
async def get_inquiry(
    inquiry_id: UUID = Path(..., description="Inquiry ID"),
    current_user: User = Depends(get_current_agent_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    """Fetching an inquiry marks it read."""
    inquiry = await inquiry_service.get_inquiry(inquiry_id, current_user)
    return success_response("Inquiry retrieved", inquiry)


@router.put("/{inquiry_id}", summary="Update inquiry")
async def update_inquiry(
    data: InquiryUpdate,
    request: Request,
    inquiry_id: UUID = Path(..., description="Inquiry ID"),
    current_user: User = Depends(get_current_agent_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    inquiry = await inquiry_service.update_inquiry(inquiry_id, data, current_user, request)
    return success_response("Inquiry updated successfully", inquiry)


@router.delete("/{inquiry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete inquiry")
async def delete_inquiry(
    inquiry_id: UUID = Path(..., description="Inquiry ID"),
    current_user: User = Depends(get_current_agent_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    await inquiry_service.delete_inquiry(inquiry_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
