"""
Property management API endpoints for CRUD operations, search, geo lookup and
image galleries.
"""

from fastapi import APIRouter, Depends, Request, status, Query, Path, File, UploadFile
from fastapi.responses import Response
from typing import Optional, List
from decimal import Decimal
from uuid import UUID

from realty_api.config import settings
from realty_api.models.user import User
from realty_api.models.property import PropertyType, PropertyStatus, ListingType
from realty_api.repositories.property import PropertySearchFilters
from realty_api.services.property import PropertyService
from realty_api.schemas.property import PropertyCreate, PropertyUpdate
from realty_api.utils.dependencies import (
    get_current_agent_user,
    get_current_admin_user,
    get_optional_current_user,
    get_property_service
)
from realty_api.utils.responses import success_response, paginated_response


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    summary="List properties with search and filtering",
    description="Paginated listings. Anonymous callers only see published, non-draft listings."
)
async def list_properties(
    # Search parameters
    search: Optional[str] = Query(None, max_length=200, description="Match title, description, city or state"),
    city: Optional[str] = Query(None, max_length=100),
    state: Optional[str] = Query(None, max_length=100),

    # Classification filters
    property_type: Optional[PropertyType] = Query(None, description="Property type"),
    status_filter: Optional[PropertyStatus] = Query(None, alias="status", description="Listing status"),
    listing_type: Optional[ListingType] = Query(None, description="sale or rent"),
    is_featured: Optional[bool] = Query(None),

    # Price and size filters
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price filter"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price filter"),
    bedrooms: Optional[int] = Query(None, ge=0, le=100, description="Minimum number of bedrooms"),
    bathrooms: Optional[int] = Query(None, ge=0, le=100, description="Minimum number of bathrooms"),

    agent_id: Optional[UUID] = Query(None, alias="agent", description="Filter by owning agent"),

    # Pagination
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Properties per page"),

    # Sorting
    sort_by: str = Query("created_at", description="Sort field"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", description="Sort order (asc/desc)"),

    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    filters = PropertySearchFilters(
        property_type=property_type,
        status=status_filter,
        listing_type=listing_type,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        city=city,
        state=state,
        search=search,
        agent_id=agent_id,
        is_featured=is_featured
    )

    properties, total = await property_service.list_properties(
        filters, page, limit, sort_by, sort_order, current_user
    )
    return paginated_response([prop.to_dict() for prop in properties], page, limit, total)


@router.get("/featured", summary="Featured listings")
async def featured_properties(property_service: PropertyService = Depends(get_property_service)):
    properties = await property_service.get_featured()
    return success_response("Featured properties retrieved", properties)


@router.get(
    "/nearby",
    summary="Listings near a point",
    description="Available, published listings within a radius in metres, nearest first"
)
async def nearby_properties(
    lat: Optional[float] = Query(None, description="Latitude"),
    lng: Optional[float] = Query(None, description="Longitude"),
    radius: float = Query(10000, alias="maxDistance", description="Search radius in metres"),
    property_service: PropertyService = Depends(get_property_service)
):
    properties = await property_service.get_nearby(lat, lng, radius)
    return success_response("Nearby properties retrieved", properties)


@router.get("/stats", summary="Property statistics")
async def property_statistics(
    current_user: User = Depends(get_current_admin_user),
    property_service: PropertyService = Depends(get_property_service)
):
    stats = await property_service.get_statistics()
    return success_response("Property statistics retrieved", stats)


@router.get("/{property_id}", summary="Get property details")
async def get_property(
    request: Request,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Get a single listing and count the view.

    Raises:
        PropertyNotFoundError: If the property doesn't exist or isn't visible to the caller
    """
    data = await property_service.get_property(property_id, current_user, request)
    return success_response("Property retrieved", data)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires agent or admin role."
)
async def create_property(
    property_data: PropertyCreate,
    request: Request,
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
):
    data = await property_service.create_property(property_data, current_user, request)
    return success_response("Property created successfully", data)


@router.put(
    "/{property_id}",
    summary="Update property",
    description="Update property details. Only the owning agent or an admin can update."
)
async def update_property(
    property_data: PropertyUpdate,
    request: Request,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Raises:
        PropertyNotFoundError: If property doesn't exist
        PropertyOwnershipError: If an agent doesn't own the property
        ValidationError: If no fields are provided
    """
    data = await property_service.update_property(property_id, property_data, current_user, request)
    return success_response("Property updated successfully", data)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Delete a listing and its stored media"
)
async def delete_property(
    request: Request,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
):
    await property_service.delete_property(property_id, current_user, request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{property_id}/images",
    status_code=status.HTTP_201_CREATED,
    summary="Upload property images",
    description="Upload up to 10 files of at most 10MB each (jpeg, jpg, png, gif, webp, pdf, doc, docx)"
)
async def upload_property_images(
    property_id: UUID = Path(..., description="Property ID"),
    images: List[UploadFile] = File(..., description="Files to upload"),
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
):
    uploaded = await property_service.upload_images(property_id, images, current_user)
    return success_response(f"{len(uploaded)} image(s) uploaded successfully", uploaded)


@router.delete("/{property_id}/images/{image_id}", summary="Delete property image")
async def delete_property_image(
    property_id: UUID = Path(..., description="Property ID"),
    image_id: UUID = Path(..., description="Image ID"),
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
):
    await property_service.delete_image(property_id, image_id, current_user)
    return success_response("Image deleted successfully")


@router.patch("/{property_id}/images/{image_id}/primary", summary="Set primary image")
async def set_primary_image(
    property_id: UUID = Path(..., description="Property ID"),
    image_id: UUID = Path(..., description="Image ID"),
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
):
    data = await property_service.set_primary_image(property_id, image_id, current_user)
    return success_response("Primary image updated", data)
