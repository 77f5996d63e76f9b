"""
Property service for listing management.
Handles visibility rules, agent ownership, media uploads and the view counter.
"""

from typing import Optional, List, Dict, Any, Tuple
from collections import defaultdict
from fastapi import Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.repositories.property import PropertyRepository, PropertySearchFilters
from realty_api.repositories.image import ImageRepository
from realty_api.models.property import Property
from realty_api.models.user import User
from realty_api.models.analytics import EventType
from realty_api.schemas.property import PropertyCreate, PropertyUpdate
from realty_api.services.analytics import AnalyticsService
from realty_api.services.media_storage import MediaStorage, resource_type_for
from realty_api.utils.file_utils import FileValidator, ValidatedFile
from realty_api.utils.exceptions import (
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    InsufficientPermissionsError,
    ValidationError,
    BadRequestError,
    InternalServerError
)
import uuid
import logging

logger = logging.getLogger(__name__)

MAX_FILES_PER_UPLOAD = 10
NEARBY_LIMIT = 10
FEATURED_LIMIT = 6


class PropertyService:
    """
    Property listings with ownership validation.
    Agents manage the properties they own; admins manage every property.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[MediaStorage] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.image_repo = ImageRepository(db_session)
        self.analytics = AnalyticsService(db_session)
        self.storage = storage

    @staticmethod
    def _can_view(property_obj: Property, current_user: Optional[User]) -> bool:
        if property_obj.is_public:
            return True
        if current_user is None:
            return False
        return current_user.is_admin or property_obj.agent_id == current_user.id

    async def _get_manageable(self, property_id: uuid.UUID, current_user: User) -> Property:
        """
        Raises:
            PropertyNotFoundError: If the property does not exist
            PropertyOwnershipError: If an agent does not own it
        """
        if not current_user.can_manage_listings:
            raise InsufficientPermissionsError("manage properties")

        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        if not current_user.can_manage_property(property_obj.agent_id):
            logger.warning(f"User {current_user.email} tried to manage property {property_id} they do not own")
            raise PropertyOwnershipError()

        return property_obj

    async def list_properties(
        self,
        filters: PropertySearchFilters,
        page: int = 1,
        limit: int = 12,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        current_user: Optional[User] = None
    ) -> Tuple[List[Property], int]:
        """
        Listings visible to the caller.

        Anonymous callers and regular users only see public listings; agents
        also see their own drafts and admins see everything.
        """
        if current_user is not None and current_user.is_admin:
            filters.public_only = False
        elif current_user is not None and current_user.is_agent:
            filters.public_only = True
            filters.owner_visible_id = current_user.id
        else:
            filters.public_only = True
            filters.owner_visible_id = None

        try:
            return await self.property_repo.search_properties(filters, page, limit, sort_by, sort_order)
        except Exception as e:
            logger.error(f"Failed to list properties: {e}")
            raise InternalServerError("Failed to retrieve properties")

    async def get_property(
        self,
        property_id: uuid.UUID,
        current_user: Optional[User] = None,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        """
        Fetch one listing and count the view.

        Drafts and unpublished listings are reported as missing to everyone
        except their agent and admins. View tracking never fails the request.
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or not self._can_view(property_obj, current_user):
            raise PropertyNotFoundError(str(property_id))

        data = property_obj.to_dict()

        if await self._track_view(property_obj.id, current_user, request):
            data["views"] += 1

        return data

    async def _track_view(
        self,
        property_id: uuid.UUID,
        current_user: Optional[User],
        request: Optional[Request]
    ) -> bool:
        try:
            await self.property_repo.increment_views(property_id)
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Failed to increment views for property {property_id}: {e}")
            return False

        await self.analytics.record_event(
            EventType.PROPERTY_VIEW,
            user_id=current_user.id if current_user else None,
            request=request,
            related_model="property",
            related_id=property_id,
        )
        return True

    async def create_property(
        self,
        property_data: PropertyCreate,
        current_user: User,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        if not current_user.can_manage_listings:
            raise InsufficientPermissionsError("create properties")

        create_data = property_data.to_model_fields()
        create_data["agent_id"] = current_user.id

        try:
            property_obj = await self.property_repo.create(create_data)
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise InternalServerError("Failed to create property")

        data = property_obj.to_dict()
        logger.info(f"Property created by {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
        await self.analytics.record_event(
            EventType.PROPERTY_CREATED, user_id=current_user.id, request=request,
            related_model="property", related_id=property_obj.id
        )
        return data

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        await self._get_manageable(property_id, current_user)

        update_data = property_data.to_model_fields()
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        try:
            updated = await self.property_repo.update(property_id, update_data)
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise InternalServerError("Failed to update property")

        if not updated:
            raise PropertyNotFoundError(str(property_id))

        data = updated.to_dict()
        logger.info(f"Property updated by {current_user.email}: {property_id}")
        await self.analytics.record_event(
            EventType.PROPERTY_UPDATED, user_id=current_user.id, request=request,
            related_model="property", related_id=property_id,
            metadata={"fields": sorted(update_data)}
        )
        return data

    async def delete_property(
        self,
        property_id: uuid.UUID,
        current_user: User,
        request: Optional[Request] = None
    ) -> None:
        """Delete the stored media of a property, then the record itself."""
        property_obj = await self._get_manageable(property_id, current_user)

        await self._delete_media(property_obj.images)

        try:
            await self.property_repo.delete(property_id)
        except Exception as e:
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise InternalServerError("Failed to delete property")

        logger.info(f"Property deleted by {current_user.email}: {property_id}")
        await self.analytics.record_event(
            EventType.PROPERTY_DELETED, user_id=current_user.id, request=request,
            related_model="property", related_id=property_id
        )

    async def bulk_delete(self, ids: List[uuid.UUID], current_user: User) -> int:
        """Admin bulk removal; media of every matched property is deleted first."""
        try:
            properties = await self.property_repo.get_by_ids(ids)
        except Exception as e:
            logger.error(f"Failed to load properties for bulk delete: {e}")
            raise InternalServerError("Failed to delete properties")

        images = [image for property_obj in properties for image in property_obj.images]
        await self._delete_media(images)

        try:
            deleted = await self.property_repo.bulk_delete([property_obj.id for property_obj in properties])
        except Exception as e:
            logger.error(f"Failed to bulk delete properties: {e}")
            raise InternalServerError("Failed to delete properties")

        logger.info(f"Bulk deleted {deleted} properties by {current_user.email}")
        return deleted

    async def _delete_media(self, images) -> None:
        """Storage failures are logged; the database records are removed regardless."""
        if not images or self.storage is None:
            return

        by_type: Dict[str, List[str]] = defaultdict(list)
        for image in images:
            by_type[resource_type_for(image.mime_type)].append(image.public_id)

        for resource_type, public_ids in by_type.items():
            try:
                deleted = await self.storage.delete_many(public_ids, resource_type=resource_type)
                logger.debug(f"Deleted {deleted}/{len(public_ids)} stored {resource_type} files")
            except Exception as e:
                logger.error(f"Failed to delete stored media {public_ids}: {e}")

    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile],
        current_user: User
    ) -> List[Dict[str, Any]]:
        """
        Validate every file, then store them and append them to the gallery.

        Nothing is stored when any file fails validation. The first upload to
        a property without images becomes its primary image.
        """
        await self._get_manageable(property_id, current_user)

        if not files:
            raise ValidationError(
                "No files uploaded",
                field_errors=[{"field": "images", "message": "At least one file is required"}]
            )
        if len(files) > MAX_FILES_PER_UPLOAD:
            raise ValidationError(
                f"Too many files. Maximum {MAX_FILES_PER_UPLOAD} per upload",
                field_errors=[{"field": "images", "message": f"Maximum {MAX_FILES_PER_UPLOAD} files"}]
            )

        validated: List[ValidatedFile] = []
        field_errors: List[Dict[str, str]] = []
        for index, upload in enumerate(files):
            try:
                validated.append(await FileValidator.validate_upload_file(upload))
            except ValidationError as e:
                field_errors.append({
                    "field": f"images.{index}",
                    "message": f"{upload.filename or 'file'}: {e.detail}",
                })

        if field_errors:
            raise ValidationError("File validation failed", field_errors=field_errors)

        stored: List[Dict[str, str]] = []
        try:
            for item in validated:
                result = await self.storage.upload(
                    item.content, item.filename, item.mime_type, folder=f"properties/{property_id}"
                )
                stored.append({**result, "mime_type": item.mime_type})
        except Exception as e:
            logger.error(f"Failed to store uploads for property {property_id}: {e}")
            await self._discard_stored(stored)
            raise InternalServerError("Failed to upload images")

        try:
            has_images = await self.image_repo.count_by_property_id(property_id) > 0
            next_order = await self.image_repo.next_display_order(property_id)
            records = []
            for offset, (item, result) in enumerate(zip(validated, stored)):
                records.append({
                    "property_id": property_id,
                    "url": result["url"],
                    "public_id": result["public_id"],
                    "filename": item.filename,
                    "mime_type": item.mime_type,
                    "file_size": item.size,
                    "is_primary": not has_images and offset == 0,
                    "display_order": next_order + offset,
                })
            images = await self.image_repo.add_images(records)
        except Exception as e:
            logger.error(f"Failed to save image records for property {property_id}: {e}")
            await self._discard_stored(stored)
            raise InternalServerError("Failed to upload images")

        logger.info(f"{len(images)} files uploaded to property {property_id} by {current_user.email}")
        return [image.to_dict() for image in images]

    async def _discard_stored(self, stored: List[Dict[str, str]]) -> None:
        for result in stored:
            try:
                await self.storage.delete(result["public_id"], resource_type=resource_type_for(result["mime_type"]))
            except Exception as e:
                logger.error(f"Failed to discard stored file {result['public_id']}: {e}")

    async def delete_image(self, property_id: uuid.UUID, image_id: uuid.UUID, current_user: User) -> None:
        """Remove one image; when it was primary, the next image is promoted."""
        await self._get_manageable(property_id, current_user)

        image = await self.image_repo.get_for_property(property_id, image_id)
        if not image:
            raise NotFoundError("Image", str(image_id))

        was_primary = image.is_primary
        public_id, mime_type = image.public_id, image.mime_type

        if self.storage is not None:
            try:
                await self.storage.delete(public_id, resource_type=resource_type_for(mime_type))
            except Exception as e:
                logger.error(f"Failed to delete stored file {public_id}: {e}")

        try:
            await self.image_repo.delete_image(image_id)
            if was_primary:
                remaining = await self.image_repo.get_by_property_id(property_id)
                if remaining:
                    await self.image_repo.update_primary_status(property_id, remaining[0].id)
        except Exception as e:
            logger.error(f"Failed to delete image {image_id}: {e}")
            raise InternalServerError("Failed to delete image")

        logger.info(f"Image {image_id} deleted from property {property_id} by {current_user.email}")

    async def set_primary_image(self, property_id: uuid.UUID, image_id: uuid.UUID, current_user: User) -> Dict[str, Any]:
        await self._get_manageable(property_id, current_user)

        try:
            updated = await self.image_repo.update_primary_status(property_id, image_id)
        except Exception as e:
            logger.error(f"Failed to set primary image {image_id}: {e}")
            raise InternalServerError("Failed to update primary image")

        if not updated:
            raise NotFoundError("Image", str(image_id))

        property_obj = await self.property_repo.get_by_id(property_id)
        return property_obj.to_dict()

    async def get_nearby(
        self,
        latitude: Optional[float],
        longitude: Optional[float],
        radius: float = 10000
    ) -> List[Dict[str, Any]]:
        """
        Available, published listings within `radius` metres, nearest first.

        Raises:
            BadRequestError: If latitude or longitude is missing or out of range
        """
        if latitude is None or longitude is None:
            raise BadRequestError("Longitude and latitude are required")
        if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
            raise BadRequestError("Latitude or longitude out of range")
        if radius <= 0:
            raise BadRequestError("Radius must be greater than 0")

        try:
            matches = await self.property_repo.get_nearby_properties(latitude, longitude, radius, NEARBY_LIMIT)
        except Exception as e:
            logger.error(f"Failed to search nearby properties: {e}")
            raise InternalServerError("Failed to retrieve nearby properties")

        results = []
        for property_obj, distance in matches:
            data = property_obj.to_dict()
            data["distance"] = round(distance, 1)
            results.append(data)
        return results

    async def get_featured(self) -> List[Dict[str, Any]]:
        try:
            properties = await self.property_repo.get_featured_properties(FEATURED_LIMIT)
        except Exception as e:
            logger.error(f"Failed to get featured properties: {e}")
            raise InternalServerError("Failed to retrieve featured properties")
        return [property_obj.to_dict() for property_obj in properties]

    async def get_statistics(self) -> Dict[str, Any]:
        try:
            return await self.property_repo.get_property_statistics()
        except Exception as e:
            logger.error(f"Failed to compute property statistics: {e}")
            raise InternalServerError("Failed to retrieve property statistics")
