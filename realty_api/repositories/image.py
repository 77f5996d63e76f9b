"""
Repository for PropertyImage model operations.
"""

import uuid
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from realty_api.models.image import PropertyImage
from realty_api.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """Images of a property in insertion order."""
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.display_order.asc(), PropertyImage.created_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_for_property(self, property_id: uuid.UUID, image_id: uuid.UUID) -> Optional[PropertyImage]:
        query = select(PropertyImage).where(
            and_(PropertyImage.id == image_id, PropertyImage.property_id == property_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        query = select(func.count(PropertyImage.id)).where(PropertyImage.property_id == property_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def next_display_order(self, property_id: uuid.UUID) -> int:
        query = select(func.max(PropertyImage.display_order)).where(
            PropertyImage.property_id == property_id
        )
        current = (await self.db.execute(query)).scalar()
        return 0 if current is None else current + 1

    async def add_images(self, images: List[Dict[str, Any]]) -> List[PropertyImage]:
        """Insert several image rows in one transaction."""
        try:
            objects = [PropertyImage(**data) for data in images]
            self.db.add_all(objects)
            await self.db.commit()
            for obj in objects:
                await self.db.refresh(obj)
            logger.debug(f"Stored {len(objects)} image records")
            return objects
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to store image records: {e}")
            raise

    async def update_primary_status(self, property_id: uuid.UUID, new_primary_id: uuid.UUID) -> bool:
        """
        Make one image primary and clear the flag on every other image of the property.

        Returns:
            True if the image belongs to the property and was updated
        """
        try:
            await self.db.execute(
                update(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .values(is_primary=False)
            )
            result = await self.db.execute(
                update(PropertyImage)
                .where(and_(PropertyImage.id == new_primary_id, PropertyImage.property_id == property_id))
                .values(is_primary=True)
            )

            if result.rowcount == 0:
                await self.db.rollback()
                return False

            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to set primary image {new_primary_id}: {e}")
            raise

    async def delete_image(self, image_id: uuid.UUID) -> bool:
        try:
            result = await self.db.execute(delete(PropertyImage).where(PropertyImage.id == image_id))
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete image {image_id}: {e}")
            raise
