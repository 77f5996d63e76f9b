"""
Property repository for listing search, geo lookup and reporting queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, asc, update
from realty_api.repositories.base import BaseRepository
from realty_api.models.property import (
    Property, PropertyType, PropertyStatus, ListingType, PUBLIC_STATUSES
)
from typing import Optional, List, Dict, Any, Tuple
from dataclasses import dataclass
from decimal import Decimal
import math
import uuid
import logging

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000.0

SORTABLE_FIELDS = {"created_at", "updated_at", "price", "views", "bedrooms", "area", "title"}


@dataclass
class PropertySearchFilters:
    """Criteria accepted by the listing endpoint."""
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    listing_type: Optional[ListingType] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    search: Optional[str] = None
    agent_id: Optional[uuid.UUID] = None
    is_featured: Optional[bool] = None
    public_only: bool = True
    # With public_only, also include this agent's own unpublished listings
    owner_visible_id: Optional[uuid.UUID] = None


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def longitude_ranges(longitude: float, lng_delta: float) -> List[Tuple[float, float]]:
    """
    Longitude intervals covered by a box of +/- lng_delta around a point.
    A box crossing the antimeridian is split in two.
    """
    low, high = longitude - lng_delta, longitude + lng_delta
    if low < -180.0:
        return [(low + 360.0, 180.0), (-180.0, high)]
    if high > 180.0:
        return [(low, 180.0), (-180.0, high - 360.0)]
    return [(low, high)]


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Public visibility (published, not draft) is applied here so every caller
    shares the same definition of a browsable listing.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    @staticmethod
    def _public_conditions() -> List:
        return [Property.is_published.is_(True), Property.status.in_(PUBLIC_STATUSES)]

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        conditions = []

        if filters.public_only:
            public = and_(*self._public_conditions())
            if filters.owner_visible_id:
                conditions.append(or_(public, Property.agent_id == filters.owner_visible_id))
            else:
                conditions.append(public)

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)
        if filters.status:
            conditions.append(Property.status == filters.status)
        if filters.listing_type:
            conditions.append(Property.listing_type == filters.listing_type)

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        # Bedroom and bathroom filters are minimums
        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.bathrooms)

        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))
        if filters.state:
            conditions.append(Property.state.ilike(f"%{filters.state}%"))

        if filters.agent_id:
            conditions.append(Property.agent_id == filters.agent_id)
        if filters.is_featured is not None:
            conditions.append(Property.is_featured.is_(filters.is_featured))

        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Property.title.ilike(term),
                    Property.description.ilike(term),
                    Property.city.ilike(term),
                    Property.state.ilike(term),
                )
            )

        return conditions

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        page: int = 1,
        limit: int = 12,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering, sorting and pagination.

        Returns:
            Tuple of (properties on the page, total count)
        """
        try:
            query = select(Property)
            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))

            field = sort_by if sort_by in SORTABLE_FIELDS else "created_at"
            order_field = getattr(Property, field)
            primary_order = asc(order_field) if sort_order.lower() == "asc" else desc(order_field)
            # id as tie-breaker keeps pages stable when timestamps collide
            query = query.order_by(primary_order, desc(Property.id))

            properties, total = await self.paginate(query, page, limit)
            logger.debug(f"Property search returned {len(properties)} of {total} total results")
            return properties, total
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    async def get_nearby_properties(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float = 10000,
        limit: int = 10
    ) -> List[Tuple[Property, float]]:
        """
        Available, published properties within radius, nearest first.

        A bounding box narrows the rows in SQL; the exact Haversine distance is
        computed here so the query also runs on databases without trig functions.
        """
        try:
            lat_delta = math.degrees(radius_meters / EARTH_RADIUS_METERS)
            cos_lat = max(math.cos(math.radians(latitude)), 1e-6)
            lng_delta = min(180.0, math.degrees(radius_meters / (EARTH_RADIUS_METERS * cos_lat)))

            query = select(Property).where(
                and_(
                    Property.latitude.isnot(None),
                    Property.longitude.isnot(None),
                    Property.status == PropertyStatus.AVAILABLE,
                    Property.is_published.is_(True),
                    Property.latitude.between(latitude - lat_delta, latitude + lat_delta),
                )
            )
            if lng_delta < 180.0:
                query = query.where(or_(*[
                    Property.longitude.between(low, high)
                    for low, high in longitude_ranges(longitude, lng_delta)
                ]))

            result = await self.db.execute(query.execution_options(populate_existing=True))

            matches = []
            for prop in result.scalars().all():
                distance = haversine_distance(latitude, longitude, prop.latitude, prop.longitude)
                if distance <= radius_meters:
                    matches.append((prop, distance))

            matches.sort(key=lambda item: item[1])
            logger.debug(f"Found {len(matches)} properties within {radius_meters}m")
            return matches[:limit]
        except Exception as e:
            logger.error(f"Failed to get nearby properties: {e}")
            raise

    async def get_featured_properties(self, limit: int = 6) -> List[Property]:
        try:
            query = (
                select(Property)
                .where(
                    and_(
                        Property.is_featured.is_(True),
                        Property.is_published.is_(True),
                        Property.status == PropertyStatus.AVAILABLE,
                    )
                )
                .order_by(desc(Property.created_at))
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get featured properties: {e}")
            raise

    async def get_recent(self, limit: int = 5) -> List[Property]:
        return await self.get_multi(skip=0, limit=limit, order_by="-created_at")

    async def increment_views(self, property_id: uuid.UUID, amount: int = 1) -> None:
        """Increment the view counter in SQL so concurrent readers do not lose updates."""
        stmt = (
            update(Property)
            .where(Property.id == property_id)
            .values(views=Property.views + amount)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def set_view_counts(self, counts: Dict[uuid.UUID, int]) -> int:
        """Overwrite view counters from aggregated analytics; returns rows touched."""
        try:
            touched = 0
            for property_id, views in counts.items():
                result = await self.db.execute(
                    update(Property).where(Property.id == property_id).values(views=views)
                )
                touched += result.rowcount
            await self.db.commit()
            return touched
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update property view counts: {e}")
            raise

    async def get_property_statistics(self) -> Dict[str, Any]:
        """
        Counts per status and type plus the average asking price.
        """
        try:
            total = await self.count()
            by_status = await self.count_by("status")
            by_type = await self.count_by("property_type")

            avg_result = await self.db.execute(select(func.avg(Property.price)))
            avg_price = avg_result.scalar()

            views_result = await self.db.execute(select(func.coalesce(func.sum(Property.views), 0)))

            return {
                "total": total,
                "available": by_status.get(PropertyStatus.AVAILABLE.value, 0),
                "sold": by_status.get(PropertyStatus.SOLD.value, 0),
                "rented": by_status.get(PropertyStatus.RENTED.value, 0),
                "pending": by_status.get(PropertyStatus.PENDING.value, 0),
                "draft": by_status.get(PropertyStatus.DRAFT.value, 0),
                "by_type": by_type,
                "average_price": round(float(avg_price), 2) if avg_price is not None else 0.0,
                "total_views": int(views_result.scalar() or 0),
            }
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise

    async def get_by_ids(self, ids: List[uuid.UUID]) -> List[Property]:
        if not ids:
            return []
        result = await self.db.execute(
            select(Property).where(Property.id.in_(ids)).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
