"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, Select
from realty_api.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type, Tuple
from datetime import datetime
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Every read uses populate_existing so objects already in the session are
    refreshed instead of returned stale after an update.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    if isinstance(value, (list, tuple)):
                        query = query.where(getattr(self.model, field).in_(value))
                    else:
                        query = query.where(getattr(self.model, field) == value)
        return query

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance with server defaults and eager relationships loaded

        Raises:
            Exception: If database operation fails
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return await self.get_by_id(db_obj.id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        try:
            query = (
                select(self.model)
                .where(self.model.id == id)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def get_multi(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> List[ModelType]:
        """
        Get multiple records with optional filtering, pagination, and ordering.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            filters: Field equality filters (lists become IN clauses)
            order_by: Field name to order by (prefix with '-' for descending)
        """
        try:
            query = self._apply_filters(select(self.model), filters)
            query = query.order_by(self._order_clause(order_by))
            query = query.offset(skip).limit(limit).execution_options(populate_existing=True)

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get multiple {self.model.__name__} records: {e}")
            raise

    def _order_clause(self, order_by: Optional[str]):
        if order_by:
            descending = order_by.startswith("-")
            field_name = order_by.lstrip("-")
            if hasattr(self.model, field_name):
                column = getattr(self.model, field_name)
                return column.desc() if descending else column.asc()
        return self.model.created_at.desc()

    async def paginate(self, query: Select, page: int, limit: int) -> Tuple[List[ModelType], int]:
        """
        Run a select for one page and count the full result set.

        Returns:
            Tuple of (items on the page, total matching records)
        """
        try:
            count_query = select(func.count()).select_from(query.order_by(None).subquery())
            total = (await self.db.execute(count_query)).scalar() or 0

            page_query = (
                query.offset((page - 1) * limit)
                .limit(limit)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(page_query)
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to paginate {self.model.__name__} records: {e}")
            raise

    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update a record by its ID.

        Keys present in obj_in are written as given, including None.

        Returns:
            Updated model instance if found, None otherwise
        """
        try:
            if not obj_in:
                return await self.get_by_id(id)

            stmt = update(self.model).where(self.model.id == id).values(**obj_in)
            result = await self.db.execute(stmt)

            if result.rowcount == 0:
                await self.db.rollback()
                logger.debug(f"{self.model.__name__} with id {id} not found for update")
                return None

            await self.db.commit()
            logger.debug(f"Updated {self.model.__name__} with id: {id}")
            return await self.get_by_id(id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {id}: {e}")
            raise

    async def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record through the ORM so relationship cascades run.

        Returns:
            True if record was deleted, False if not found
        """
        try:
            obj = await self.get_by_id(id)
            if obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found for deletion")
                return False

            await self.db.delete(obj)
            await self.db.commit()
            logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            query = self._apply_filters(select(func.count(self.model.id)), filters)
            result = await self.db.execute(query)
            return result.scalar() or 0
        except Exception as e:
            logger.error(f"Failed to count {self.model.__name__} records: {e}")
            raise

    async def count_created_since(self, since: datetime) -> int:
        try:
            result = await self.db.execute(
                select(func.count(self.model.id)).where(self.model.created_at >= since)
            )
            return result.scalar() or 0
        except Exception as e:
            logger.error(f"Failed to count recent {self.model.__name__} records: {e}")
            raise

    async def count_by(self, column_name: str, filters: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        """Group counts by a column, keyed by the column value (enum values unwrapped)."""
        try:
            column = getattr(self.model, column_name)
            query = self._apply_filters(select(column, func.count(self.model.id)), filters).group_by(column)
            result = await self.db.execute(query)
            return {
                (key.value if hasattr(key, "value") else str(key)): count
                for key, count in result.all()
            }
        except Exception as e:
            logger.error(f"Failed to group {self.model.__name__} records by {column_name}: {e}")
            raise

    async def exists(self, id: uuid.UUID) -> bool:
        try:
            query = select(func.count(self.model.id)).where(self.model.id == id)
            result = await self.db.execute(query)
            return (result.scalar() or 0) > 0
        except Exception as e:
            logger.error(f"Failed to check existence of {self.model.__name__} {id}: {e}")
            raise

    async def bulk_delete(self, ids: List[uuid.UUID]) -> int:
        """
        Delete multiple records by their IDs in a single transaction.

        Returns:
            Number of records deleted
        """
        try:
            if not ids:
                return 0
            stmt = delete(self.model).where(self.model.id.in_(ids))
            result = await self.db.execute(stmt)
            await self.db.commit()

            logger.debug(f"Bulk deleted {result.rowcount} {self.model.__name__} records")
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to bulk delete {self.model.__name__} records: {e}")
            raise
