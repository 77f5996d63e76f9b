"""
Inquiry repository with agent-scoped visibility and reporting queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from realty_api.repositories.base import BaseRepository
from realty_api.models.inquiry import Inquiry, InquiryStatus, InquiryType
from realty_api.models.property import Property
from typing import Optional, List, Dict, Any, Tuple
from dataclasses import dataclass
import uuid
import logging

logger = logging.getLogger(__name__)


@dataclass
class InquiryFilters:
    status: Optional[InquiryStatus] = None
    inquiry_type: Optional[InquiryType] = None
    property_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    # When set, only inquiries about this agent's properties or assigned to them
    visible_to_agent_id: Optional[uuid.UUID] = None


class InquiryRepository(BaseRepository[Inquiry]):
    """Repository for buyer inquiries."""

    def __init__(self, db: AsyncSession):
        super().__init__(Inquiry, db)

    @staticmethod
    def _agent_visibility(agent_id: uuid.UUID):
        owned = select(Property.id).where(Property.agent_id == agent_id)
        return or_(Inquiry.property_id.in_(owned), Inquiry.assigned_to_id == agent_id)

    def _build_conditions(self, filters: InquiryFilters) -> List:
        conditions = []
        if filters.status:
            conditions.append(Inquiry.status == filters.status)
        if filters.inquiry_type:
            conditions.append(Inquiry.inquiry_type == filters.inquiry_type)
        if filters.property_id:
            conditions.append(Inquiry.property_id == filters.property_id)
        if filters.user_id:
            conditions.append(Inquiry.user_id == filters.user_id)
        if filters.visible_to_agent_id:
            conditions.append(self._agent_visibility(filters.visible_to_agent_id))
        return conditions

    async def search_inquiries(
        self,
        filters: InquiryFilters,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Inquiry], int]:
        try:
            query = select(Inquiry)
            conditions = self._build_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))
            query = query.order_by(desc(Inquiry.created_at), desc(Inquiry.id))
            return await self.paginate(query, page, limit)
        except Exception as e:
            logger.error(f"Failed to search inquiries: {e}")
            raise

    async def get_recent(self, limit: int = 5) -> List[Inquiry]:
        return await self.get_multi(skip=0, limit=limit, order_by="-created_at")

    async def get_inquiry_statistics(self, agent_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Counts per status and type plus average hours until first response.
        Restricted to the agent's visible inquiries when agent_id is given.
        """
        try:
            scope = []
            if agent_id:
                scope.append(self._agent_visibility(agent_id))

            def scoped(query):
                return query.where(and_(*scope)) if scope else query

            total = (await self.db.execute(scoped(select(func.count(Inquiry.id))))).scalar() or 0

            status_rows = await self.db.execute(
                scoped(select(Inquiry.status, func.count(Inquiry.id))).group_by(Inquiry.status)
            )
            by_status = {row[0].value: row[1] for row in status_rows.all()}

            type_rows = await self.db.execute(
                scoped(select(Inquiry.inquiry_type, func.count(Inquiry.id))).group_by(Inquiry.inquiry_type)
            )
            by_type = {row[0].value: row[1] for row in type_rows.all()}

            # Durations are computed here because date arithmetic differs between backends
            response_rows = await self.db.execute(
                scoped(select(Inquiry.created_at, Inquiry.response_time)).where(
                    Inquiry.response_time.isnot(None)
                )
            )
            durations = [
                (responded.replace(tzinfo=None) - created.replace(tzinfo=None)).total_seconds() / 3600
                for created, responded in response_rows.all()
                if created and responded
            ]
            average_hours = round(sum(durations) / len(durations), 2) if durations else 0.0

            stats = {"total": total}
            for status in InquiryStatus:
                stats[status.value] = by_status.get(status.value, 0)
            stats["by_type"] = by_type
            stats["average_response_time_hours"] = average_hours
            return stats
        except Exception as e:
            logger.error(f"Failed to get inquiry statistics: {e}")
            raise
