"""
Inquiry service: buyer messages about listings and their follow-up by agents.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, timezone
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from realty_api.repositories.inquiry import InquiryRepository, InquiryFilters
from realty_api.repositories.property import PropertyRepository
from realty_api.repositories.user import UserRepository
from realty_api.models.inquiry import Inquiry, InquiryStatus
from realty_api.models.notification import NotificationType, NotificationPriority
from realty_api.models.analytics import EventType
from realty_api.models.user import User
from realty_api.schemas.inquiry import InquiryCreate, InquiryUpdate
from realty_api.services.analytics import AnalyticsService
from realty_api.services.notification import NotificationService
from realty_api.services.email_queue import EmailQueue
from realty_api.utils.exceptions import (
    InquiryNotFoundError,
    PropertyNotFoundError,
    InsufficientPermissionsError,
    ValidationError,
    InternalServerError
)
import html
import uuid
import logging

logger = logging.getLogger(__name__)


def confirmation_email(name: str, property_title: str) -> Dict[str, str]:
    text = (
        f"Hello {name},\n\n"
        f"Thank you for your inquiry about \"{property_title}\". "
        "The listing agent will get back to you soon.\n"
    )
    html_body = (
        "<html><body style=\"font-family: Arial, sans-serif; line-height: 1.6;\">"
        f"<p>Hello {html.escape(name)},</p>"
        f"<p>Thank you for your inquiry about <strong>{html.escape(property_title)}</strong>. "
        "The listing agent will get back to you soon.</p>"
        "</body></html>"
    )
    return {"subject": "Inquiry Confirmation", "text": text, "html": html_body}


class InquiryService:
    """
    Inquiries are visible to admins, to the agent owning the property and to
    the agent they are assigned to.
    """

    def __init__(self, db_session: AsyncSession, email_queue: Optional[EmailQueue] = None):
        self.db = db_session
        self.inquiry_repo = InquiryRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.notifications = NotificationService(db_session)
        self.analytics = AnalyticsService(db_session)
        self.email_queue = email_queue

    @staticmethod
    def _can_access(inquiry: Inquiry, current_user: User) -> bool:
        if current_user.is_admin:
            return True
        if not current_user.is_agent:
            return False
        owns_property = inquiry.property_rel is not None and inquiry.property_rel.agent_id == current_user.id
        return owns_property or inquiry.assigned_to_id == current_user.id

    async def _get_accessible(self, inquiry_id: uuid.UUID, current_user: User) -> Inquiry:
        inquiry = await self.inquiry_repo.get_by_id(inquiry_id)
        # Inquiries outside the agent's scope are reported as missing
        if not inquiry or not self._can_access(inquiry, current_user):
            raise InquiryNotFoundError(str(inquiry_id))
        return inquiry

    async def create_inquiry(
        self,
        data: InquiryCreate,
        current_user: Optional[User] = None,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        """
        Store an inquiry, then notify the agent, record the event and queue a
        confirmation email. Side effects never fail the submission.

        Raises:
            PropertyNotFoundError: If the property does not exist or is not public
        """
        property_obj = await self.property_repo.get_by_id(data.property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(data.property_id))

        manages_it = current_user is not None and current_user.can_manage_property(property_obj.agent_id)
        if not property_obj.is_public and not manages_it:
            raise PropertyNotFoundError(str(data.property_id))

        agent_id, property_title = property_obj.agent_id, property_obj.title

        payload = data.model_dump()
        if not payload.get("name"):
            payload["name"] = current_user.full_name if current_user else data.email.split("@")[0]
        payload["user_id"] = current_user.id if current_user else None
        payload["status"] = InquiryStatus.PENDING

        try:
            inquiry = await self.inquiry_repo.create(payload)
        except Exception as e:
            logger.error(f"Failed to create inquiry for property {data.property_id}: {e}")
            raise InternalServerError("Failed to submit inquiry")

        result = inquiry.to_dict()
        inquiry_id = inquiry.id
        submitter = current_user.email if current_user else data.email
        logger.info(f"Inquiry created: {inquiry_id} by {submitter}")

        await self.notifications.notify(
            recipient_id=agent_id,
            title="New inquiry",
            message=f"{payload['name']} sent an inquiry about {property_title}",
            type=NotificationType.INQUIRY,
            priority=NotificationPriority.HIGH,
            sender_id=current_user.id if current_user else None,
            related_model="inquiry",
            related_id=inquiry_id,
            action_url=f"/inquiries/{inquiry_id}",
        )

        await self.analytics.record_event(
            EventType.INQUIRY_SUBMITTED,
            user_id=current_user.id if current_user else None,
            request=request,
            related_model="inquiry",
            related_id=inquiry_id,
            metadata={"property_id": str(data.property_id), "inquiry_type": data.inquiry_type.value},
        )

        self._queue_confirmation(data.email, payload["name"], property_title)
        return result

    def _queue_confirmation(self, email: str, name: str, property_title: str) -> None:
        if self.email_queue is None:
            return
        try:
            self.email_queue.enqueue(to=email, **confirmation_email(name, property_title))
        except Exception as e:
            logger.error(f"Failed to queue inquiry confirmation email for {email}: {e}")

    async def list_inquiries(
        self,
        filters: InquiryFilters,
        page: int = 1,
        limit: int = 10,
        current_user: Optional[User] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        if current_user is None or not current_user.can_manage_listings:
            raise InsufficientPermissionsError("view inquiries")

        filters.visible_to_agent_id = None if current_user.is_admin else current_user.id

        try:
            items, total = await self.inquiry_repo.search_inquiries(filters, page, limit)
        except Exception as e:
            logger.error(f"Failed to list inquiries: {e}")
            raise InternalServerError("Failed to retrieve inquiries")

        return [inquiry.to_dict() for inquiry in items], total

    async def get_inquiry(self, inquiry_id: uuid.UUID, current_user: User) -> Dict[str, Any]:
        """Return one inquiry and mark it read."""
        inquiry = await self._get_accessible(inquiry_id, current_user)

        if not inquiry.is_read:
            try:
                inquiry = await self.inquiry_repo.update(inquiry_id, {"is_read": True})
            except Exception as e:
                logger.error(f"Failed to mark inquiry {inquiry_id} read: {e}")
                raise InternalServerError("Failed to retrieve inquiry")

        return inquiry.to_dict()

    async def update_inquiry(
        self,
        inquiry_id: uuid.UUID,
        data: InquiryUpdate,
        current_user: User,
        request: Optional[Request] = None
    ) -> Dict[str, Any]:
        """
        Update status, assignee or notes.

        The first status change stamps response_time; any status change
        notifies the submitting user when the inquiry has one.
        """
        inquiry = await self._get_accessible(inquiry_id, current_user)

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        if "assigned_to_id" in update_data:
            assignee = await self.user_repo.get_by_id(update_data["assigned_to_id"])
            if not assignee or not assignee.can_manage_listings or not assignee.is_active:
                raise ValidationError(
                    "Inquiries can only be assigned to active agents or admins",
                    field_errors=[{"field": "assigned_to", "message": "Invalid assignee"}]
                )

        previous_status = inquiry.status
        status_changed = "status" in update_data and update_data["status"] != previous_status
        if status_changed and inquiry.response_time is None:
            update_data["response_time"] = datetime.now(timezone.utc)

        submitter_id = inquiry.user_id
        property_title = inquiry.property_rel.title if inquiry.property_rel else "a property"

        try:
            updated = await self.inquiry_repo.update(inquiry_id, update_data)
        except Exception as e:
            logger.error(f"Failed to update inquiry {inquiry_id}: {e}")
            raise InternalServerError("Failed to update inquiry")

        result = updated.to_dict()
        logger.info(f"Inquiry {inquiry_id} updated by {current_user.email}")

        if status_changed and submitter_id:
            new_status = update_data["status"].value
            await self.notifications.notify(
                recipient_id=submitter_id,
                title="Inquiry status updated",
                message=f"Your inquiry about {property_title} is now {new_status}",
                type=NotificationType.INQUIRY,
                sender_id=current_user.id,
                related_model="inquiry",
                related_id=inquiry_id,
                action_url=f"/inquiries/{inquiry_id}",
            )

        return result

    async def delete_inquiry(self, inquiry_id: uuid.UUID, current_user: User) -> None:
        await self._get_accessible(inquiry_id, current_user)
        try:
            await self.inquiry_repo.delete(inquiry_id)
        except Exception as e:
            logger.error(f"Failed to delete inquiry {inquiry_id}: {e}")
            raise InternalServerError("Failed to delete inquiry")
        logger.info(f"Inquiry deleted: {inquiry_id} by {current_user.email}")

    async def my_inquiries(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[InquiryStatus] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        filters = InquiryFilters(status=status, user_id=current_user.id)
        try:
            items, total = await self.inquiry_repo.search_inquiries(filters, page, limit)
        except Exception as e:
            logger.error(f"Failed to list inquiries of {current_user.id}: {e}")
            raise InternalServerError("Failed to retrieve inquiries")
        return [inquiry.to_dict() for inquiry in items], total

    async def get_statistics(self, current_user: User) -> Dict[str, Any]:
        if not current_user.can_manage_listings:
            raise InsufficientPermissionsError("view inquiry statistics")
        agent_id = None if current_user.is_admin else current_user.id
        try:
            return await self.inquiry_repo.get_inquiry_statistics(agent_id)
        except Exception as e:
            logger.error(f"Failed to compute inquiry statistics: {e}")
            raise InternalServerError("Failed to retrieve inquiry statistics")
