"""
API tests for inquiries: public and authenticated submission, agent
visibility, status workflow and statistics.
"""

import pytest
import uuid

from realty_api.models.notification import NotificationType
from realty_api.models.property import PropertyStatus
from realty_api.repositories.inquiry import InquiryRepository
from realty_api.repositories.notification import NotificationRepository
from tests.conftest import PropertyFactory, auth_headers


def inquiry_payload(property_id, **overrides) -> dict:
    payload = {
        "property": str(property_id),
        "name": "Jamie Buyer",
        "email": "Jamie@Example.com",
        "phone": "+1 555 0100",
        "message": "Is the garden south facing?",
        "inquiry_type": "viewing",
    }
    payload.update(overrides)
    return payload


class TestInquirySubmission:

    @pytest.mark.asyncio
    async def test_public_inquiry_is_stored_and_side_effects_run(
        self, client, db_session, agent_user, agent_property, email_queue
    ):
        response = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["email"] == "jamie@example.com"
        assert data["user_id"] is None
        assert data["property_id"] == str(agent_property.id)

        notifications, total = await NotificationRepository(db_session).list_for_recipient(agent_user.id, 1, 10, False)
        assert total == 1
        assert notifications[0].type == NotificationType.INQUIRY
        assert notifications[0].related_id == data["id"]

        email_queue.enqueue.assert_called_once()
        kwargs = email_queue.enqueue.call_args.kwargs
        assert kwargs["to"] == "jamie@example.com"
        assert kwargs["subject"] == "Inquiry Confirmation"
        assert agent_property.title in kwargs["text"]

    @pytest.mark.asyncio
    async def test_public_inquiry_missing_email_persists_nothing(self, client, db_session, agent_property, email_queue):
        payload = inquiry_payload(agent_property.id)
        del payload["email"]

        response = await client.post("/api/inquiries/public", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert {"field": "email", "message": "Field required"} in body["errors"]
        assert await InquiryRepository(db_session).count() == 0
        email_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_public_inquiry_missing_message_is_rejected(self, client, db_session, agent_property):
        payload = inquiry_payload(agent_property.id, message="   ")

        response = await client.post("/api/inquiries/public", json=payload)

        assert response.status_code == 400
        assert await InquiryRepository(db_session).count() == 0

    @pytest.mark.asyncio
    async def test_inquiry_about_unknown_property_returns_404(self, client):
        response = await client.post("/api/inquiries/public", json=inquiry_payload(uuid.uuid4()))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_inquiry_about_draft_returns_404(self, client, db_session, agent_user):
        draft = await PropertyFactory.create_property(db_session, agent_user, status=PropertyStatus.DRAFT)
        response = await client.post("/api/inquiries/public", json=inquiry_payload(draft.id))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_queue_failure_does_not_fail_submission(self, client, agent_property, email_queue):
        email_queue.enqueue.side_effect = ConnectionError("redis down")

        response = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_confirmation_email_escapes_submitted_markup(self, client, agent_property, email_queue):
        name = '<a href="http://evil.example">Claim prize</a>'

        response = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id, name=name))

        assert response.status_code == 201
        html_body = email_queue.enqueue.call_args.kwargs["html"]
        assert "<a href" not in html_body
        assert "&lt;a href=&quot;http://evil.example&quot;&gt;Claim prize&lt;/a&gt;" in html_body

    @pytest.mark.asyncio
    async def test_authenticated_inquiry_links_user_and_defaults_name(self, client, regular_user, agent_property):
        payload = inquiry_payload(agent_property.id)
        del payload["name"]

        response = await client.post("/api/inquiries", json=payload, headers=auth_headers(regular_user))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user_id"] == str(regular_user.id)
        assert data["name"] == regular_user.full_name

    @pytest.mark.asyncio
    async def test_authenticated_endpoint_requires_token(self, client, agent_property):
        response = await client.post("/api/inquiries", json=inquiry_payload(agent_property.id))
        assert response.status_code == 401


class TestInquiryInbox:

    @pytest.mark.asyncio
    async def test_agents_only_see_their_inquiries(self, client, db_session, agent_user, other_agent, admin_user):
        mine = await PropertyFactory.create_property(db_session, agent_user, title="Mine")
        theirs = await PropertyFactory.create_property(db_session, other_agent, title="Theirs")
        await client.post("/api/inquiries/public", json=inquiry_payload(mine.id))
        await client.post("/api/inquiries/public", json=inquiry_payload(theirs.id))

        agent_view = await client.get("/api/inquiries", headers=auth_headers(agent_user))
        admin_view = await client.get("/api/inquiries", headers=auth_headers(admin_user))

        assert [item["property_id"] for item in agent_view.json()["data"]] == [str(mine.id)]
        assert admin_view.json()["pagination"]["totalItems"] == 2
        assert admin_view.json()["pagination"]["itemsPerPage"] == 10

    @pytest.mark.asyncio
    async def test_assigned_agent_sees_inquiry(self, client, admin_user, other_agent, agent_property):
        created = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))
        inquiry_id = created.json()["data"]["id"]

        before = await client.get(f"/api/inquiries/{inquiry_id}", headers=auth_headers(other_agent))
        assert before.status_code == 404

        assigned = await client.put(
            f"/api/inquiries/{inquiry_id}",
            json={"assigned_to": str(other_agent.id)},
            headers=auth_headers(admin_user)
        )
        assert assigned.status_code == 200

        after = await client.get(f"/api/inquiries/{inquiry_id}", headers=auth_headers(other_agent))
        assert after.status_code == 200

    @pytest.mark.asyncio
    async def test_regular_user_cannot_list(self, client, regular_user):
        response = await client.get("/api/inquiries", headers=auth_headers(regular_user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_get_marks_inquiry_read(self, client, agent_user, agent_property):
        created = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))
        assert created.json()["data"]["is_read"] is False

        response = await client.get(f"/api/inquiries/{created.json()['data']['id']}", headers=auth_headers(agent_user))

        assert response.status_code == 200
        assert response.json()["data"]["is_read"] is True

    @pytest.mark.asyncio
    async def test_status_change_sets_response_time_once_and_notifies_submitter(
        self, client, db_session, agent_user, regular_user, agent_property
    ):
        created = await client.post(
            "/api/inquiries", json=inquiry_payload(agent_property.id), headers=auth_headers(regular_user)
        )
        inquiry_id = created.json()["data"]["id"]
        headers = auth_headers(agent_user)

        contacted = await client.put(f"/api/inquiries/{inquiry_id}", json={"status": "contacted"}, headers=headers)
        first_response_time = contacted.json()["data"]["response_time"]
        assert contacted.json()["data"]["status"] == "contacted"
        assert first_response_time is not None

        scheduled = await client.put(f"/api/inquiries/{inquiry_id}", json={"status": "scheduled"}, headers=headers)
        assert scheduled.json()["data"]["response_time"] == first_response_time

        notifications, total = await NotificationRepository(db_session).list_for_recipient(regular_user.id, 1, 10, False)
        assert total == 2
        assert all(n.related_id == inquiry_id for n in notifications)

    @pytest.mark.asyncio
    async def test_assigning_regular_user_is_rejected(self, client, admin_user, regular_user, agent_property):
        created = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))

        response = await client.put(
            f"/api/inquiries/{created.json()['data']['id']}",
            json={"assigned_to": str(regular_user.id)},
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_inquiry(self, client, db_session, agent_user, other_agent, agent_property):
        created = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))
        inquiry_id = created.json()["data"]["id"]

        denied = await client.delete(f"/api/inquiries/{inquiry_id}", headers=auth_headers(other_agent))
        assert denied.status_code == 404

        response = await client.delete(f"/api/inquiries/{inquiry_id}", headers=auth_headers(agent_user))
        assert response.status_code == 204
        assert await InquiryRepository(db_session).count() == 0

    @pytest.mark.asyncio
    async def test_my_inquiries(self, client, regular_user, agent_property):
        headers = auth_headers(regular_user)
        await client.post("/api/inquiries", json=inquiry_payload(agent_property.id), headers=headers)
        await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id, email="someone@example.com"))

        response = await client.get("/api/inquiries/my", headers=headers)

        body = response.json()
        assert body["pagination"]["totalItems"] == 1
        assert body["data"][0]["user_id"] == str(regular_user.id)

    @pytest.mark.asyncio
    async def test_statistics(self, client, agent_user, agent_property):
        headers = auth_headers(agent_user)
        first = await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id))
        await client.post("/api/inquiries/public", json=inquiry_payload(agent_property.id, inquiry_type="purchase"))
        await client.put(f"/api/inquiries/{first.json()['data']['id']}", json={"status": "completed"}, headers=headers)

        response = await client.get("/api/inquiries/stats", headers=headers)

        stats = response.json()["data"]
        assert stats["total"] == 2
        assert stats["pending"] == 1
        assert stats["completed"] == 1
        assert stats["by_type"] == {"viewing": 1, "purchase": 1}
        assert stats["average_response_time_hours"] >= 0
