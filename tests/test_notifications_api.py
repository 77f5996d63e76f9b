"""
API tests for the per-user notification feed.
"""

import pytest

from realty_api.services.notification import NotificationService
from tests.conftest import auth_headers


async def seed(db, user, count: int):
    service = NotificationService(db)
    return [await service.notify(user.id, f"Notice {i}", f"Message {i}") for i in range(count)]


class TestNotificationFeed:

    @pytest.mark.asyncio
    async def test_list_reports_unread_count(self, client, db_session, regular_user, agent_user):
        await seed(db_session, regular_user, 3)
        await seed(db_session, agent_user, 1)

        response = await client.get("/api/notifications", params={"limit": 2}, headers=auth_headers(regular_user))

        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"]["totalItems"] == 3
        assert body["unreadCount"] == 3

    @pytest.mark.asyncio
    async def test_mark_read_and_unread_only_filter(self, client, db_session, regular_user):
        first, _ = await seed(db_session, regular_user, 2)
        headers = auth_headers(regular_user)

        marked = await client.patch(f"/api/notifications/{first.id}/read", headers=headers)
        assert marked.json()["data"]["is_read"] is True
        assert marked.json()["data"]["read_at"] is not None

        unread = await client.get("/api/notifications", params={"unread_only": True}, headers=headers)
        count = await client.get("/api/notifications/unread-count", headers=headers)

        assert str(first.id) not in [n["id"] for n in unread.json()["data"]]
        assert unread.json()["pagination"]["totalItems"] == 1
        assert count.json()["data"] == {"unreadCount": 1}

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client, db_session, regular_user):
        await seed(db_session, regular_user, 3)
        headers = auth_headers(regular_user)

        response = await client.patch("/api/notifications/read-all", headers=headers)

        assert response.json()["data"] == {"updated": 3}
        assert (await client.get("/api/notifications/unread-count", headers=headers)).json()["data"]["unreadCount"] == 0

    @pytest.mark.asyncio
    async def test_other_users_notifications_are_hidden(self, client, db_session, regular_user, agent_user):
        (notification,) = await seed(db_session, agent_user, 1)
        headers = auth_headers(regular_user)

        assert (await client.get(f"/api/notifications/{notification.id}", headers=headers)).status_code == 404
        assert (await client.patch(f"/api/notifications/{notification.id}/read", headers=headers)).status_code == 404
        assert (await client.delete(f"/api/notifications/{notification.id}", headers=headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_one_and_all(self, client, db_session, regular_user):
        first, _, _ = await seed(db_session, regular_user, 3)
        headers = auth_headers(regular_user)

        single = await client.delete(f"/api/notifications/{first.id}", headers=headers)
        remaining = await client.delete("/api/notifications", headers=headers)

        assert single.status_code == 200
        assert remaining.json()["data"] == {"deleted": 2}

    @pytest.mark.asyncio
    async def test_admin_sends_notification(self, client, admin_user, regular_user):
        response = await client.post(
            "/api/notifications",
            json={"recipient": str(regular_user.id), "title": "Maintenance", "message": "Downtime tonight", "priority": "high"},
            headers=auth_headers(admin_user)
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["recipient_id"] == str(regular_user.id)
        assert data["sender_id"] == str(admin_user.id)

        feed = await client.get("/api/notifications", headers=auth_headers(regular_user))
        assert feed.json()["data"][0]["title"] == "Maintenance"

    @pytest.mark.asyncio
    async def test_only_admins_send_notifications(self, client, agent_user, regular_user):
        response = await client.post(
            "/api/notifications",
            json={"recipient": str(regular_user.id), "title": "Hi", "message": "Hello"},
            headers=auth_headers(agent_user)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_recipient_is_404(self, client, admin_user):
        response = await client.post(
            "/api/notifications",
            json={"recipient": "00000000-0000-0000-0000-000000000000", "title": "Hi", "message": "Hello"},
            headers=auth_headers(admin_user)
        )
        assert response.status_code == 404
