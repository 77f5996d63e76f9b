"""
API tests for the admin dashboard, analytics, system health and maintenance
operations.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from realty_api.main import app
from realty_api.models.notification import NotificationType
from realty_api.repositories.notification import NotificationRepository
from realty_api.repositories.property import PropertyRepository
from realty_api.services.admin import AdminService
from realty_api.utils.dependencies import get_admin_service
from tests.conftest import PropertyFactory, auth_headers


def broken_session() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")))
    return session


class TestDashboard:

    @pytest.mark.asyncio
    async def test_admin_only(self, client, agent_user):
        response = await client.get("/api/admin/dashboard", headers=auth_headers(agent_user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_totals_and_recent_activity(self, client, admin_user, agent_user, agent_property):
        await client.post(
            "/api/inquiries/public",
            json={"property": str(agent_property.id), "email": "buyer@example.org", "message": "Still available?"}
        )

        response = await client.get("/api/admin/dashboard", headers=auth_headers(admin_user))

        data = response.json()["data"]
        assert data["totals"] == {"users": 2, "properties": 1, "inquiries": 1, "pending_inquiries": 1}
        assert [p["id"] for p in data["recent_properties"]] == [str(agent_property.id)]
        assert len(data["recent_inquiries"]) == 1

    @pytest.mark.asyncio
    async def test_analytics_window(self, client, admin_user, agent_property):
        await client.get(f"/api/properties/{agent_property.id}")

        response = await client.get("/api/admin/analytics", params={"days": 7}, headers=auth_headers(admin_user))

        data = response.json()["data"]
        assert data["period_days"] == 7
        assert data["events_by_type"]["property_view"] == 1
        assert sum(day["count"] for day in data["daily_events"]) >= 1

    @pytest.mark.asyncio
    async def test_analytics_days_bounds(self, client, admin_user):
        response = await client.get("/api/admin/analytics", params={"days": 0}, headers=auth_headers(admin_user))
        assert response.status_code == 400


class TestSystemHealth:

    @pytest.mark.asyncio
    async def test_healthy_system(self, client, admin_user):
        response = await client.get("/api/admin/system-health", headers=auth_headers(admin_user))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["cache"]["status"] == "healthy"
        assert data["checks"]["email_queue"]["stats"]["failed"] == 0
        assert "memory_rss" in data["process"]
        assert "cpu_percent" in data["system"]
        assert data["features"]["email"] is False

    @pytest.mark.asyncio
    async def test_failing_queue_degrades(self, client, admin_user, email_queue):
        email_queue.get_queue_stats.side_effect = ConnectionError("redis down")

        response = await client.get("/api/admin/system-health", headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_database_down_is_503(self, client, admin_user):
        # Authentication still uses the working test database
        app.dependency_overrides[get_admin_service] = lambda: AdminService(broken_session())

        response = await client.get("/api/admin/system-health", headers=auth_headers(admin_user))

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["data"]["status"] == "unhealthy"
        assert body["data"]["checks"]["database"]["status"] == "unhealthy"


class TestMaintenanceOperations:

    @pytest.mark.asyncio
    async def test_manual_cleanup(self, client, db_session, admin_user, regular_user):
        await NotificationRepository(db_session).create({
            "recipient_id": regular_user.id,
            "title": "Old",
            "message": "Old news",
            "type": NotificationType.INFO,
            "is_read": True,
            "created_at": datetime.now(timezone.utc) - timedelta(days=60),
        })

        response = await client.post("/api/admin/cleanup", headers=auth_headers(admin_user))

        assert response.status_code == 200
        assert response.json()["data"] == {"notifications": 1, "analytics": 0, "tokens": 0}

    @pytest.mark.asyncio
    async def test_bulk_delete_properties(self, client, db_session, admin_user, agent_user):
        first = await PropertyFactory.create_property(db_session, agent_user, title="First")
        second = await PropertyFactory.create_property(db_session, agent_user, title="Second")
        kept = await PropertyFactory.create_property(db_session, agent_user, title="Kept")

        response = await client.post(
            "/api/admin/properties/bulk-delete",
            json={"ids": [str(first.id), str(second.id)]},
            headers=auth_headers(admin_user)
        )

        assert response.json()["data"] == {"deleted": 2}
        remaining = await PropertyRepository(db_session).get_by_ids([first.id, second.id, kept.id])
        assert [p.id for p in remaining] == [kept.id]

    @pytest.mark.asyncio
    async def test_bulk_delete_requires_ids(self, client, admin_user):
        response = await client.post(
            "/api/admin/properties/bulk-delete", json={"ids": []}, headers=auth_headers(admin_user)
        )
        assert response.status_code == 400
