"""
API tests for registration, login, token refresh, the current-user endpoint
and logout.
"""

import pytest

from realty_api.models.user import UserRole
from realty_api.utils.auth import create_refresh_token
from tests.conftest import UserFactory, auth_headers


def register_payload(**overrides) -> dict:
    payload = {
        "email": "New.User@Example.com",
        "password": "secret123",
        "full_name": "Nia New",
    }
    payload.update(overrides)
    return payload


class TestRegistration:

    @pytest.mark.asyncio
    async def test_register_returns_user_and_tokens(self, client):
        response = await client.post("/api/auth/register", json=register_payload())

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["role"] == "user"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.json()["data"]["email"] == "new.user@example.com"

    @pytest.mark.asyncio
    async def test_register_as_agent(self, client):
        response = await client.post("/api/auth/register", json=register_payload(role="agent"))
        assert response.json()["data"]["user"]["role"] == "agent"

    @pytest.mark.asyncio
    async def test_admin_role_cannot_be_self_registered(self, client):
        response = await client.post("/api/auth/register", json=register_payload(role="admin"))

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "role"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, client, regular_user):
        response = await client.post("/api/auth/register", json=register_payload(email=regular_user.email))
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_weak_password_rejected(self, client):
        response = await client.post("/api/auth/register", json=register_payload(password="lettersonly"))

        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "password", "message": "Password must contain at least one number"}
        ]


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_with_valid_credentials(self, client, regular_user):
        response = await client.post(
            "/api/auth/login", json={"email": "BUYER@example.com", "password": "testpassword123"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == str(regular_user.id)
        assert data["user"]["last_login"] is not None
        assert data["access_token"]
        assert data["refresh_token"]

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, regular_user):
        response = await client.post("/api/auth/login", json={"email": regular_user.email, "password": "nope12345"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_log_in(self, client, db_session):
        user = await UserFactory.create_user(db_session, email="dormant@example.com", is_active=False)

        response = await client.post("/api/auth/login", json={"email": user.email, "password": "testpassword123"})

        assert response.status_code == 403


class TestTokens:

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Authentication required"}

    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_an_access_token(self, client, regular_user):
        refresh = create_refresh_token(user_id=regular_user.id, email=regular_user.email)

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_issues_new_pair(self, client, regular_user):
        refresh = create_refresh_token(user_id=regular_user.id, email=regular_user.email)

        response = await client.post("/api/auth/refresh", json={"refresh_token": refresh})

        assert response.status_code == 200
        data = response.json()["data"]
        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, client, regular_user):
        access = auth_headers(regular_user)["Authorization"].split(" ", 1)[1]
        response = await client.post("/api/auth/refresh", json={"refresh_token": access})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, client, regular_user):
        headers = auth_headers(regular_user)

        response = await client.post("/api/auth/logout", headers=headers)
        assert response.status_code == 200

        after = await client.get("/api/auth/me", headers=headers)
        assert after.status_code == 401
        assert after.json()["message"] == "Token has been revoked"

    @pytest.mark.asyncio
    async def test_deactivated_user_token_stops_working(self, client, db_session, admin_user):
        user = await UserFactory.create_user(db_session, email="soon.gone@example.com", role=UserRole.AGENT)
        headers = auth_headers(user)

        toggled = await client.patch(f"/api/users/{user.id}/toggle-status", headers=auth_headers(admin_user))
        assert toggled.json()["data"]["is_active"] is False

        response = await client.get("/api/auth/me", headers=headers)
        assert response.status_code == 403
