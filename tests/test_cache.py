"""
Tests for the Redis response cache and its middleware.
"""

import fakeredis
import pytest

from realty_api.services.cache import ResponseCache, build_cache_key, caller_scope, PUBLIC_SCOPE
from realty_api.main import app
from tests.conftest import PropertyFactory, auth_headers


class TestCacheKeys:

    def test_query_order_does_not_change_key(self):
        first = build_cache_key("/api/properties", [("page", "2"), ("city", "Austin")], PUBLIC_SCOPE)
        second = build_cache_key("/api/properties", [("city", "Austin"), ("page", "2")], PUBLIC_SCOPE)
        assert first == second
        assert first == "cache:/api/properties?city=Austin&page=2|public"

    def test_each_credential_gets_its_own_scope(self):
        assert caller_scope(None) == PUBLIC_SCOPE
        assert caller_scope("Bearer a") != caller_scope("Bearer b")
        assert caller_scope("Bearer a") == caller_scope(" Bearer a ")

    @pytest.mark.asyncio
    async def test_invalidate_drops_namespace_only(self, response_cache):
        await response_cache.set("cache:/api/properties?|public", 200, b"{}", "application/json", 60)
        await response_cache.set("cache:/api/properties/featured?|public", 200, b"{}", "application/json", 60)
        await response_cache.set("cache:/api/inquiries?|abc", 200, b"{}", "application/json", 60)

        deleted = await response_cache.invalidate("/api/properties")

        assert deleted == 2
        assert await response_cache.get("cache:/api/inquiries?|abc") is not None


class TestCacheMiddleware:

    @pytest.mark.asyncio
    async def test_second_listing_request_is_served_from_cache(self, client, agent_property):
        first = await client.get("/api/properties")
        second = await client.get("/api/properties")

        assert first.headers["X-Cache"] == "MISS"
        assert second.headers["X-Cache"] == "HIT"
        assert second.json() == first.json()

    @pytest.mark.asyncio
    async def test_mutation_invalidates_namespace(self, client, agent_user, agent_property):
        await client.get("/api/properties")

        created = await client.post(
            "/api/properties", json=PropertyFactory.create_payload(), headers=auth_headers(agent_user)
        )
        assert created.status_code == 201

        after = await client.get("/api/properties")
        assert after.headers["X-Cache"] == "MISS"
        assert after.json()["pagination"]["totalItems"] == 2

    @pytest.mark.asyncio
    async def test_failed_mutation_keeps_cache(self, client, other_agent, agent_property):
        await client.get("/api/properties")

        denied = await client.put(
            f"/api/properties/{agent_property.id}", json={"title": "Hijacked"}, headers=auth_headers(other_agent)
        )
        assert denied.status_code == 403

        assert (await client.get("/api/properties")).headers["X-Cache"] == "HIT"

    @pytest.mark.asyncio
    async def test_deleting_property_drops_cached_inquiries(self, client, agent_user, agent_property):
        headers = auth_headers(agent_user)
        submitted = await client.post("/api/inquiries/public", json={
            "property": str(agent_property.id),
            "name": "Jamie Buyer",
            "email": "jamie@example.com",
            "message": "Is it still available?",
        })
        assert submitted.status_code == 201

        before = await client.get("/api/inquiries", headers=headers)
        assert before.json()["pagination"]["totalItems"] == 1

        deleted = await client.delete(f"/api/properties/{agent_property.id}", headers=headers)
        assert deleted.status_code == 204

        after = await client.get("/api/inquiries", headers=headers)
        assert after.headers["X-Cache"] == "MISS"
        assert after.json()["pagination"]["totalItems"] == 0

    @pytest.mark.asyncio
    async def test_property_update_refreshes_inquiry_titles(self, client, agent_user, agent_property):
        headers = auth_headers(agent_user)
        await client.post("/api/inquiries/public", json={
            "property": str(agent_property.id),
            "name": "Jamie Buyer",
            "email": "jamie@example.com",
            "message": "Is it still available?",
        })
        await client.get("/api/inquiries", headers=headers)

        updated = await client.put(
            f"/api/properties/{agent_property.id}", json={"title": "Renamed listing"}, headers=headers
        )
        assert updated.status_code == 200

        after = await client.get("/api/inquiries", headers=headers)
        assert after.headers["X-Cache"] == "MISS"
        assert after.json()["data"][0]["property"]["title"] == "Renamed listing"

    @pytest.mark.asyncio
    async def test_callers_do_not_share_entries(self, client, db_session, agent_user, other_agent):
        await PropertyFactory.create_property(db_session, agent_user, title="Draft", is_published=False)

        agent_view = await client.get("/api/properties", headers=auth_headers(agent_user))
        other_view = await client.get("/api/properties", headers=auth_headers(other_agent))
        anonymous = await client.get("/api/properties")

        assert agent_view.headers["X-Cache"] == "MISS"
        assert other_view.headers["X-Cache"] == "MISS"
        assert anonymous.headers["X-Cache"] == "MISS"
        assert agent_view.json()["pagination"]["totalItems"] == 1
        assert other_view.json()["pagination"]["totalItems"] == 0

    @pytest.mark.asyncio
    async def test_logout_clears_caller_scope(self, client, response_cache, agent_user, agent_property):
        headers = auth_headers(agent_user)
        await client.get("/api/inquiries", headers=headers)
        await client.get("/api/properties")

        response = await client.post("/api/auth/logout", headers=headers)
        assert response.status_code == 200

        scope = caller_scope(headers["Authorization"])
        assert await response_cache.get(build_cache_key("/api/inquiries", [], scope)) is None
        assert await response_cache.get(build_cache_key("/api/properties", [], PUBLIC_SCOPE)) is not None

    @pytest.mark.asyncio
    async def test_error_responses_are_not_cached(self, client):
        first = await client.get("/api/properties", params={"limit": 500})
        second = await client.get("/api/properties", params={"limit": 500})

        assert first.status_code == 400
        assert "X-Cache" not in second.headers

    @pytest.mark.asyncio
    async def test_unavailable_backend_still_serves_requests(self, client, agent_property):
        server = fakeredis.FakeServer()
        server.connected = False
        app.state.response_cache = ResponseCache(fakeredis.aioredis.FakeRedis(server=server, decode_responses=True))

        first = await client.get("/api/properties")
        second = await client.get("/api/properties")

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.headers["X-Cache"] == "MISS"
