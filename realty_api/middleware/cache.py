"""
Response caching middleware.
Serves cacheable GET routes from Redis and expires a route namespace after a
successful mutation under it.
"""

from typing import Callable, Optional, Tuple, List
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from redis.exceptions import RedisError
import json
import logging
import re

from realty_api.config import settings
from realty_api.services.cache import ResponseCache, build_cache_key, caller_scope

logger = logging.getLogger(__name__)

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def default_cache_rules(api_prefix: str = settings.api_prefix) -> List[Tuple["re.Pattern", int]]:
    """Cacheable GET routes and their TTLs in seconds."""
    prefix = re.escape(api_prefix)
    return [
        (re.compile(rf"^{prefix}/properties/?$"), settings.cache_ttl_listings),
        (re.compile(rf"^{prefix}/properties/featured/?$"), settings.cache_ttl_listings),
        (re.compile(rf"^{prefix}/properties/nearby/?$"), settings.cache_ttl_nearby),
        (re.compile(rf"^{prefix}/inquiries/?$"), settings.cache_ttl_inquiries),
        (re.compile(rf"^{prefix}/admin/dashboard/?$"), settings.cache_ttl_dashboard),
    ]


def default_related_namespaces(api_prefix: str = settings.api_prefix):
    """Namespaces whose cached data also changes when another namespace is mutated."""
    return {
        f"{api_prefix}/properties": [f"{api_prefix}/inquiries", f"{api_prefix}/admin"],
        f"{api_prefix}/inquiries": [f"{api_prefix}/admin"],
        f"{api_prefix}/users": [f"{api_prefix}/properties", f"{api_prefix}/inquiries", f"{api_prefix}/admin"],
        f"{api_prefix}/admin": [f"{api_prefix}/properties", f"{api_prefix}/inquiries"],
    }


class CacheMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, api_prefix: str = settings.api_prefix):
        super().__init__(app)
        self.api_prefix = api_prefix.rstrip("/")
        self.rules = default_cache_rules(self.api_prefix)
        self.related = default_related_namespaces(self.api_prefix)

    def ttl_for(self, path: str) -> Optional[int]:
        for pattern, ttl in self.rules:
            if pattern.match(path):
                return ttl
        return None

    def namespace_for(self, path: str) -> Optional[str]:
        """`/api/properties/123/images` -> `/api/properties`."""
        if not path.startswith(self.api_prefix + "/"):
            return None
        segment = path[len(self.api_prefix) + 1:].split("/", 1)[0]
        return f"{self.api_prefix}/{segment}" if segment else None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        cache: Optional[ResponseCache] = getattr(request.app.state, "response_cache", None)
        if cache is None:
            return await call_next(request)

        if request.method == "GET":
            ttl = self.ttl_for(request.url.path)
            if ttl is not None:
                return await self._cached_get(request, call_next, cache, ttl)
            return await call_next(request)

        response = await call_next(request)

        if request.method in MUTATING_METHODS and 200 <= response.status_code < 300:
            await self._invalidate(request, cache)

        return response

    async def _cached_get(self, request: Request, call_next: Callable, cache: ResponseCache, ttl: int) -> Response:
        scope = caller_scope(request.headers.get("authorization"))
        key = build_cache_key(request.url.path, request.query_params.multi_items(), scope)

        try:
            cached = await cache.get(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Cache lookup failed for {key}: {e}")
            cached = None

        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return Response(
                content=cached["body"],
                status_code=cached["status_code"],
                media_type=cached["media_type"],
                headers={"X-Cache": "HIT"},
            )

        response = await call_next(request)
        if response.status_code != 200:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        headers = dict(response.headers)
        headers["X-Cache"] = "MISS"

        if self._is_cacheable_body(body):
            try:
                await cache.set(key, response.status_code, body, response.media_type or "application/json", ttl)
            except (RedisError, OSError) as e:
                logger.warning(f"Cache store failed for {key}: {e}")

        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers,
            media_type=response.media_type,
        )

    @staticmethod
    def _is_cacheable_body(body: bytes) -> bool:
        try:
            payload = json.loads(body)
        except ValueError:
            return False
        return not (isinstance(payload, dict) and payload.get("success") is False)

    async def _invalidate(self, request: Request, cache: ResponseCache) -> None:
        path = request.url.path
        namespace = self.namespace_for(path)
        if namespace is None:
            return

        try:
            if namespace == f"{self.api_prefix}/auth":
                # Logging out must not leave responses cached for the revoked token
                if path.rstrip("/").endswith("/logout"):
                    await cache.invalidate_scope(caller_scope(request.headers.get("authorization")))
                return

            await cache.invalidate(namespace)
            for related in self.related.get(namespace, []):
                await cache.invalidate(related)
        except (RedisError, OSError) as e:
            logger.warning(f"Cache invalidation failed for {namespace}: {e}")
