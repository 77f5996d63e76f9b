"""
Redis-backed response cache.

Keys look like `cache:{path}?{sorted query}|{scope}` so a whole route
namespace can be dropped with one prefix scan, and so responses rendered for
one bearer token are never served to another caller.
"""

from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode
import hashlib
import json
import logging

from redis.asyncio import Redis, from_url

from realty_api.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "cache:"
PUBLIC_SCOPE = "public"


def caller_scope(authorization: Optional[str]) -> str:
    """Anonymous callers share one scope; each bearer credential gets its own."""
    if not authorization:
        return PUBLIC_SCOPE
    return hashlib.sha256(authorization.strip().encode("utf-8")).hexdigest()[:32]


def build_cache_key(path: str, query_items: Iterable[Tuple[str, str]], scope: str) -> str:
    query = urlencode(sorted(query_items))
    return f"{KEY_PREFIX}{path}?{query}|{scope}"


class ResponseCache:
    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, status_code: int, body: bytes, media_type: str, ttl: int) -> None:
        payload = json.dumps({
            "status_code": status_code,
            "body": body.decode("utf-8"),
            "media_type": media_type,
        })
        await self.client.set(key, payload, ex=ttl)

    async def delete_pattern(self, pattern: str) -> int:
        keys = [key async for key in self.client.scan_iter(match=pattern, count=500)]
        if not keys:
            return 0
        return await self.client.delete(*keys)

    async def invalidate(self, namespace: str) -> int:
        """Drop every cached response under a route prefix such as /api/properties."""
        deleted = await self.delete_pattern(f"{KEY_PREFIX}{namespace}*")
        if deleted:
            logger.info(f"Invalidated {deleted} cached responses under {namespace}")
        return deleted

    async def invalidate_scope(self, scope: str) -> int:
        """Drop every cached response rendered for one caller."""
        return await self.delete_pattern(f"{KEY_PREFIX}*|{scope}")

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()


def create_response_cache() -> ResponseCache:
    return ResponseCache(from_url(settings.redis_url, decode_responses=True))
