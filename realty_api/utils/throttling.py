"""
Request throttling backed by fastapi-limiter and Redis.

Counters are kept per client IP and request path. When the limiter was not
initialised (disabled, or Redis unreachable at startup) requests pass through.
"""

from typing import Optional
from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError
import logging
import math

from realty_api.config import settings
from realty_api.utils.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "rate-limit"


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "anonymous"


async def client_identifier(request: Request) -> str:
    return f"ip:{_client_ip(request)}:{request.scope['path']}"


async def init_rate_limiter(redis: Optional[Redis] = None) -> bool:
    """Connect the limiter to Redis. Returns False when throttling stays off."""
    if not settings.rate_limit_enabled:
        logger.info("Rate limiting disabled")
        return False

    client = redis or from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    try:
        await FastAPILimiter.init(client, prefix=RATE_LIMIT_PREFIX, identifier=client_identifier)
    except (RedisError, OSError) as e:
        FastAPILimiter.redis = None
        logger.warning(f"Rate limiter initialization failed, requests will not be throttled: {e}")
        return False

    logger.info("Rate limiter initialized")
    return True


async def close_rate_limiter() -> None:
    redis = FastAPILimiter.redis
    FastAPILimiter.redis = None
    if redis is not None:
        await redis.aclose()


class Throttle(RateLimiter):
    """
    Route dependency allowing `times` requests per window.
    Exceeding it raises RateLimitExceededError (429 with Retry-After).
    """

    def __init__(self, times: int, seconds: int, message: str = "Too many requests, please try again later"):
        super().__init__(times=times, seconds=seconds, identifier=client_identifier, callback=self.exceeded)
        self.message = message

    async def exceeded(self, request: Request, response: Response, pexpire: int):
        logger.warning(f"Rate limit exceeded for {_client_ip(request)} on {request.url.path}")
        raise RateLimitExceededError(self.message, retry_after=math.ceil(pexpire / 1000))

    async def __call__(self, request: Request, response: Response):
        if FastAPILimiter.redis is None:
            return
        try:
            await super().__call__(request, response)
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiter unavailable, request not throttled: {e}")


api_throttle = Throttle(
    times=settings.rate_limit_max_requests,
    seconds=settings.rate_limit_window_seconds,
)

auth_throttle = Throttle(
    times=settings.auth_rate_limit_attempts,
    seconds=settings.auth_rate_limit_window_seconds,
    message="Too many authentication attempts, please try again later",
)

strict_throttle = Throttle(
    times=settings.strict_rate_limit_per_minute,
    seconds=60,
    message="Rate limit exceeded",
)

tracking_throttle = Throttle(
    times=settings.tracking_rate_limit_per_minute,
    seconds=60,
    message="API rate limit exceeded",
)
