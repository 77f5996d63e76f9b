"""
Dramatiq broker shared by the API process (producer) and the worker process.
"""

from functools import lru_cache
import logging

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import AsyncIO

from realty_api.config import settings

logger = logging.getLogger(__name__)


def create_broker(redis_url: str) -> RedisBroker:
    broker = RedisBroker(url=redis_url)
    # Actors are coroutines; AsyncIO runs them on the worker's event loop thread
    broker.add_middleware(AsyncIO())
    dramatiq.set_broker(broker)
    return broker


@lru_cache()
def get_broker() -> RedisBroker:
    logger.info(f"Using Redis broker at {settings.redis_host}:{settings.redis_port}")
    return create_broker(settings.redis_url)
