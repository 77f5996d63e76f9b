"""
Durable email queue on top of dramatiq.

Jobs {to, subject, text, html} go to the `email-queue` queue and are retried
with exponential backoff until the attempt limit; a job that runs out of
attempts is left in the broker's dead-letter queue. Per-state counters live in
Redis so the API can report waiting/active/completed/failed without talking to
the workers.
"""

from functools import lru_cache
from typing import Any, Dict, Optional
import logging

import dramatiq
import redis
from dramatiq.common import q_name
from dramatiq.middleware import Middleware

from realty_api.config import settings
from realty_api.services.broker import get_broker
from realty_api.services.mailer import Mailer

logger = logging.getLogger(__name__)

SEND_EMAIL_ACTOR = "send_email"
STAT_FIELDS = ("waiting", "active", "completed", "failed")


class QueueStatsMiddleware(Middleware):
    """
    Keeps job counters for one queue in a Redis hash.

    A retried job is acknowledged and re-enqueued, so it moves back to
    waiting; it only reaches `failed` when it is rejected for good.
    """

    def __init__(self, client: "redis.Redis", queue_name: str):
        self.client = client
        self.queue_name = queue_name
        self.key = f"queue_stats:{queue_name}"

    def _tracked(self, message) -> bool:
        return q_name(message.queue_name) == self.queue_name

    def _move(self, source: Optional[str], target: Optional[str]) -> None:
        try:
            pipe = self.client.pipeline()
            if source:
                pipe.hincrby(self.key, source, -1)
            if target:
                pipe.hincrby(self.key, target, 1)
            pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"Could not update stats for {self.queue_name}: {e}")

    def after_enqueue(self, broker, message, delay):
        # Delayed retries are counted when the worker moves them back to the queue
        if self._tracked(message) and not delay:
            self._move(None, "waiting")

    def before_process_message(self, broker, message):
        if self._tracked(message):
            self._move("waiting", "active")

    def after_process_message(self, broker, message, *, result=None, exception=None):
        if not self._tracked(message):
            return
        if exception is None:
            logger.info(f"Job {message.message_id} on {self.queue_name} completed")
            self._move("active", "completed")
        else:
            attempt = message.options.get("retries", 0) + 1
            logger.warning(f"Job {message.message_id} on {self.queue_name} failed (attempt {attempt}): {exception}")
            self._move("active", None)

    def after_skip_message(self, broker, message):
        # Skips are raised by middleware that runs before this one
        if self._tracked(message):
            self._move("waiting", None)

    def after_nack(self, broker, message):
        if self._tracked(message):
            logger.error(f"Job {message.message_id} on {self.queue_name} exhausted its attempts")
            self._move(None, "failed")

    def get_stats(self) -> Dict[str, int]:
        raw = self.client.hgetall(self.key) or {}
        stats = {}
        for field in STAT_FIELDS:
            value = raw.get(field, raw.get(field.encode(), 0))
            stats[field] = max(int(value), 0)
        return stats


def create_email_task(broker, mailer: Mailer, queue_name: str, max_retries: int, min_backoff: int):
    @dramatiq.actor(
        actor_name=SEND_EMAIL_ACTOR,
        queue_name=queue_name,
        max_retries=max_retries,
        min_backoff=min_backoff,
        broker=broker,
    )
    async def send_email(to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None):
        await mailer.send(to, subject, text=text, html=html)

    return send_email


class EmailQueue:
    def __init__(
        self,
        broker,
        stats_client: "redis.Redis",
        mailer: Mailer,
        queue_name: str = settings.email_queue_name,
        max_attempts: int = settings.email_max_attempts,
        min_backoff: int = settings.email_backoff_ms
    ):
        self.broker = broker
        self.mailer = mailer
        self.queue_name = queue_name
        self.stats = QueueStatsMiddleware(stats_client, queue_name)
        broker.add_middleware(self.stats)
        self.actor = create_email_task(
            broker, mailer, queue_name, max_retries=max_attempts - 1, min_backoff=min_backoff
        )

    def enqueue(self, to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> Optional[str]:
        """
        Queue one email.

        Returns:
            The job id, or None when SMTP is not configured and nothing was queued
        """
        if not self.mailer.configured:
            logger.warning(f"SMTP not configured, skipping email '{subject}' to {to}")
            return None

        message = self.actor.send(to=to, subject=subject, text=text, html=html)
        logger.info(f"Queued email job {message.message_id} for {to}")
        return message.message_id

    def get_queue_stats(self) -> Dict[str, Any]:
        return self.stats.get_stats()


@lru_cache()
def get_email_queue() -> EmailQueue:
    stats_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    return EmailQueue(get_broker(), stats_client, Mailer())
