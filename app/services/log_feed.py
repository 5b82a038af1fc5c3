"""Change feed for webhook log inserts.

Publishers push one event per inserted row; subscribers register a
predicate and a callback and get back a ``Subscription`` handle that must
be closed to release the underlying channel.
"""
import asyncio
import logging
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List

import redis.asyncio as aioredis
from pydantic import BaseModel, Field, ValidationError

from app.config import get_settings

logger = logging.getLogger(__name__)

INSERT = "INSERT"


class LogFeedEvent(BaseModel):
    """A row change pushed through the feed."""

    table: str
    type: str = INSERT
    record: Dict[str, Any] = Field(default_factory=dict)


EventPredicate = Callable[[LogFeedEvent], bool]
EventHandler = Callable[[LogFeedEvent], None]


def inserts_into(table: str) -> EventPredicate:
    """Predicate matching insert events for ``table``."""

    def predicate(event: LogFeedEvent) -> bool:
        return event.table == table and event.type == INSERT

    return predicate


class Subscription:
    """Handle for an open feed subscription.

    ``close()`` is idempotent; once it returns the handler is never called
    again.
    """

    def __init__(self, release: Callable[[], Awaitable[None]]) -> None:
        self._release = release
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._release()


class LogFeed:
    """Interface shared by feed backends."""

    async def publish(self, event: LogFeedEvent) -> None:
        raise NotImplementedError

    async def subscribe(
        self, predicate: EventPredicate, on_event: EventHandler
    ) -> Subscription:
        raise NotImplementedError


class _Listener:
    def __init__(self, predicate: EventPredicate, on_event: EventHandler) -> None:
        self.predicate = predicate
        self.on_event = on_event


class InMemoryLogFeed(LogFeed):
    """Single-process feed; handlers run on the publisher's event loop."""

    def __init__(self) -> None:
        self._listeners: List[_Listener] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    async def publish(self, event: LogFeedEvent) -> None:
        for listener in list(self._listeners):
            if listener.predicate(event):
                listener.on_event(event)

    async def subscribe(
        self, predicate: EventPredicate, on_event: EventHandler
    ) -> Subscription:
        listener = _Listener(predicate, on_event)
        self._listeners.append(listener)

        async def release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(release)


class RedisLogFeed(LogFeed):
    """Feed backed by Redis pub/sub, shared across processes."""

    def __init__(self, redis_url: str, channel: str) -> None:
        self.redis_url = redis_url
        self.channel = channel

    def _client(self) -> aioredis.Redis:
        return aioredis.Redis.from_url(self.redis_url, decode_responses=True)

    async def publish(self, event: LogFeedEvent) -> None:
        client = self._client()
        try:
            await client.publish(self.channel, event.model_dump_json())
        finally:
            await client.aclose()

    async def subscribe(
        self, predicate: EventPredicate, on_event: EventHandler
    ) -> Subscription:
        client = self._client()
        pubsub = client.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info(f"📡 Subscribed to change feed channel {self.channel}")

        async def reader() -> None:
            try:
                while True:
                    message = await pubsub.get_message(
                        ignore_subscribe_messages=True, timeout=1.0
                    )
                    if message and message["type"] == "message":
                        try:
                            event = LogFeedEvent.model_validate_json(message["data"])
                        except ValidationError as e:
                            logger.warning(f"⚠️ Skipping malformed feed message: {e}")
                            continue
                        if predicate(event):
                            on_event(event)
            except Exception as e:
                # Stop reading but leave the owning view alive
                logger.warning(f"⚠️ Change feed reader stopped on {self.channel}: {e}")

        task = asyncio.create_task(reader())

        async def release() -> None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            try:
                await pubsub.unsubscribe(self.channel)
                await pubsub.aclose()
            finally:
                await client.aclose()
            logger.info(f"🔌 Unsubscribed from change feed channel {self.channel}")

        return Subscription(release)


@lru_cache
def get_log_feed() -> LogFeed:
    """Get the process-wide change feed for the configured backend."""
    settings = get_settings()
    if settings.log_feed_backend == "memory":
        return InMemoryLogFeed()
    if settings.log_feed_backend == "redis":
        return RedisLogFeed(settings.redis_url, settings.log_feed_channel)
    raise ValueError(f"Unknown log feed backend: {settings.log_feed_backend}")
