"""Turns webhook log inserts into dashboard notifications."""
import logging
from typing import Callable, Optional

from app.models.webhook_log import LOG_STATUS_SUCCESS, WebhookLog
from app.schemas.notification import Notification
from app.services.log_feed import LogFeed, LogFeedEvent, Subscription, inserts_into

logger = logging.getLogger(__name__)


def notification_for_log(status: Optional[str]) -> Notification:
    """Toast for a newly inserted log; anything but success is an alert."""
    return Notification(
        title="New Webhook Log",
        description=f"Webhook status: {status}",
        variant="default" if status == LOG_STATUS_SUCCESS else "destructive",
    )


class LogNotifier:
    """
    Subscribes to webhook log inserts for the lifetime of a dashboard view.

    Use as an async context manager, or call ``start()`` and ``close()``.
    ``notify`` runs on the event loop and must not block.
    """

    def __init__(self, feed: LogFeed, notify: Callable[[Notification], None]) -> None:
        self._feed = feed
        self._notify = notify
        self._subscription: Optional[Subscription] = None

    @property
    def active(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    async def start(self) -> None:
        if self.active:
            return
        self._subscription = await self._feed.subscribe(
            inserts_into(WebhookLog.__tablename__), self._on_event
        )

    async def close(self) -> None:
        if self._subscription is not None:
            await self._subscription.close()

    def _on_event(self, event: LogFeedEvent) -> None:
        status = event.record.get("status")
        logger.debug(f"🔔 Webhook log inserted: id={event.record.get('id')}, status={status}")
        self._notify(notification_for_log(status))

    async def __aenter__(self) -> "LogNotifier":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
