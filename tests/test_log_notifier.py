"""Tests for the webhook log notifier."""
import httpx
import pytest

from app.services.dashboard import DashboardState
from app.services.log_feed import InMemoryLogFeed, LogFeedEvent
from app.services.log_notifier import LogNotifier, notification_for_log
from app.services.log_store import record_log
from app.services.webhook_service import WebhookDispatcher


def _insert(status, table="webhook_logs"):
    return LogFeedEvent(table=table, type="INSERT", record={"id": 1, "status": status})


def test_notification_for_success():
    notification = notification_for_log("success")
    assert notification.title == "New Webhook Log"
    assert notification.description == "Webhook status: success"
    assert notification.variant == "default"


def test_notification_for_anything_else_is_alert():
    assert notification_for_log("error").variant == "destructive"
    assert notification_for_log(None).variant == "destructive"


@pytest.mark.asyncio
async def test_error_insert_raises_one_alert():
    feed = InMemoryLogFeed()
    received = []

    async with LogNotifier(feed, received.append):
        await feed.publish(_insert("error"))

    assert len(received) == 1
    assert received[0].variant == "destructive"
    assert received[0].description == "Webhook status: error"


@pytest.mark.asyncio
async def test_success_insert_raises_one_normal_notification():
    feed = InMemoryLogFeed()
    received = []

    async with LogNotifier(feed, received.append):
        await feed.publish(_insert("success"))

    assert len(received) == 1
    assert received[0].variant == "default"


@pytest.mark.asyncio
async def test_no_notifications_after_close():
    feed = InMemoryLogFeed()
    received = []

    notifier = LogNotifier(feed, received.append)
    await notifier.start()
    assert notifier.active
    await notifier.close()

    await feed.publish(_insert("success"))

    assert received == []
    assert not notifier.active
    assert feed.subscriber_count == 0


@pytest.mark.asyncio
async def test_close_is_idempotent():
    feed = InMemoryLogFeed()
    notifier = LogNotifier(feed, lambda notification: None)
    await notifier.close()

    await notifier.start()
    await notifier.close()
    await notifier.close()
    assert feed.subscriber_count == 0


@pytest.mark.asyncio
async def test_ignores_other_tables_and_updates():
    feed = InMemoryLogFeed()
    received = []

    async with LogNotifier(feed, received.append):
        await feed.publish(_insert("success", table="webhook_configs"))
        await feed.publish(
            LogFeedEvent(table="webhook_logs", type="UPDATE", record={"status": "success"})
        )

    assert received == []


@pytest.mark.asyncio
async def test_each_view_gets_its_own_subscription():
    feed = InMemoryLogFeed()
    first, second = [], []

    async with LogNotifier(feed, first.append):
        async with LogNotifier(feed, second.append):
            await feed.publish(_insert("success"))
        await feed.publish(_insert("error"))

    assert [n.variant for n in first] == ["default", "destructive"]
    assert [n.variant for n in second] == ["default"]


@pytest.mark.asyncio
async def test_dispatch_reaches_dashboard_through_log_store(db_session):
    feed = InMemoryLogFeed()
    received = []
    dispatcher = WebhookDispatcher(
        db_session, feed, transport=httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
    )

    async with LogNotifier(feed, received.append):
        await dispatcher.dispatch("https://hooks.example.com/in", [], 3, DashboardState())
        await record_log(
            db_session, feed, webhook_id=3, status="error", request_payload={}, error_message="boom"
        )

    assert [n.variant for n in received] == ["default", "destructive"]
