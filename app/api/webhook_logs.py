"""Webhook delivery log API endpoints."""
import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.schemas.notification import Notification
from app.schemas.webhook import WebhookLogResponse
from app.services.log_feed import LogFeed, get_log_feed
from app.services.log_notifier import LogNotifier
from app.services.log_store import list_logs

router = APIRouter(prefix="/api/webhook-logs", tags=["webhook-logs"])

settings = get_settings()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[WebhookLogResponse])
def list_webhook_logs(
    limit: Optional[int] = Query(None, ge=1, le=200, description="Max logs to return"),
    db: Session = Depends(get_db),
):
    """List the most recent webhook logs with their webhook names."""
    return list_logs(db, limit or settings.log_list_limit)


@router.get("/stream")
async def stream_log_notifications(request: Request, feed: LogFeed = Depends(get_log_feed)):
    """
    Server-Sent Events (SSE) stream of notifications for new webhook logs.

    Each connection owns one subscription to the log change feed, closed
    when the client goes away.
    """

    async def event_generator():
        """Relay notifications from the change feed to the client."""
        queue: asyncio.Queue = asyncio.Queue()

        try:
            async with LogNotifier(feed, queue.put_nowait):
                logger.info("📡 Dashboard subscribed to webhook log notifications")
                while not await request.is_disconnected():
                    try:
                        notification: Notification = await asyncio.wait_for(queue.get(), timeout=1.0)
                    except asyncio.TimeoutError:
                        continue
                    yield f"data: {notification.model_dump_json()}\n\n"

        except Exception as e:
            # Log error but don't crash the stream
            logger.warning(f"SSE log stream error: {str(e)}")
            yield 'data: {"title": "Error", "description": "Stream error", "variant": "destructive"}\n\n'

        finally:
            logger.info("🔌 Dashboard log notification stream closed")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
