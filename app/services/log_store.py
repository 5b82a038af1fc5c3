"""Persistence for webhook delivery logs."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.webhook_log import WebhookLog
from app.schemas.webhook import WebhookLogResponse
from app.services.log_feed import INSERT, LogFeed, LogFeedEvent

logger = logging.getLogger(__name__)


async def record_log(
    db: Session,
    feed: LogFeed,
    *,
    webhook_id: int,
    status: str,
    request_payload: Dict[str, Any],
    response_payload: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> WebhookLog:
    """
    Insert one delivery log and announce it on the change feed.

    The row is committed before publishing; nothing after the commit
    (reloading the row, a feed outage) undoes or fails the write.

    Args:
        db: Database session
        feed: Change feed to publish the insert on
        webhook_id: ID of the webhook that was dispatched
        status: "success" or "error"
        request_payload: Payload that was POSTed
        response_payload: {"response": body} on success
        error_message: Failure message on error

    Returns:
        The persisted log entry
    """
    log = WebhookLog(
        webhook_id=webhook_id,
        status=status,
        request_payload=request_payload,
        response_payload=response_payload,
        error_message=error_message,
    )
    db.add(log)
    # Commit is the last step allowed to raise: once the row exists, the
    # caller must not record the attempt a second time
    db.commit()
    logger.info(f"💾 Webhook log recorded: webhook_id={webhook_id}, status={status}")

    try:
        db.refresh(log)
        event = LogFeedEvent(
            table=WebhookLog.__tablename__,
            type=INSERT,
            record=WebhookLogResponse.model_validate(log).model_dump(mode="json"),
        )
        await feed.publish(event)
    except Exception as e:
        logger.warning(f"⚠️ Failed to publish webhook log for webhook {webhook_id} to change feed: {e}")

    return log


def list_logs(db: Session, limit: int) -> List[WebhookLog]:
    """Most recent delivery logs, newest first."""
    return (
        db.query(WebhookLog)
        .order_by(WebhookLog.created_at.desc(), WebhookLog.id.desc())
        .limit(limit)
        .all()
    )
