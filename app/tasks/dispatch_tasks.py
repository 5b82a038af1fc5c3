"""Celery tasks for dispatching webhooks outside the request cycle."""
import asyncio
import logging
from typing import List, Optional

from app.config import get_settings
from app.database import SessionLocal
from app.models.webhook import WebhookConfig
from app.schemas.webhook import WebhookParameter
from app.services.dashboard import DashboardState
from app.services.log_feed import get_log_feed
from app.services.webhook_service import WebhookDispatcher, stored_parameters
from app.tasks.celery_app import celery_app

settings = get_settings()
logger = logging.getLogger(__name__)


@celery_app.task(bind=True)
def dispatch_webhook(self, webhook_id: int, parameters: Optional[List[dict]] = None) -> dict:
    """
    Test a webhook in a worker.
    The POST has no timeout unless one is configured, so it may run long.

    Args:
        self: Celery task instance
        webhook_id: ID of the webhook to dispatch
        parameters: Name/value pairs to send; the stored ones when None

    Returns:
        Dict with the recorded log id and status
    """
    logger.info(f"🚀 Starting webhook dispatch task: webhook_id={webhook_id}")

    db = SessionLocal()
    try:
        webhook = db.query(WebhookConfig).filter(WebhookConfig.id == webhook_id).first()
        if not webhook:
            logger.error(f"❌ Webhook not found: {webhook_id}")
            raise ValueError(f"Webhook {webhook_id} not found")

        if parameters is None:
            params = stored_parameters(webhook)
        else:
            params = [WebhookParameter(**parameter) for parameter in parameters]

        dispatcher = WebhookDispatcher(db, get_log_feed(), timeout=settings.webhook_timeout)
        # No dashboard is attached to a worker; the state is discarded
        log = asyncio.run(dispatcher.dispatch(webhook.url, params, webhook.id, DashboardState()))

        result = {"log_id": log.id, "status": log.status, "webhook_id": webhook.id}
        logger.info(f"🎉 Webhook dispatch task finished: {result}")
        return result

    finally:
        db.close()
