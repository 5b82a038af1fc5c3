"""Webhook configuration and test API endpoints."""
import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.webhook import WebhookConfig
from app.schemas.webhook import (
    WebhookCreate,
    WebhookLogResponse,
    WebhookResponse,
    WebhookTestQueuedResponse,
    WebhookTestRequest,
    WebhookTestResponse,
)
from app.services.dashboard import DashboardState
from app.services.log_feed import LogFeed, get_log_feed
from app.services.webhook_service import WebhookDispatcher, stored_parameters
from app.tasks.dispatch_tasks import dispatch_webhook

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

settings = get_settings()
logger = logging.getLogger(__name__)


def get_webhook_dispatcher(
    db: Session = Depends(get_db), feed: LogFeed = Depends(get_log_feed)
) -> WebhookDispatcher:
    """Dependency for the webhook dispatcher."""
    return WebhookDispatcher(db, feed, timeout=settings.webhook_timeout)


@router.get("", response_model=List[WebhookResponse])
def list_webhooks(db: Session = Depends(get_db)):
    """
    List all webhooks.

    Returns all configured webhooks, newest first.
    """
    webhooks = (
        db.query(WebhookConfig)
        .order_by(WebhookConfig.created_at.desc(), WebhookConfig.id.desc())
        .all()
    )
    return webhooks


@router.post("", response_model=WebhookResponse, status_code=201)
def create_webhook(webhook: WebhookCreate, db: Session = Depends(get_db)):
    """
    Create a new webhook.

    Stores the URL together with the ordered parameters sent when it is tested.
    """
    db_webhook = WebhookConfig(
        name=webhook.name,
        url=webhook.url,
        parameters=[parameter.model_dump() for parameter in webhook.parameters],
        is_active=webhook.is_active,
    )
    try:
        db.add(db_webhook)
        db.commit()
        db.refresh(db_webhook)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"💥 Failed to add webhook '{webhook.name}': {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to add webhook configuration.")

    logger.info(f"✅ Webhook {db_webhook.id} added: name={db_webhook.name}")
    return db_webhook


@router.get("/{webhook_id}", response_model=WebhookResponse)
def get_webhook(webhook_id: int, db: Session = Depends(get_db)):
    """
    Get a single webhook by ID.

    Args:
        webhook_id: ID of the webhook to retrieve
    """
    webhook = db.query(WebhookConfig).filter(WebhookConfig.id == webhook_id).first()
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")

    return webhook


@router.post(
    "/{webhook_id}/test",
    response_model=Union[WebhookTestResponse, WebhookTestQueuedResponse],
)
async def test_webhook_endpoint(
    webhook_id: int,
    response: Response,
    test_request: Optional[WebhookTestRequest] = Body(None),
    background: bool = Query(False, description="Dispatch from a Celery worker"),
    db: Session = Depends(get_db),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher),
):
    """
    Test a webhook by POSTing its parameters to its URL.

    The parameters in the request body are sent as-is; without them the
    parameters stored on the webhook are used. Exactly one log entry is
    recorded per test, stamped with this webhook's ID.

    Args:
        webhook_id: ID of the webhook to test
    """
    webhook = db.query(WebhookConfig).filter(WebhookConfig.id == webhook_id).first()
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")

    if test_request is not None and test_request.parameters is not None:
        parameters = test_request.parameters
    else:
        parameters = stored_parameters(webhook)

    if background:
        task = dispatch_webhook.delay(
            webhook.id, [parameter.model_dump() for parameter in parameters]
        )
        logger.info(f"📨 Queued webhook {webhook.id} test as task {task.id}")
        response.status_code = 202
        return WebhookTestQueuedResponse(task_id=task.id)

    view = DashboardState()
    try:
        log = await dispatcher.dispatch(webhook.url, parameters, webhook.id, view)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"💥 Failed to record log for webhook {webhook.id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to record webhook log.")

    return WebhookTestResponse(
        log=WebhookLogResponse.model_validate(log),
        last_response=view.last_response,
        notifications=view.notifications,
    )
