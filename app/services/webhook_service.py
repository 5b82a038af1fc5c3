"""Webhook dispatch: POST a parameter payload and log the outcome."""
import logging
from typing import Dict, List, Optional, Sequence

import httpx
from sqlalchemy.orm import Session

from app.models.webhook import WebhookConfig
from app.models.webhook_log import LOG_STATUS_ERROR, LOG_STATUS_SUCCESS, WebhookLog
from app.schemas.notification import Notification
from app.schemas.webhook import WebhookParameter
from app.services.dashboard import DashboardState
from app.services.log_feed import LogFeed
from app.services.log_store import record_log

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"

SUCCESS_NOTIFICATION = Notification(
    title="Success", description="Webhook test successful!", variant="default"
)
ERROR_NOTIFICATION = Notification(
    title="Error", description="Failed to test webhook.", variant="destructive"
)


def build_payload(parameters: Sequence[WebhookParameter]) -> Dict[str, str]:
    """
    Build the JSON payload from ordered name/value pairs.

    Later duplicates overwrite earlier ones; empty names are kept.

    Args:
        parameters: Ordered parameter list

    Returns:
        Mapping of parameter name to value
    """
    payload: Dict[str, str] = {}
    for parameter in parameters:
        payload[parameter.name] = parameter.value
    return payload


def stored_parameters(webhook: WebhookConfig) -> List[WebhookParameter]:
    """Parameters saved on a webhook config, in order."""
    return [WebhookParameter(**parameter) for parameter in webhook.parameters or []]


class WebhookDispatcher:
    """Sends one test POST per call and records exactly one log entry."""

    def __init__(
        self,
        db: Session,
        feed: LogFeed,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            db: Database session used for the log write
            feed: Change feed that announces the log insert
            timeout: Request timeout in seconds, None to wait indefinitely
            transport: Optional httpx transport (tests, proxies)
        """
        self.db = db
        self.feed = feed
        self.timeout = timeout
        self.transport = transport

    async def dispatch(
        self,
        webhook_url: str,
        parameters: Sequence[WebhookParameter],
        webhook_id: int,
        view: DashboardState,
    ) -> WebhookLog:
        """
        POST the parameter payload to ``webhook_url`` once and log the outcome.

        Any HTTP response counts as success, whatever its status code; only
        failures to get a response are errors. The view receives the
        last response and a notification unless it was closed meanwhile,
        the log is written either way.

        Args:
            webhook_url: Endpoint to POST to
            parameters: Ordered name/value pairs in effect for this attempt
            webhook_id: ID of the webhook under test
            view: Dashboard state to surface the outcome on

        Returns:
            The log entry recorded for this attempt
        """
        payload = build_payload(parameters)
        logger.info(f"🪝 Dispatching webhook {webhook_id} to {webhook_url} with {len(payload)} parameters")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
            body = response.text
            logger.info(f"✅ Webhook {webhook_id} responded: status_code={response.status_code}")

            view.set_last_response(body)
            view.show(SUCCESS_NOTIFICATION)

            return await record_log(
                self.db,
                self.feed,
                webhook_id=webhook_id,
                status=LOG_STATUS_SUCCESS,
                request_payload=payload,
                response_payload={"response": body},
            )
        except Exception as e:
            error_message = str(e) or UNKNOWN_ERROR
            logger.error(f"❌ Webhook {webhook_id} dispatch failed: {error_message}")
            self.db.rollback()

            view.show(ERROR_NOTIFICATION)

            return await record_log(
                self.db,
                self.feed,
                webhook_id=webhook_id,
                status=LOG_STATUS_ERROR,
                request_payload=payload,
                error_message=error_message,
            )
