"""Webhook request and response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.notification import Notification


class WebhookParameter(BaseModel):
    """A single name/value pair sent in the webhook payload."""

    name: str = ""
    value: str = ""


class WebhookBase(BaseModel):
    """Base webhook schema."""

    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=2048)
    parameters: List[WebhookParameter] = Field(default_factory=list)
    is_active: bool = True


class WebhookCreate(WebhookBase):
    """Schema for creating a webhook."""

    pass


class WebhookResponse(WebhookBase):
    """Schema for webhook responses."""

    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class WebhookTestRequest(BaseModel):
    """Parameters in effect when testing a webhook.

    When omitted, the parameters stored on the webhook are sent.
    """

    parameters: Optional[List[WebhookParameter]] = None


class WebhookLogResponse(BaseModel):
    """Schema for webhook delivery logs."""

    id: int
    webhook_id: int
    webhook_name: Optional[str] = None
    status: str
    request_payload: Dict[str, Any]
    response_payload: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WebhookTestResponse(BaseModel):
    """Outcome of a webhook test as seen by the dashboard."""

    log: WebhookLogResponse
    last_response: Optional[str] = None
    notifications: List[Notification] = Field(default_factory=list)


class WebhookTestQueuedResponse(BaseModel):
    """Response when a webhook test is handed to a background worker."""

    task_id: str
    status: str = "queued"
