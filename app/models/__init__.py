"""Database models."""
from app.models.webhook import WebhookConfig
from app.models.webhook_log import WebhookLog

__all__ = ["WebhookConfig", "WebhookLog"]
