"""Delivery log model, one row per webhook dispatch attempt."""
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import foreign, relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.webhook import WebhookConfig

LOG_STATUS_SUCCESS = "success"
LOG_STATUS_ERROR = "error"


class WebhookLog(Base):
    """Model for webhook delivery logs."""

    __tablename__ = "webhook_logs"

    id = Column(Integer, primary_key=True, index=True)
    # Not a foreign key: logs may outlive or predate their webhook
    webhook_id = Column(Integer, nullable=False, index=True)
    status = Column(String(20), nullable=False)  # success, error
    request_payload = Column(JSON, nullable=False)
    response_payload = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    webhook = relationship(
        WebhookConfig,
        primaryjoin=foreign(webhook_id) == WebhookConfig.id,
        viewonly=True,
        lazy="joined",
    )

    @property
    def webhook_name(self):
        return self.webhook.name if self.webhook is not None else None

    def __repr__(self):
        return f"<WebhookLog(id={self.id}, webhook_id={self.webhook_id}, status='{self.status}')>"
