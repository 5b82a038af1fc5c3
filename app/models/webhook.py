"""Webhook configuration model."""
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.database import Base


class WebhookConfig(Base):
    """Model for outbound webhook configurations."""

    __tablename__ = "webhook_configs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False)
    # Ordered list of {"name": ..., "value": ...} pairs
    parameters = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<WebhookConfig(id={self.id}, name='{self.name}', url='{self.url}')>"
