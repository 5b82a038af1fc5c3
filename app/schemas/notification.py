"""Transient dashboard notification schema."""
from typing import Literal

from pydantic import BaseModel

NotificationVariant = Literal["default", "destructive"]


class Notification(BaseModel):
    """A toast shown on the dashboard.

    ``default`` is normal emphasis, ``destructive`` is alert emphasis.
    """

    title: str
    description: str
    variant: NotificationVariant = "default"
