"""View-local dashboard state."""
from dataclasses import dataclass, field
from typing import List, Optional

from app.schemas.notification import Notification


@dataclass
class DashboardState:
    """
    State owned by a single dashboard view.

    Once closed, updates are dropped so work that outlives the view (an
    in-flight dispatch, for instance) cannot touch torn-down state.
    """

    last_response: Optional[str] = None
    notifications: List[Notification] = field(default_factory=list)
    closed: bool = False

    def show(self, notification: Notification) -> None:
        if self.closed:
            return
        self.notifications.append(notification)

    def set_last_response(self, text: str) -> None:
        if self.closed:
            return
        self.last_response = text

    def close(self) -> None:
        self.closed = True
