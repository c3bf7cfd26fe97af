"""Incoming push notification events."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..notifications import send_notification

__all__ = ["PushNotification", "NotificationCenter", "Subscription"]

logger = logging.getLogger(__name__)


@dataclass
class PushNotification:
    """A notification delivered by the push subsystem."""

    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, message: dict) -> "PushNotification":
        """Accept either a flat message or the {"request": {"content": ...}} envelope."""
        content = message.get("request", {}).get("content", message)
        return cls(
            title=content.get("title", ""),
            body=content.get("body", ""),
            data=dict(content.get("data") or {}),
        )


class Subscription:
    """Handle returned by the add_*_listener methods."""

    def __init__(self, listeners: list, listener: Callable):
        self._listeners = listeners
        self._listener = listener

    def remove(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class NotificationCenter:
    """Fans incoming notifications out to listeners.

    ``show_alerts`` also presents each received notification as a native
    OS notification.
    """

    def __init__(self, show_alerts: bool = True, sound: bool = True):
        self.show_alerts = show_alerts
        self.sound = sound
        self._received: list[Callable[[PushNotification], None]] = []
        self._responses: list[Callable[[PushNotification], None]] = []
        self.last_notification: Optional[PushNotification] = None

    def add_received_listener(
        self, listener: Callable[[PushNotification], None]
    ) -> Subscription:
        self._received.append(listener)
        return Subscription(self._received, listener)

    def add_response_listener(
        self, listener: Callable[[PushNotification], None]
    ) -> Subscription:
        self._responses.append(listener)
        return Subscription(self._responses, listener)

    def deliver(self, notification: PushNotification) -> None:
        """Called by the push subsystem when a notification arrives."""
        logger.info(f"Notification received: {notification.title}")
        self.last_notification = notification
        if self.show_alerts:
            send_notification(notification.title, notification.body, sound=self.sound)
        for listener in list(self._received):
            listener(notification)

    def respond(self, notification: PushNotification) -> None:
        """Called when the user interacts with a notification."""
        logger.info(f"Notification response: {notification.title}")
        for listener in list(self._responses):
            listener(notification)
