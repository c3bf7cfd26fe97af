"""Push module - device token registration, sending and receiving notifications."""

from .center import NotificationCenter, PushNotification, Subscription
from .dispatcher import NotificationDispatcher
from .registrar import ConfiguredPushTokenSource, PushTokenRegistrar, obtain_device_token

__all__ = [
    "ConfiguredPushTokenSource",
    "NotificationCenter",
    "NotificationDispatcher",
    "PushNotification",
    "PushTokenRegistrar",
    "Subscription",
    "obtain_device_token",
]
