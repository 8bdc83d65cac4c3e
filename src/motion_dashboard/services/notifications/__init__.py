"""Notification service: provider interface, dispatcher, and providers."""

from motion_dashboard.services.notifications.base import (
    BaseNotificationProvider,
    NotificationResult,
)
from motion_dashboard.services.notifications.dispatcher import NotificationDispatcher
from motion_dashboard.services.notifications.providers import (
    HomeAssistantMqttProvider,
    PushoverProvider,
)

__all__ = [
    "BaseNotificationProvider",
    "NotificationDispatcher",
    "NotificationResult",
    "HomeAssistantMqttProvider",
    "PushoverProvider",
]
