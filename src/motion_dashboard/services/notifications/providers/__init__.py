"""Notification providers (Home Assistant MQTT, Pushover)."""

from motion_dashboard.services.notifications.providers.ha_mqtt import HomeAssistantMqttProvider
from motion_dashboard.services.notifications.providers.pushover import PushoverProvider

__all__ = ["HomeAssistantMqttProvider", "PushoverProvider"]
