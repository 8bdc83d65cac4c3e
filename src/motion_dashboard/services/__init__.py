"""Service modules."""

from motion_dashboard.services.aggregator import MotionAggregator
from motion_dashboard.services.mqtt_client import MqttClientWrapper
from motion_dashboard.services.notifications import NotificationDispatcher

__all__ = [
    "MotionAggregator",
    "NotificationDispatcher",
    "MqttClientWrapper",
]
