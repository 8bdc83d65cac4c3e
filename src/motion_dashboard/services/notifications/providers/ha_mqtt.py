"""Home Assistant provider: alert JSON on an MQTT topic for an HA automation to relay."""

import json
import logging
from typing import Any

import paho.mqtt.client as mqtt

from motion_dashboard.models import NotificationRequest
from motion_dashboard.services.notifications.base import (
    BaseNotificationProvider,
    NotificationResult,
)

logger = logging.getLogger("motion-dashboard")

DEFAULT_TOPIC = "esp32/notifications"
ALERT_TITLE = "ESP32 Security"


class HomeAssistantMqttProvider(BaseNotificationProvider):

    def __init__(self, mqtt_client: mqtt.Client, topic: str = DEFAULT_TOPIC, dashboard_url: str = "") -> None:
        self.mqtt_client = mqtt_client
        self.topic = topic
        self.dashboard_url = dashboard_url.rstrip("/")

    def _alert_body(self, notification: NotificationRequest) -> dict[str, Any]:
        kind = notification["type"]
        body = {
            "id": notification.get("id"),
            "type": kind,
            "title": ALERT_TITLE,
            "message": notification["message"],
            "priority": notification["priority"],
            "timestamp": notification["timestamp"],
            # HA companion app replaces an earlier notification with the same tag
            "tag": f"esp32_{kind}",
        }
        if self.dashboard_url:
            body["url"] = self.dashboard_url
        return body

    def send(self, notification: NotificationRequest) -> NotificationResult | None:
        body = self._alert_body(notification)
        try:
            info = self.mqtt_client.publish(self.topic, json.dumps(body), retain=False)
        except Exception as e:
            logger.error("HA alert publish to %s raised: %s", self.topic, e)
            return {"provider": "HA_MQTT", "status": "failure", "message": str(e)}

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("HA alert publish to %s refused (rc=%s)", self.topic, info.rc)
            return {"provider": "HA_MQTT", "status": "failure", "message": f"rc={info.rc}"}

        logger.info("HA alert %s published to %s", notification["type"], self.topic)
        logger.debug("HA alert body: %s", body)
        return {"provider": "HA_MQTT", "status": "success", "payload": body}
