"""Pushover provider: security alerts to phones through the Pushover messages API.

Alert priority maps onto Pushover's scale: "high" alerts bypass quiet hours (1),
"low" are delivered silently (-1), everything else is normal (0).
"""

import logging
from typing import Any

import requests

from motion_dashboard.models import NotificationRequest, parse_iso
from motion_dashboard.services.notifications.base import (
    BaseNotificationProvider,
    NotificationResult,
)

logger = logging.getLogger("motion-dashboard")

PUSHOVER_API_URL = "https://api.pushover.net/1/messages.json"
PUSHOVER_TITLE = "ESP32 Security"
PUSHOVER_URL_TITLE = "Open Security Dashboard"
REQUEST_TIMEOUT_SECONDS = 30

PRIORITY_MAP = {"high": 1, "normal": 0, "low": -1}


def _failure(message: str) -> NotificationResult:
    return {"provider": "PUSHOVER", "status": "failure", "message": message[:500]}


class PushoverProvider(BaseNotificationProvider):

    def __init__(self, pushover_config: dict, dashboard_url: str = "") -> None:
        cfg = pushover_config or {}
        self._auth = {
            "token": (cfg.get("pushover_api_token") or "").strip(),
            "user": (cfg.get("pushover_user_key") or "").strip(),
        }
        # Optional fields only go on the wire when configured
        self._extras: dict[str, Any] = {"html": 1 if cfg.get("html", 1) else 0}
        for key, field in (("device", "device"), ("default_sound", "sound")):
            value = (cfg.get(key) or "").strip()
            if value:
                self._extras[field] = value
        dashboard_url = (dashboard_url or "").rstrip("/")
        if dashboard_url:
            self._extras["url"] = dashboard_url
            self._extras["url_title"] = PUSHOVER_URL_TITLE

    def _build_payload(self, notification: NotificationRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **self._auth,
            **self._extras,
            "title": PUSHOVER_TITLE,
            "message": notification["message"],
            "priority": PRIORITY_MAP.get(str(notification.get("priority", "")).lower(), 0),
        }
        sent_at = parse_iso(notification.get("timestamp"))
        if sent_at is not None:
            payload["timestamp"] = int(sent_at.timestamp())
        return payload

    def send(self, notification: NotificationRequest) -> NotificationResult | None:
        try:
            resp = requests.post(
                PUSHOVER_API_URL,
                data=self._build_payload(notification),
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error("Pushover request failed: %s", e)
            return _failure(str(e))

        try:
            body = resp.json()
        except ValueError:
            logger.warning("Pushover returned non-JSON (HTTP %s)", resp.status_code)
            return _failure(resp.text or f"HTTP {resp.status_code}")

        if resp.status_code < 400 and body.get("status") == 1:
            logger.info("Pushover alert delivered: %s", notification["type"])
            return {"provider": "PUSHOVER", "status": "success"}

        errors = body.get("errors") or [f"HTTP {resp.status_code}"]
        detail = "; ".join(map(str, errors)) if isinstance(errors, list) else str(errors)
        logger.warning("Pushover rejected alert: %s", detail)
        return _failure(detail)
