"""Notification dispatcher: fire-and-forget fan-out to providers.

Records every request in a bounded recent list (for GET /api/notifications),
logs it, then calls provider.send() on all enabled providers. publish() hands
delivery to a daemon thread so the alarm path never waits on a transport;
failures are logged and never retried.
"""

import logging
import threading
from collections import deque
from typing import Any

from motion_dashboard.constants import RECENT_NOTIFICATIONS_MAX_SIZE
from motion_dashboard.models import Clock, NotificationRequest, generate_event_id, to_iso, utc_now
from motion_dashboard.services.notifications.base import (
    BaseNotificationProvider,
    NotificationResult,
)

logger = logging.getLogger("motion-dashboard")


class NotificationDispatcher:
    """Single entry point for outbound notifications."""

    def __init__(
        self,
        providers: list[BaseNotificationProvider],
        clock: Clock = utc_now,
        max_recent: int = RECENT_NOTIFICATIONS_MAX_SIZE,
    ) -> None:
        self._providers = list(providers)
        self._clock = clock
        self._recent: deque[dict] = deque(maxlen=max_recent)
        self._lock = threading.Lock()

    def _record(self, notification: dict[str, Any]) -> dict:
        now = self._clock()
        entry = {
            "id": notification.get("id") or generate_event_id(now, prefix="notif_"),
            "type": notification["type"],
            "message": notification["message"],
            "priority": notification.get("priority") or "normal",
            "timestamp": notification.get("timestamp") or to_iso(now),
            "sent": True,
        }
        with self._lock:
            self._recent.appendleft(entry)
        logger.info("[NOTIFICATION] %s: %s", str(entry["type"]).upper(), entry["message"])
        return entry

    def _send_now(self, request: NotificationRequest) -> list[NotificationResult]:
        """Call each provider and collect results. Never raises."""
        results: list[NotificationResult] = []
        for provider in self._providers:
            try:
                r = provider.send(request)
                if r is not None:
                    results.append(r)
            except Exception as e:
                logger.exception("Provider %s send failed: %s", type(provider).__name__, e)
                results.append({"provider": type(provider).__name__, "status": "failure", "message": str(e)})
        for r in results:
            if r.get("status") == "failure":
                logger.warning("Notification via %s failed: %s", r.get("provider"), r.get("message"))
        return results

    def publish(self, notification: dict[str, Any]) -> dict:
        """Record and deliver in the background. Returns the recorded entry immediately."""
        entry = self._record(notification)
        if self._providers:
            threading.Thread(
                target=self._send_now,
                args=(self._as_request(entry),),
                daemon=True,
                name="NotificationSend",
            ).start()
        return entry

    def publish_sync(self, notification: dict[str, Any]) -> tuple[dict, list[NotificationResult]]:
        """Record and deliver on the calling thread; returns (entry, provider results)."""
        entry = self._record(notification)
        return entry, self._send_now(self._as_request(entry))

    @staticmethod
    def _as_request(entry: dict) -> NotificationRequest:
        return {
            "id": entry["id"],
            "type": entry["type"],
            "message": entry["message"],
            "priority": entry["priority"],
            "timestamp": entry["timestamp"],
        }

    def recent(self, limit: int) -> list[dict]:
        """Most recent notifications, newest first."""
        with self._lock:
            return [dict(n) for n in list(self._recent)[:max(0, limit)]]

    @property
    def recent_count(self) -> int:
        with self._lock:
            return len(self._recent)

    @property
    def provider_names(self) -> list[str]:
        return [type(p).__name__ for p in self._providers]
