"""
Motion aggregator: classifies alarm pushes, merges system metadata, and fans
updates out to subscribers.

Constructed explicitly by the orchestrator with its clock, notifier and command
service injected, so tests can drive it with a fake clock and fake pushes. All
mutation happens inside one re-entrant lock, so pushes are applied strictly in
delivery order even when the store adapter calls back from several threads.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from motion_dashboard.constants import SECURITY_ALERT_PREFIX
from motion_dashboard.managers.events import MotionEventBuffer
from motion_dashboard.managers.status import StatusAggregator
from motion_dashboard.managers.subscribers import SubscriberRegistry
from motion_dashboard.models import (
    Clock,
    MotionEvent,
    MotionEventType,
    SystemStatus,
    to_iso,
    utc_now,
)
from motion_dashboard.services.classifier import classify
from motion_dashboard.services.store.base import StoreError

logger = logging.getLogger("motion-dashboard")


class MotionAggregator:
    """Owns the event ring buffer and status snapshot; observers only get copies."""

    def __init__(
        self,
        notifier: Any = None,
        command_service: Any = None,
        store: Any = None,
        system_key: str = "system",
        clock: Clock = utc_now,
    ) -> None:
        self._notifier = notifier
        self._command_service = command_service
        self._store = store
        self._system_key = system_key
        self._clock = clock

        self._events = MotionEventBuffer()
        self._status = StatusAggregator(clock=clock)
        self._event_subscribers: SubscriberRegistry[list[MotionEvent]] = SubscriberRegistry(
            "motion_events", self._events.snapshot
        )
        self._status_subscribers: SubscriberRegistry[SystemStatus] = SubscriberRegistry(
            "system_status", self._status.snapshot
        )
        self._last_fresh = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Push handlers (called by IngestAdapter)
    # ------------------------------------------------------------------

    def handle_alarm(self, message: str) -> MotionEvent | None:
        """Classify one alarm string and apply its effects.

        Unrecognized messages still count as a liveness signal; only recognized
        ones produce an event and touch the motion flag.
        """
        with self._lock:
            now = self._clock()
            event = classify(message, now)
            if event is None:
                logger.debug("Unrecognized alarm message: %r", message)
                self._status.record_alarm(None)
            else:
                detected = event.type == MotionEventType.MOTION_DETECTED
                self._events.push(event)
                self._status.record_alarm(detected)
                logger.info("Alarm classified as %s: %s", event.type.value, message)
                if detected and self._status.system_armed:
                    self._send_alert(message, now)
                elif detected:
                    logger.info("System disarmed; motion recorded without notification")
                self._event_subscribers.notify()
            self._last_fresh = self._status.is_fresh()
            self._status_subscribers.notify()
            return event

    def handle_system(self, data: dict) -> SystemStatus:
        """Merge a metadata push into the status snapshot and notify."""
        with self._lock:
            status = self._status.merge_metadata(data)
            logger.debug("System metadata merged: %s", sorted(data.keys()))
            self._last_fresh = self._status.is_fresh()
            self._status_subscribers.notify()
            return status

    def _send_alert(self, message: str, now) -> None:
        """Fire-and-forget security alert; failures are logged only."""
        if self._notifier is None:
            return
        try:
            self._notifier.publish({
                "type": MotionEventType.MOTION_DETECTED.value,
                "message": f"{SECURITY_ALERT_PREFIX}{message}",
                "priority": "high",
                "timestamp": to_iso(now),
            })
        except Exception as e:
            logger.exception("Error sending notification: %s", e)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe_to_motion_events(
        self, callback: Callable[[list[MotionEvent]], None]
    ) -> Callable[[], None]:
        """Register callback; it receives the current events before this returns."""
        with self._lock:
            return self._event_subscribers.subscribe(callback)

    def subscribe_to_system_status(
        self, callback: Callable[[SystemStatus], None]
    ) -> Callable[[], None]:
        """Register callback; it receives the current status before this returns."""
        with self._lock:
            return self._status_subscribers.subscribe(callback)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_motion_events(self) -> list[MotionEvent]:
        return self._events.snapshot()

    def get_current_status(self) -> SystemStatus:
        return self._status.snapshot()

    def get_status_dict(self) -> dict:
        return self._status.to_dict()

    def is_system_online(self) -> bool:
        """Online means a heartbeat within the freshness window, whatever the device last reported."""
        return self._status.is_fresh()

    @property
    def has_metadata(self) -> bool:
        return self._status.has_metadata

    def get_system_status(self) -> dict:
        """Current status merged with a fresh read of the system key.

        Falls back to the current status alone if the store read fails.
        """
        current = self._status.to_dict()
        if self._store is None:
            return current
        try:
            data = self._store.get(self._system_key)
        except StoreError as e:
            logger.error("Error getting system status: %s", e)
            return current
        if isinstance(data, dict):
            current.update(data)
        return current

    @property
    def subscriber_counts(self) -> dict:
        return {
            "motion_events": len(self._event_subscribers),
            "system_status": len(self._status_subscribers),
        }

    # ------------------------------------------------------------------
    # Commands and periodic checks
    # ------------------------------------------------------------------

    def arm_system(self) -> dict:
        """Raises CommandError subclasses on failure; the caller shows feedback."""
        return self._command_service.execute("arm")

    def disarm_system(self) -> dict:
        return self._command_service.execute("disarm")

    def check_freshness(self) -> bool:
        """Re-evaluate online/offline; notify status subscribers when it flips."""
        with self._lock:
            fresh = self._status.is_fresh()
            if fresh == self._last_fresh:
                return fresh
            self._last_fresh = fresh
            if fresh:
                logger.info("ESP32 device is online")
            else:
                logger.warning("ESP32 device went offline (no heartbeat within 2 minutes)")
            self._status_subscribers.notify()
            return fresh
