"""
Store subscriptions for the alarm and system keys.

Checks payload shape and forwards to the aggregator. Anything that is not the
expected shape (a non-empty string for the alarm key, an object for the system
key) is dropped without surfacing an error. No retry logic lives here: the
store adapter owns connection liveness.
"""

import logging
from collections.abc import Callable
from typing import Any

from motion_dashboard.constants import DEFAULT_ALARM_KEY, DEFAULT_SYSTEM_KEY

logger = logging.getLogger("motion-dashboard")


class IngestAdapter:
    """Registers exactly two store subscriptions and routes their values."""

    def __init__(
        self,
        store: Any,
        aggregator: Any,
        alarm_key: str = DEFAULT_ALARM_KEY,
        system_key: str = DEFAULT_SYSTEM_KEY,
    ) -> None:
        self._store = store
        self._aggregator = aggregator
        self._alarm_key = alarm_key
        self._system_key = system_key
        self._unsubscribers: list[Callable[[], None]] = []

    def start(self) -> None:
        """Subscribe to both keys. Idempotent."""
        if self._unsubscribers:
            return
        self._unsubscribers.append(self._store.subscribe(self._alarm_key, self.on_alarm_value))
        self._unsubscribers.append(self._store.subscribe(self._system_key, self.on_system_value))
        logger.info("Ingest subscribed to '%s' and '%s'", self._alarm_key, self._system_key)

    def stop(self) -> None:
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    def on_alarm_value(self, value: Any) -> None:
        if not isinstance(value, str) or not value:
            logger.debug("Ignoring alarm value of type %s", type(value).__name__)
            return
        self._aggregator.handle_alarm(value)

    def on_system_value(self, value: Any) -> None:
        if not isinstance(value, dict):
            logger.debug("Ignoring system value of type %s", type(value).__name__)
            return
        self._aggregator.handle_system(value)
