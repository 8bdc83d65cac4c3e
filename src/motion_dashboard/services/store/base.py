"""
Base interface for realtime key-value stores the ESP32 publishes to.

The dashboard only needs push-subscribe on a key plus plain get/set; liveness and
reconnection are each adapter's own concern.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

# Receives the full current value of the key (None when the key is empty/deleted).
ValueCallback = Callable[[Any], None]


class StoreError(Exception):
    """Raised when a store read or write fails."""


class BaseRealtimeStore(ABC):
    """Abstract base for realtime stores (Firebase Realtime Database, MQTT retained topics)."""

    @abstractmethod
    def subscribe(self, key: str, callback: ValueCallback) -> Callable[[], None]:
        """Invoke callback with the full value of key on every change.

        Returns:
            A callable that removes the subscription. Calling it twice is a no-op.
        """
        ...

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the current value of key (None if unset).

        Raises:
            StoreError: the read could not be performed.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Replace the value of key.

        Raises:
            StoreError: the write could not be performed.
        """
        ...

    def start(self) -> None:
        """Open connections. Default: nothing to do."""

    def stop(self) -> None:
        """Close connections. Default: nothing to do."""

    @property
    def connected(self) -> bool:
        """Best-effort connection state for /api/stats."""
        return True
