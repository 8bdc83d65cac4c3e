"""Observer registry with replay-on-subscribe and per-callback defensive copies."""

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger("motion-dashboard")

T = TypeVar("T")


class _Subscription(Generic[T]):
    """Handle for one registered callback; unsubscribe is idempotent."""

    __slots__ = ("callback", "_registry")

    def __init__(self, callback: Callable[[T], None], registry: "SubscriberRegistry[T]"):
        self.callback = callback
        self._registry = registry

    def __call__(self) -> None:
        self._registry._remove(self)


class SubscriberRegistry(Generic[T]):
    """Ordered list of subscribers for one kind of value (events or status).

    snapshot_factory builds a fresh defensive copy of the current value; it is
    called once per delivered callback so subscribers never share an object with
    the owner or with each other.
    """

    def __init__(self, name: str, snapshot_factory: Callable[[], T]):
        self._name = name
        self._snapshot_factory = snapshot_factory
        self._subscriptions: list[_Subscription[T]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register callback, deliver the current value synchronously, return unsubscribe."""
        subscription = _Subscription(callback, self)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscriber added to %s (total=%s)", self._name, len(self))
        self._deliver(subscription)
        return subscription

    def notify(self) -> None:
        """Deliver a fresh copy to every subscriber, in registration order.

        Iterates over the registrations as they were when the pass started, so
        an unsubscribe from inside a callback only affects the next pass.
        """
        with self._lock:
            current = tuple(self._subscriptions)
        for subscription in current:
            self._deliver(subscription)

    def _deliver(self, subscription: _Subscription[T]) -> None:
        try:
            subscription.callback(self._snapshot_factory())
        except Exception as e:
            logger.exception("Subscriber callback on %s failed: %s", self._name, e)

    def _remove(self, subscription: _Subscription[T]) -> None:
        with self._lock:
            try:
                self._subscriptions.remove(subscription)
            except ValueError:
                return
        logger.debug("Subscriber removed from %s (total=%s)", self._name, len(self))

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)
