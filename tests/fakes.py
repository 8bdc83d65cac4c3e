"""Deterministic clock and in-memory realtime store shared by the tests."""

from datetime import datetime, timedelta, timezone

from motion_dashboard.services.store.base import BaseRealtimeStore, StoreError


class FakeClock:
    """Callable clock that only moves when advance() is called."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, milliseconds: float = 0) -> None:
        self.now += timedelta(seconds=seconds, milliseconds=milliseconds)


class FakeRealtimeStore(BaseRealtimeStore):
    """Keys in a dict; subscribe delivers the current value right away like onValue."""

    def __init__(self, values: dict | None = None):
        self.values = dict(values or {})
        self.callbacks: dict[str, list] = {}
        self.fail_get = False
        self.fail_set = False
        self.writes: list[tuple[str, object]] = []

    def subscribe(self, key, callback):
        self.callbacks.setdefault(key, []).append(callback)
        callback(self.values.get(key))

        def _unsubscribe():
            if callback in self.callbacks.get(key, []):
                self.callbacks[key].remove(callback)

        return _unsubscribe

    def push(self, key, value) -> None:
        """Simulate a device write arriving through the listener."""
        self.values[key] = value
        for callback in list(self.callbacks.get(key, [])):
            callback(value)

    def get(self, key):
        if self.fail_get:
            raise StoreError("read failed")
        return self.values.get(key)

    def set(self, key, value) -> None:
        if self.fail_set:
            raise StoreError("write failed")
        self.writes.append((key, value))
        self.push(key, value)
