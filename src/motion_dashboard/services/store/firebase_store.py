"""Firebase Realtime Database store adapter.

Uses firebase_admin.db listeners (one streaming thread per subscription). The
SDK delivers put/patch deltas relative to the listened path; these are folded
back into the full value of the key so callbacks always see the whole value,
the same as a client-side onValue listener.
"""

import copy
import logging
import threading
from collections.abc import Callable
from typing import Any

from firebase_admin import db
from firebase_admin.exceptions import FirebaseError

from motion_dashboard.services.store.base import BaseRealtimeStore, StoreError, ValueCallback

logger = logging.getLogger("motion-dashboard")


def _split_path(path: str) -> list[str]:
    return [p for p in (path or "").split("/") if p]


def _merge_into(target: dict, data: dict) -> None:
    """Shallow patch semantics: None deletes a child, anything else replaces it."""
    for k, v in data.items():
        if v is None:
            target.pop(k, None)
        else:
            target[k] = v


def apply_event(current: Any, event_type: str, path: str, data: Any) -> Any:
    """Return the new full value after applying one listener event to current."""
    parts = _split_path(path)
    if not parts:
        if event_type == "patch" and isinstance(data, dict):
            base = dict(current) if isinstance(current, dict) else {}
            _merge_into(base, data)
            return base or None
        return data

    root = copy.deepcopy(current) if isinstance(current, dict) else {}
    node = root
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    leaf = parts[-1]
    if event_type == "patch" and isinstance(data, dict):
        existing = node.get(leaf)
        merged = dict(existing) if isinstance(existing, dict) else {}
        _merge_into(merged, data)
        node[leaf] = merged
    elif data is None:
        node.pop(leaf, None)
    else:
        node[leaf] = data
    return root or None


class _KeyListener:
    """Folds listener events for one key and forwards the full value."""

    def __init__(self, key: str, callback: ValueCallback) -> None:
        self.key = key
        self._callback = callback
        self._value: Any = None
        self._lock = threading.Lock()
        self.registration = None

    def __call__(self, event: Any) -> None:
        with self._lock:
            self._value = apply_event(self._value, event.event_type, event.path, event.data)
            value = copy.deepcopy(self._value)
        try:
            self._callback(value)
        except Exception as e:
            logger.exception("Store callback for '%s' failed: %s", self.key, e)


class FirebaseRealtimeStore(BaseRealtimeStore):
    """Realtime Database adapter. Requires firebase_admin.initialize_app() with databaseURL."""

    def __init__(self, app: Any = None) -> None:
        self._app = app
        self._listeners: list[_KeyListener] = []
        self._lock = threading.Lock()

    def _ref(self, key: str):
        return db.reference(key, app=self._app)

    def subscribe(self, key: str, callback: ValueCallback) -> Callable[[], None]:
        listener = _KeyListener(key, callback)
        try:
            listener.registration = self._ref(key).listen(listener)
        except (FirebaseError, ValueError) as e:
            raise StoreError(f"Failed to listen on '{key}': {e}") from e
        with self._lock:
            self._listeners.append(listener)
        logger.info(f"Listening on Firebase key: {key}")

        def _unsubscribe() -> None:
            with self._lock:
                if listener not in self._listeners:
                    return
                self._listeners.remove(listener)
            self._close(listener)

        return _unsubscribe

    def get(self, key: str) -> Any:
        try:
            return self._ref(key).get()
        except (FirebaseError, ValueError) as e:
            raise StoreError(f"Failed to read '{key}': {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            self._ref(key).set(value)
        except (FirebaseError, ValueError, TypeError) as e:
            raise StoreError(f"Failed to write '{key}': {e}") from e

    def stop(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
            self._listeners.clear()
        for listener in listeners:
            self._close(listener)

    @staticmethod
    def _close(listener: _KeyListener) -> None:
        if listener.registration is None:
            return
        try:
            listener.registration.close()
        except Exception as e:
            logger.warning("Error closing Firebase listener for '%s': %s", listener.key, e)
        logger.debug("Closed Firebase listener: %s", listener.key)
