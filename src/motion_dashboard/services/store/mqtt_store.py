"""MQTT-backed realtime store: each key is a retained topic <prefix>/<key>.

The device publishes retained messages, so a fresh subscription receives the
latest value immediately, the same way a database listener would. Payloads are
JSON when they parse, plain text otherwise; an empty payload clears the key.
"""

import json
import logging
import threading
from collections.abc import Callable
from typing import Any

from motion_dashboard.services.mqtt_client import MqttClientWrapper
from motion_dashboard.services.store.base import BaseRealtimeStore, StoreError, ValueCallback

logger = logging.getLogger("motion-dashboard")


def decode_payload(payload: bytes) -> Any:
    """Decode an MQTT payload into a store value (JSON, else text, empty -> None)."""
    if not payload:
        return None
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Dropping non-UTF-8 payload (%s bytes)", len(payload))
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class MqttRealtimeStore(BaseRealtimeStore):
    """Store adapter over retained MQTT topics. Reconnection is handled by paho."""

    def __init__(self, mqtt_wrapper: MqttClientWrapper, topic_prefix: str = "esp32") -> None:
        self._mqtt = mqtt_wrapper
        self._prefix = topic_prefix.strip("/")
        self._callbacks: dict[str, list[ValueCallback]] = {}
        self._values: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._mqtt.set_message_callback(self.on_message)

    def topic_for(self, key: str) -> str:
        return f"{self._prefix}/{key}" if self._prefix else key

    def _key_for(self, topic: str) -> str | None:
        if not self._prefix:
            return topic
        prefix = f"{self._prefix}/"
        return topic[len(prefix):] if topic.startswith(prefix) else None

    def subscribe(self, key: str, callback: ValueCallback) -> Callable[[], None]:
        with self._lock:
            first = key not in self._callbacks
            self._callbacks.setdefault(key, []).append(callback)
        if first:
            self._mqtt.add_topic(self.topic_for(key))

        def _unsubscribe() -> None:
            with self._lock:
                callbacks = self._callbacks.get(key)
                if not callbacks or callback not in callbacks:
                    return
                callbacks.remove(callback)
                last = not callbacks
                if last:
                    del self._callbacks[key]
            if last:
                self._mqtt.remove_topic(self.topic_for(key))

        return _unsubscribe

    def on_message(self, client: Any, userdata: Any, msg: Any) -> None:
        """Route a retained/live message to the key's callbacks. Called by MqttClientWrapper."""
        key = self._key_for(msg.topic)
        if key is None:
            return
        value = decode_payload(msg.payload)
        with self._lock:
            self._values[key] = value
            callbacks = list(self._callbacks.get(key, ()))
        logger.debug("MQTT value for '%s' (%s bytes)", key, len(msg.payload or b""))
        for callback in callbacks:
            try:
                callback(value)
            except Exception as e:
                logger.exception("Store callback for '%s' failed: %s", key, e)

    def get(self, key: str) -> Any:
        """Last value seen on the key's topic (retained value after connect)."""
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for '{key}' is not JSON serializable: {e}") from e
        if not self._mqtt.mqtt_connected:
            raise StoreError(f"MQTT not connected; cannot write '{key}'")
        try:
            ok = self._mqtt.publish(self.topic_for(key), payload, qos=1, retain=True)
        except Exception as e:
            raise StoreError(f"Failed to publish '{key}': {e}") from e
        if not ok:
            raise StoreError(f"MQTT publish for '{key}' was rejected")
        with self._lock:
            self._values[key] = value

    def start(self) -> None:
        self._mqtt.start()

    def stop(self) -> None:
        self._mqtt.stop()

    @property
    def connected(self) -> bool:
        return self._mqtt.mqtt_connected
