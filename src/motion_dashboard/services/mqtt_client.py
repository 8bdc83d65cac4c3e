"""Paho MQTT connection shared by the mqtt store backend and the HA notifier.

Keeps the set of wanted subscriptions so they survive reconnects, and hands
every inbound message to a single routing callback.
"""

import logging
import ssl
import threading
from collections.abc import Callable
from typing import Any

import paho.mqtt.client as mqtt

logger = logging.getLogger("motion-dashboard")

TLS_PORT = 8883
KEEPALIVE_SECONDS = 60
MessageCallback = Callable[[Any, Any, Any], None]


class MqttClientWrapper:
    """Owns one paho client running its own network loop thread.

    Reconnection uses paho's exponential backoff (1 s up to 2 min).
    """

    def __init__(
        self,
        broker: str,
        port: int,
        client_id: str = "esp32-motion-dashboard",
        username: str | None = None,
        password: str | None = None,
        on_message_callback: MessageCallback | None = None,
    ) -> None:
        self._broker = broker
        self._port = port
        self._route = on_message_callback
        self._wanted: dict[str, int] = {}
        self._wanted_lock = threading.Lock()
        self._connected = threading.Event()

        self._client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username:
            self._client.username_pw_set(username, password)
        if port == TLS_PORT:
            logger.info("MQTT port %s: enabling TLS", port)
            self._client.tls_set(cert_reqs=ssl.CERT_REQUIRED, tls_version=ssl.PROTOCOL_TLSv1_2)
        self._client.reconnect_delay_set(min_delay=1, max_delay=120)
        self._client.on_connect = self._handle_connect
        self._client.on_disconnect = self._handle_disconnect
        self._client.on_message = self._handle_message

    @property
    def client(self) -> mqtt.Client:
        """Underlying paho client (the HA provider publishes through it)."""
        return self._client

    @property
    def mqtt_connected(self) -> bool:
        return self._connected.is_set()

    def set_message_callback(self, callback: MessageCallback | None) -> None:
        self._route = callback

    def add_topic(self, topic: str, qos: int = 0) -> None:
        """Remember topic; subscribe right away when a session is up."""
        with self._wanted_lock:
            self._wanted[topic] = qos
        if self.mqtt_connected:
            self._client.subscribe(topic, qos)
            logger.info("MQTT subscribed: %s", topic)

    def remove_topic(self, topic: str) -> None:
        with self._wanted_lock:
            if topic not in self._wanted:
                return
            del self._wanted[topic]
        if self.mqtt_connected:
            self._client.unsubscribe(topic)
            logger.info("MQTT unsubscribed: %s", topic)

    def publish(self, topic: str, payload: str | bytes, qos: int = 0, retain: bool = False) -> bool:
        """Queue a publish; False when paho refuses it (e.g. no connection)."""
        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc == mqtt.MQTT_ERR_SUCCESS:
            return True
        logger.warning("MQTT publish to %s refused (rc=%s)", topic, info.rc)
        return False

    def _handle_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            logger.error("MQTT connect to %s refused: %s", self._broker, reason_code)
            return
        self._connected.set()
        logger.info("MQTT connected to %s:%s", self._broker, self._port)
        with self._wanted_lock:
            wanted = list(self._wanted.items())
        for topic, qos in wanted:
            client.subscribe(topic, qos)
            logger.info("MQTT subscribed: %s", topic)

    def _handle_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        self._connected.clear()
        if reason_code.is_failure:
            logger.warning("MQTT connection lost (%s); paho will reconnect", reason_code)
        else:
            logger.info("MQTT disconnected")

    def _handle_message(self, client, userdata, msg) -> None:
        if self._route is not None:
            self._route(client, userdata, msg)

    def start(self) -> None:
        """Begin connecting in the background; failures are logged and retried by paho."""
        try:
            self._client.connect_async(self._broker, self._port, keepalive=KEEPALIVE_SECONDS)
        except (OSError, ValueError) as e:
            logger.error("MQTT connect to %s:%s failed: %s", self._broker, self._port, e)
        self._client.loop_start()

    def stop(self) -> None:
        self._client.loop_stop()
        self._client.disconnect()
