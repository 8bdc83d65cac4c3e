"""Tests for the retained-topic MQTT store adapter."""

import json
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

from motion_dashboard.services.store.base import StoreError
from motion_dashboard.services.store.mqtt_store import MqttRealtimeStore, decode_payload


def _msg(topic, payload: bytes):
    return SimpleNamespace(topic=topic, payload=payload)


class TestDecodePayload(unittest.TestCase):

    def test_json_object(self):
        self.assertEqual(decode_payload(b'{"systemArmed": true}'), {"systemArmed": True})

    def test_plain_text(self):
        self.assertEqual(decode_payload("🚨 Motion detected".encode()), "🚨 Motion detected")

    def test_json_string(self):
        self.assertEqual(decode_payload(b'"hello"'), "hello")

    def test_empty_is_none(self):
        self.assertIsNone(decode_payload(b""))

    def test_invalid_utf8_is_none(self):
        self.assertIsNone(decode_payload(b"\xff\xfe"))


class TestMqttRealtimeStore(unittest.TestCase):

    def setUp(self):
        self.wrapper = MagicMock()
        self.wrapper.mqtt_connected = True
        self.wrapper.publish.return_value = True
        self.store = MqttRealtimeStore(self.wrapper, topic_prefix="esp32/")

    def test_registers_message_callback(self):
        self.wrapper.set_message_callback.assert_called_once_with(self.store.on_message)

    def test_subscribe_tracks_topic_once(self):
        self.store.subscribe("alarm", lambda v: None)
        self.store.subscribe("alarm", lambda v: None)
        self.wrapper.add_topic.assert_called_once_with("esp32/alarm")

    def test_last_unsubscribe_removes_topic(self):
        first = self.store.subscribe("alarm", lambda v: None)
        second = self.store.subscribe("alarm", lambda v: None)
        first()
        self.wrapper.remove_topic.assert_not_called()
        second()
        self.wrapper.remove_topic.assert_called_once_with("esp32/alarm")

    def test_message_routed_and_cached(self):
        received = []
        self.store.subscribe("system", received.append)
        self.store.on_message(None, None, _msg("esp32/system", b'{"motionDetected": true}'))
        self.store.on_message(None, None, _msg("other/system", b"ignored"))
        self.assertEqual(received, [{"motionDetected": True}])
        self.assertEqual(self.store.get("system"), {"motionDetected": True})

    def test_set_publishes_retained_json(self):
        self.store.set("system", {"systemArmed": False})
        self.wrapper.publish.assert_called_once_with(
            "esp32/system", json.dumps({"systemArmed": False}), qos=1, retain=True
        )
        self.assertEqual(self.store.get("system"), {"systemArmed": False})

    def test_set_fails_when_disconnected(self):
        self.wrapper.mqtt_connected = False
        with self.assertRaises(StoreError):
            self.store.set("system", {})
        self.wrapper.publish.assert_not_called()

    def test_set_fails_when_publish_rejected(self):
        self.wrapper.publish.return_value = False
        with self.assertRaises(StoreError):
            self.store.set("system", {})

    def test_connected_and_lifecycle_delegate(self):
        self.assertTrue(self.store.connected)
        self.store.start()
        self.store.stop()
        self.wrapper.start.assert_called_once()
        self.wrapper.stop.assert_called_once()
