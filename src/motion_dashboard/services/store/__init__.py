"""Realtime store adapters: Firebase Realtime Database and retained MQTT topics."""

from motion_dashboard.services.store.base import (
    BaseRealtimeStore,
    StoreError,
    ValueCallback,
)
from motion_dashboard.services.store.firebase_store import FirebaseRealtimeStore
from motion_dashboard.services.store.mqtt_store import MqttRealtimeStore

__all__ = [
    "BaseRealtimeStore",
    "FirebaseRealtimeStore",
    "MqttRealtimeStore",
    "StoreError",
    "ValueCallback",
]
