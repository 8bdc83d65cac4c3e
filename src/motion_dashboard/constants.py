"""
Shared constants for alarm classification, status freshness, and display.

Centralizes the device marker strings, retention bounds, and freshness window so
the classifier, aggregator, and web routes do not duplicate magic numbers.
"""

# Marker substrings the ESP32 firmware emits on the alarm key. Classification is
# substring containment, checked in this order.
MOTION_DETECTED_MARKER: str = "🚨 Motion detected"
MOTION_CLEARED_MARKER: str = "✅ Motion cleared"

# Prefix for outbound security alerts built from a motion_detected alarm.
SECURITY_ALERT_PREFIX: str = "🚨 Security Alert: "

# In-memory ring buffer capacity for classified alarm events (newest first).
MAX_MOTION_EVENTS: int = 50

# Device counts as online while the last heartbeat is younger than this.
HEARTBEAT_FRESHNESS_MS: int = 120_000

# Default key names on the realtime store.
DEFAULT_ALARM_KEY: str = "alarm"
DEFAULT_SYSTEM_KEY: str = "system"

# Sensor location stamped on trigger events and motion log inserts.
DEFAULT_SENSOR_LOCATION: str = "ESP32-CAM Area"

# API list defaults.
DEFAULT_MOTION_LOG_LIMIT: int = 20
DEFAULT_NOTIFICATIONS_LIMIT: int = 10

# Recent notifications kept for GET /api/notifications.
RECENT_NOTIFICATIONS_MAX_SIZE: int = 50

# Hard cap on persisted motion log entries (oldest dropped first).
DEFAULT_MOTION_LOG_MAX_ENTRIES: int = 1000

# Error buffer for /api/stats: max number of recent ERROR/WARNING log entries.
ERROR_BUFFER_MAX_SIZE: int = 10

# SSE keep-alive interval (seconds) when no update arrives.
STREAM_KEEPALIVE_SECONDS: float = 15.0

# Accepted arm/disarm actions.
ACTION_ARM: str = "arm"
ACTION_DISARM: str = "disarm"
VALID_ACTIONS: frozenset[str] = frozenset({ACTION_ARM, ACTION_DISARM})

# -----------------------------------------------------------------------------
# Time display (user-facing): 12-hour format with AM/PM
# Wire formats (API JSON, store writes) stay ISO 8601.
# -----------------------------------------------------------------------------
DISPLAY_DATETIME_FORMAT: str = "%Y-%m-%d %I:%M:%S %p"
