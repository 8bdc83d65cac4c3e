"""Configuration loading and validation."""

import os
import logging
import sys

import yaml
from voluptuous import Schema, Optional, Any, In, ALLOW_EXTRA, Invalid

from motion_dashboard.constants import (
    DEFAULT_ALARM_KEY,
    DEFAULT_MOTION_LOG_MAX_ENTRIES,
    DEFAULT_SENSOR_LOCATION,
    DEFAULT_SYSTEM_KEY,
)

logger = logging.getLogger('motion-dashboard')

STORE_BACKENDS = ('firebase', 'mqtt')


# Configuration Schema
CONFIG_SCHEMA = Schema({
    # Realtime store the ESP32 writes to; the dashboard subscribes to two keys on it.
    Optional('store'): {
        Optional('backend'): In(STORE_BACKENDS),   # firebase (Realtime Database) or mqtt (retained topics).
        Optional('alarm_key'): str,                # Key/topic carrying the raw alarm string (default "alarm").
        Optional('system_key'): str,               # Key/topic carrying the system metadata object (default "system").
    },
    # Firebase Realtime Database; used when store.backend is firebase.
    Optional('firebase'): {
        Optional('database_url'): str,       # e.g. https://<project>-default-rtdb.firebaseio.com
        Optional('credentials_path'): str,   # Service account JSON; empty = application default credentials.
        Optional('project_id'): str,         # Optional project ID when not using a service account file.
    },
    # Network and storage; MQTT settings are only required when store.backend is mqtt.
    Optional('network'): {
        Optional('mqtt_broker'): str,        # MQTT broker hostname or IP.
        Optional('mqtt_port'): int,          # MQTT broker port (default 1883; 8883 enables TLS).
        Optional('mqtt_user'): str,          # Optional MQTT username.
        Optional('mqtt_password'): str,      # Optional MQTT password.
        Optional('mqtt_topic_prefix'): str,  # Topic prefix; keys map to <prefix>/<key>.
        Optional('flask_host'): str,         # Bind address for Gunicorn.
        Optional('flask_port'): int,         # Port for the web server (API and SSE stream).
        Optional('storage_path'): str,       # Root path for the persisted motion log.
        Optional('dashboard_url'): str,      # Public dashboard URL attached to notifications (optional).
    },
    # Runtime behavior.
    Optional('settings'): {
        Optional('log_level'): str,                       # DEBUG, INFO, WARNING, ERROR.
        Optional('retention_days'): int,                  # Motion log entries older than this are pruned hourly.
        Optional('motion_log_max_entries'): int,          # Hard cap on persisted motion log entries.
        Optional('freshness_check_seconds'): int,         # How often the scheduler re-evaluates online/offline.
        Optional('sensor_location'): str,                 # Location label stamped on trigger events.
    },
    # Outbound notification providers for armed motion alerts.
    Optional('notifications'): {
        Optional('home_assistant'): {
            Optional('enabled'): bool,   # Publish alerts to MQTT for Home Assistant (requires MQTT broker).
            Optional('topic'): str,      # Topic to publish notifications on.
        },
        Optional('pushover'): {
            Optional('enabled'): bool,
            Optional('pushover_api_token'): str,
            Optional('pushover_user_key'): str,
            Optional('device'): str,
            Optional('default_sound'): str,
            Optional('html'): Any(int, bool),
        },
    },
}, extra=ALLOW_EXTRA)


# (yaml section, yaml key, config key). Blank strings keep the current value
# for keys listed in _NON_EMPTY.
_YAML_FIELDS = (
    ('store', 'backend', 'STORE_BACKEND'),
    ('store', 'alarm_key', 'ALARM_KEY'),
    ('store', 'system_key', 'SYSTEM_KEY'),
    ('firebase', 'database_url', 'FIREBASE_DATABASE_URL'),
    ('firebase', 'credentials_path', 'FIREBASE_CREDENTIALS'),
    ('firebase', 'project_id', 'FIREBASE_PROJECT_ID'),
    ('network', 'mqtt_broker', 'MQTT_BROKER'),
    ('network', 'mqtt_port', 'MQTT_PORT'),
    ('network', 'mqtt_user', 'MQTT_USER'),
    ('network', 'mqtt_password', 'MQTT_PASSWORD'),
    ('network', 'mqtt_topic_prefix', 'MQTT_TOPIC_PREFIX'),
    ('network', 'flask_host', 'FLASK_HOST'),
    ('network', 'flask_port', 'FLASK_PORT'),
    ('network', 'storage_path', 'STORAGE_PATH'),
    ('network', 'dashboard_url', 'DASHBOARD_URL'),
    ('settings', 'log_level', 'LOG_LEVEL'),
    ('settings', 'retention_days', 'RETENTION_DAYS'),
    ('settings', 'motion_log_max_entries', 'MOTION_LOG_MAX_ENTRIES'),
    ('settings', 'freshness_check_seconds', 'FRESHNESS_CHECK_SECONDS'),
    ('settings', 'sensor_location', 'SENSOR_LOCATION'),
)
_NON_EMPTY = {'ALARM_KEY', 'SYSTEM_KEY', 'FIREBASE_DATABASE_URL', 'SENSOR_LOCATION'}

# (environment variable, config key, type); unset or empty variables are ignored.
_ENV_OVERRIDES = (
    ('STORE_BACKEND', 'STORE_BACKEND', str),
    ('ALARM_KEY', 'ALARM_KEY', str),
    ('SYSTEM_KEY', 'SYSTEM_KEY', str),
    ('FIREBASE_DATABASE_URL', 'FIREBASE_DATABASE_URL', str),
    ('FIREBASE_CREDENTIALS', 'FIREBASE_CREDENTIALS', str),
    ('GOOGLE_CLOUD_PROJECT', 'FIREBASE_PROJECT_ID', str),
    ('MQTT_BROKER', 'MQTT_BROKER', str),
    ('MQTT_PORT', 'MQTT_PORT', int),
    ('MQTT_USER', 'MQTT_USER', str),
    ('MQTT_PASSWORD', 'MQTT_PASSWORD', str),
    ('MQTT_TOPIC_PREFIX', 'MQTT_TOPIC_PREFIX', str),
    ('FLASK_HOST', 'FLASK_HOST', str),
    ('FLASK_PORT', 'FLASK_PORT', int),
    ('STORAGE_PATH', 'STORAGE_PATH', str),
    ('DASHBOARD_URL', 'DASHBOARD_URL', str),
    ('LOG_LEVEL', 'LOG_LEVEL', str),
    ('RETENTION_DAYS', 'RETENTION_DAYS', int),
    ('FRESHNESS_CHECK_SECONDS', 'FRESHNESS_CHECK_SECONDS', int),
    ('PUSHOVER_API_TOKEN', ('pushover', 'pushover_api_token'), str),
    ('PUSHOVER_USER_KEY', ('pushover', 'pushover_user_key'), str),
)

CONFIG_PATHS = ('/app/config.yaml', '/app/storage/config.yaml', './config.yaml')


def _default_config() -> dict:
    return {
        'STORE_BACKEND': 'firebase',
        'ALARM_KEY': DEFAULT_ALARM_KEY,
        'SYSTEM_KEY': DEFAULT_SYSTEM_KEY,
        'FIREBASE_DATABASE_URL': None,   # required for the firebase backend
        'FIREBASE_CREDENTIALS': '',
        'FIREBASE_PROJECT_ID': '',
        'MQTT_BROKER': None,             # required for the mqtt backend and HA alerts
        'MQTT_PORT': 1883,
        'MQTT_USER': None,
        'MQTT_PASSWORD': None,
        'MQTT_TOPIC_PREFIX': 'esp32',
        'FLASK_HOST': '0.0.0.0',
        'FLASK_PORT': 5055,
        'STORAGE_PATH': '/app/storage',
        'DASHBOARD_URL': '',
        'LOG_LEVEL': 'INFO',
        'RETENTION_DAYS': 30,
        'MOTION_LOG_MAX_ENTRIES': DEFAULT_MOTION_LOG_MAX_ENTRIES,
        'FRESHNESS_CHECK_SECONDS': 30,
        'SENSOR_LOCATION': DEFAULT_SENSOR_LOCATION,
        'NOTIFICATIONS_HOME_ASSISTANT_ENABLED': False,
        'HOME_ASSISTANT_NOTIFY_TOPIC': 'esp32/notifications',
        'pushover': {},
    }


def _apply_yaml(config: dict, yaml_config: dict) -> None:
    for section, key, config_key in _YAML_FIELDS:
        value = (yaml_config.get(section) or {}).get(key)
        if value is None or (config_key in _NON_EMPTY and not value):
            continue
        config[config_key] = value

    notifications = yaml_config.get('notifications') or {}
    ha_cfg = notifications.get('home_assistant') or {}
    if 'enabled' in ha_cfg:
        config['NOTIFICATIONS_HOME_ASSISTANT_ENABLED'] = bool(ha_cfg['enabled'])
    if ha_cfg.get('topic'):
        config['HOME_ASSISTANT_NOTIFY_TOPIC'] = ha_cfg['topic']
    config['pushover'] = dict(notifications.get('pushover') or {})


def _apply_env(config: dict) -> None:
    for env_name, config_key, cast in _ENV_OVERRIDES:
        raw = os.getenv(env_name)
        if not raw:
            continue
        if isinstance(config_key, tuple):
            section, key = config_key
            config[section][key] = cast(raw)
        else:
            config[config_key] = cast(raw)


def _read_yaml(path: str) -> dict | None:
    """Parsed and schema-checked config.yaml; exits on schema errors, None on read errors."""
    logger.info(f"Loading config from {path}")
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config from {path}: {e}")
        return None
    try:
        return CONFIG_SCHEMA(raw)
    except Invalid as e:
        logger.error(f"Invalid configuration in {path}: {e}")
        sys.exit(1)


def load_config() -> dict:
    """Build the runtime config: defaults, then the first config.yaml found, then env vars.

    Raises ValueError when the selected store backend is unknown or its
    connection setting (FIREBASE_DATABASE_URL or MQTT_BROKER) is missing.
    """
    config = _default_config()

    for path in CONFIG_PATHS:
        if not os.path.exists(path):
            continue
        yaml_config = _read_yaml(path)
        if yaml_config is not None:
            _apply_yaml(config, yaml_config)
            break
    else:
        logger.info("No config.yaml found, using defaults")

    config['pushover'] = dict(config['pushover'])
    _apply_env(config)
    config['STORE_BACKEND'] = config['STORE_BACKEND'].lower()

    backend = config['STORE_BACKEND']
    if backend not in STORE_BACKENDS:
        raise ValueError(f"Unknown STORE_BACKEND '{backend}'. Use one of: {', '.join(STORE_BACKENDS)}.")

    missing = []
    if backend == 'firebase' and not config['FIREBASE_DATABASE_URL']:
        missing.append('FIREBASE_DATABASE_URL (firebase.database_url)')
    if backend == 'mqtt' and not config['MQTT_BROKER']:
        missing.append('MQTT_BROKER (network.mqtt_broker)')
    if config['NOTIFICATIONS_HOME_ASSISTANT_ENABLED'] and not config['MQTT_BROKER']:
        missing.append('MQTT_BROKER (network.mqtt_broker, needed by notifications.home_assistant)')
    if missing:
        raise ValueError(
            f"Missing required configuration: {', '.join(missing)}. "
            f"Set these in config.yaml or as environment variables."
        )

    return config
