"""Builds and owns every long-lived dashboard component for one process."""

import logging
import threading
import time

import schedule

from motion_dashboard.managers.motion_log import MotionLogStore
from motion_dashboard.managers.triggers import TriggerDurationTracker
from motion_dashboard.models import Clock, utc_now
from motion_dashboard.services.aggregator import MotionAggregator
from motion_dashboard.services.commands import SystemCommandService
from motion_dashboard.services.ingest import IngestAdapter
from motion_dashboard.services.mqtt_client import MqttClientWrapper
from motion_dashboard.services.notifications import (
    HomeAssistantMqttProvider,
    NotificationDispatcher,
    PushoverProvider,
)
from motion_dashboard.services.store import (
    BaseRealtimeStore,
    FirebaseRealtimeStore,
    MqttRealtimeStore,
    StoreError,
)

logger = logging.getLogger("motion-dashboard")


class DashboardOrchestrator:
    """Wires store, ingest, aggregator, trigger tracker, alerts, motion log and Flask app.

    Pass a store to skip backend construction (tests use an in-memory one).
    """

    def __init__(self, config: dict, store: BaseRealtimeStore | None = None,
                 clock: Clock = utc_now):
        self.config = config
        self._stopping = threading.Event()
        self._start_time = time.time()
        self._clock = clock

        # MQTT wrapper is shared by the mqtt store backend and the HA notification provider
        self.mqtt_wrapper: MqttClientWrapper | None = None
        self.store = store if store is not None else self._create_store()
        if self.mqtt_wrapper is None and config.get("NOTIFICATIONS_HOME_ASSISTANT_ENABLED"):
            self.mqtt_wrapper = self._create_mqtt_wrapper()
        self._store_owns_mqtt = isinstance(self.store, MqttRealtimeStore)

        self.notifier = self._create_notifier()
        self.command_service = SystemCommandService(
            self.store, config["SYSTEM_KEY"], clock=clock
        )
        self.aggregator = MotionAggregator(
            notifier=self.notifier,
            command_service=self.command_service,
            store=self.store,
            system_key=config["SYSTEM_KEY"],
            clock=clock,
        )

        # Tracker follows the aggregated motion flag; only real transitions record triggers
        self.trigger_tracker = TriggerDurationTracker(
            clock=clock, sensor_location=config["SENSOR_LOCATION"]
        )
        self._unsubscribe_tracker = self.aggregator.subscribe_to_system_status(
            self.trigger_tracker.on_status
        )

        self.ingest = IngestAdapter(
            self.store, self.aggregator, config["ALARM_KEY"], config["SYSTEM_KEY"]
        )
        self.motion_log = MotionLogStore(
            config["STORAGE_PATH"],
            max_entries=config["MOTION_LOG_MAX_ENTRIES"],
            clock=clock,
        )

        # web.server imports back into this module
        from motion_dashboard.web.server import create_app

        self.flask_app = create_app(self)

        self._scheduler_thread: threading.Thread | None = None
        self._request_count = 0
        self._request_count_lock = threading.Lock()

    def _create_mqtt_wrapper(self) -> MqttClientWrapper:
        return MqttClientWrapper(
            broker=self.config["MQTT_BROKER"],
            port=self.config["MQTT_PORT"],
            username=self.config.get("MQTT_USER"),
            password=self.config.get("MQTT_PASSWORD"),
        )

    def _create_store(self) -> BaseRealtimeStore:
        """Build the realtime store for STORE_BACKEND."""
        if self.config["STORE_BACKEND"] == "mqtt":
            self.mqtt_wrapper = self._create_mqtt_wrapper()
            return MqttRealtimeStore(
                self.mqtt_wrapper, topic_prefix=self.config["MQTT_TOPIC_PREFIX"]
            )
        return FirebaseRealtimeStore()

    def _create_notifier(self) -> NotificationDispatcher:
        """Build notification dispatcher with providers enabled by config."""
        providers: list = []
        dashboard_url = self.config.get("DASHBOARD_URL", "")
        if self.config.get("NOTIFICATIONS_HOME_ASSISTANT_ENABLED") and self.mqtt_wrapper:
            providers.append(
                HomeAssistantMqttProvider(
                    self.mqtt_wrapper.client,
                    topic=self.config["HOME_ASSISTANT_NOTIFY_TOPIC"],
                    dashboard_url=dashboard_url,
                )
            )
        po_config = self.config.get("pushover", {})
        if (
            po_config.get("enabled")
            and po_config.get("pushover_api_token")
            and po_config.get("pushover_user_key")
        ):
            providers.append(PushoverProvider(po_config, dashboard_url=dashboard_url))
        return NotificationDispatcher(providers=providers, clock=self._clock)

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self._start_time

    def _run_scheduler(self):
        jobs = schedule.Scheduler()
        freshness_seconds = max(1, int(self.config.get("FRESHNESS_CHECK_SECONDS", 30)))
        jobs.every(freshness_seconds).seconds.do(self._check_freshness)
        jobs.every(1).hours.do(self._hourly_cleanup)
        jobs.every(5).minutes.do(self._log_request_stats)
        logger.info(f"Device freshness re-checked every {freshness_seconds}s; motion log pruned hourly")

        while not self._stopping.is_set():
            jobs.run_pending()
            self._stopping.wait(1)

    def _check_freshness(self):
        try:
            self.aggregator.check_freshness()
        except Exception as e:
            logger.exception(f"Freshness check error: {e}")

    def _hourly_cleanup(self):
        """Prune motion log entries older than RETENTION_DAYS."""
        try:
            self.motion_log.prune(self.config["RETENTION_DAYS"])
        except OSError as e:
            logger.error(f"Motion log cleanup failed: {e}")

    def _log_request_stats(self):
        with self._request_count_lock:
            count = self._request_count
            self._request_count = 0
        events = len(self.aggregator.get_motion_events())
        online = self.aggregator.is_system_online()
        logger.info(
            f"API stats (5m): {count} requests, {events} buffered events, "
            f"device {'online' if online else 'offline'}, "
            f"store {'connected' if self.store.connected else 'disconnected'}"
        )

    def start_services(self):
        """Connect the store, subscribe ingest and start the scheduler thread.

        The web server is Gunicorn's job.
        """
        logger.info("-" * 48)
        logger.info("ESP32 motion dashboard starting")
        backend = self.config["STORE_BACKEND"]
        logger.info(f"Store backend: {backend}")
        if backend == "firebase":
            logger.info(f"Firebase database: {self.config.get('FIREBASE_DATABASE_URL')}")
        if self.mqtt_wrapper is not None:
            logger.info(f"MQTT broker: {self.config['MQTT_BROKER']}:{self.config['MQTT_PORT']}")
        logger.info(f"Keys: alarm='{self.config['ALARM_KEY']}', system='{self.config['SYSTEM_KEY']}'")
        logger.info(f"Motion log: {self.config['STORAGE_PATH']} (kept {self.config['RETENTION_DAYS']} days)")
        logger.info(f"Notification providers: {self.notifier.provider_names or 'none'}")
        logger.info("-" * 48)

        self.store.start()
        if self.mqtt_wrapper is not None and not self._store_owns_mqtt:
            self.mqtt_wrapper.start()

        try:
            self.ingest.start()
        except StoreError as e:
            logger.error(f"Failed to subscribe to realtime store: {e}")

        self._scheduler_thread = threading.Thread(
            target=self._run_scheduler, name="dashboard-scheduler", daemon=True
        )
        self._scheduler_thread.start()

    def stop(self):
        """Unsubscribe from the store, stop background threads and close connections."""
        logger.info("Stopping dashboard services")
        self._stopping.set()
        self.ingest.stop()
        self._unsubscribe_tracker()
        self.store.stop()
        if self.mqtt_wrapper is not None and not self._store_owns_mqtt:
            self.mqtt_wrapper.stop()
