"""Tests for DashboardOrchestrator wiring, store selection and scheduled jobs."""

import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from motion_dashboard.orchestrator import DashboardOrchestrator
from motion_dashboard.services.notifications import HomeAssistantMqttProvider, PushoverProvider
from motion_dashboard.services.store import MqttRealtimeStore

from orchestrator_helpers import make_config, make_orchestrator


class OrchestratorTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp, ignore_errors=True)


class TestWiring(OrchestratorTestCase):

    def test_start_services_subscribes_and_starts_scheduler(self):
        orchestrator, store, _ = make_orchestrator(self.tmp)
        with patch("motion_dashboard.orchestrator.threading.Thread") as mock_thread:
            orchestrator.start_services()
        self.assertEqual(set(store.callbacks), {"alarm", "system"})
        mock_thread.return_value.start.assert_called_once()

    def test_stop_unsubscribes_everything(self):
        orchestrator, store, _ = make_orchestrator(self.tmp)
        orchestrator.ingest.start()
        orchestrator.stop()
        self.assertEqual(store.callbacks["alarm"], [])
        self.assertEqual(orchestrator.aggregator.subscriber_counts["system_status"], 0)

    def test_no_providers_by_default(self):
        orchestrator, _, _ = make_orchestrator(self.tmp)
        self.assertEqual(orchestrator.notifier.provider_names, [])
        self.assertIsNone(orchestrator.mqtt_wrapper)

    def test_pushover_provider_when_configured(self):
        orchestrator, _, _ = make_orchestrator(
            self.tmp,
            pushover={"enabled": True, "pushover_api_token": "tok", "pushover_user_key": "uk"},
        )
        self.assertEqual(orchestrator.notifier.provider_names, [PushoverProvider.__name__])


class TestStoreSelection(OrchestratorTestCase):

    @patch("motion_dashboard.orchestrator.MqttClientWrapper")
    def test_mqtt_backend_shares_wrapper_with_home_assistant(self, mock_wrapper_cls):
        config = make_config(
            self.tmp,
            STORE_BACKEND="mqtt",
            MQTT_BROKER="broker.local",
            NOTIFICATIONS_HOME_ASSISTANT_ENABLED=True,
        )
        orchestrator = DashboardOrchestrator(config)
        self.assertIsInstance(orchestrator.store, MqttRealtimeStore)
        mock_wrapper_cls.assert_called_once()
        self.assertEqual(orchestrator.notifier.provider_names, [HomeAssistantMqttProvider.__name__])

        orchestrator.store.start = MagicMock()
        with patch("motion_dashboard.orchestrator.threading.Thread"):
            orchestrator.start_services()
        orchestrator.store.start.assert_called_once()
        mock_wrapper_cls.return_value.start.assert_not_called()

    @patch("motion_dashboard.orchestrator.FirebaseRealtimeStore")
    def test_firebase_backend(self, mock_store_cls):
        orchestrator = DashboardOrchestrator(make_config(self.tmp))
        self.assertIs(orchestrator.store, mock_store_cls.return_value)


class TestScheduledJobs(OrchestratorTestCase):

    def test_check_freshness_job(self):
        orchestrator, store, clock = make_orchestrator(self.tmp)
        orchestrator.ingest.start()
        store.push("alarm", "heartbeat")
        clock.advance(seconds=121)
        orchestrator._check_freshness()
        self.assertFalse(orchestrator.aggregator.is_system_online())

    def test_hourly_cleanup_prunes_motion_log(self):
        orchestrator, _, clock = make_orchestrator(self.tmp, RETENTION_DAYS=1)
        orchestrator.motion_log.insert("old")
        clock.advance(seconds=2 * 86400)
        orchestrator._hourly_cleanup()
        self.assertEqual(orchestrator.motion_log.list_recent(), [])

    def test_log_request_stats_resets_counter(self):
        orchestrator, _, _ = make_orchestrator(self.tmp)
        orchestrator._request_count = 5
        orchestrator._log_request_stats()
        self.assertEqual(orchestrator._request_count, 0)
