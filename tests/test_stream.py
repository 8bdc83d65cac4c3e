"""Tests for the SSE stream generator and route headers."""

import json
import shutil
import tempfile
import unittest

from motion_dashboard.services.aggregator import MotionAggregator
from motion_dashboard.web.routes.stream import event_stream, format_sse

from fakes import FakeClock
from orchestrator_helpers import make_orchestrator


def _parse(frame: str):
    lines = frame.strip().split("\n")
    return lines[0][len("event: "):], json.loads(lines[1][len("data: "):])


class TestEventStream(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.aggregator = MotionAggregator(clock=self.clock)

    def test_format_sse(self):
        self.assertEqual(format_sse("status", {"a": 1}), 'event: status\ndata: {"a": 1}\n\n')

    def test_replays_current_state_then_streams_updates(self):
        self.aggregator.handle_alarm("🚨 Motion detected")
        stream = event_stream(self.aggregator, keepalive_seconds=0.01)
        name, events = _parse(next(stream))
        self.assertEqual(name, "events")
        self.assertEqual(events[0]["type"], "motion_detected")
        name, status = _parse(next(stream))
        self.assertEqual(name, "status")
        self.assertTrue(status["motionDetected"])
        self.assertTrue(status["isFresh"])

        self.aggregator.handle_system({"systemArmed": False})
        name, status = _parse(next(stream))
        self.assertEqual(name, "status")
        self.assertFalse(status["systemArmed"])
        stream.close()

    def test_status_frame_reports_offline_after_heartbeat_expires(self):
        self.aggregator.handle_alarm("🚨 Motion detected")
        self.clock.advance(seconds=300)
        self.assertFalse(self.aggregator.check_freshness())

        stream = event_stream(self.aggregator, keepalive_seconds=0.01)
        next(stream)
        name, status = _parse(next(stream))
        self.assertEqual(name, "status")
        self.assertFalse(status["isOnline"])
        self.assertFalse(status["isFresh"])
        stream.close()

    def test_slow_client_gets_latest_status_only(self):
        stream = event_stream(self.aggregator, keepalive_seconds=0.01)
        next(stream)  # events replay; status replay still pending
        for i in range(200):
            self.aggregator.handle_system({"esp32IP": f"10.0.0.{i}"})

        name, status = _parse(next(stream))
        self.assertEqual(name, "status")
        self.assertEqual(status["esp32IP"], "10.0.0.199")
        self.assertEqual(next(stream), ": keepalive\n\n")
        stream.close()

    def test_keepalive_when_idle(self):
        stream = event_stream(self.aggregator, keepalive_seconds=0.01)
        next(stream)
        next(stream)
        self.assertEqual(next(stream), ": keepalive\n\n")
        stream.close()

    def test_close_unsubscribes(self):
        stream = event_stream(self.aggregator, keepalive_seconds=0.01)
        next(stream)
        self.assertEqual(self.aggregator.subscriber_counts, {"motion_events": 1, "system_status": 1})
        stream.close()
        self.assertEqual(self.aggregator.subscriber_counts, {"motion_events": 0, "system_status": 0})


class TestStreamRoute(unittest.TestCase):

    def test_route_headers(self):
        tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmp, ignore_errors=True)
        orchestrator, _, _ = make_orchestrator(tmp)
        resp = orchestrator.flask_app.test_client().get("/api/stream")
        try:
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.mimetype, "text/event-stream")
            self.assertEqual(resp.headers["Cache-Control"], "no-cache")
            self.assertEqual(resp.headers["X-Accel-Buffering"], "no")
        finally:
            resp.close()
