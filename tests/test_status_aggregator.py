"""Tests for StatusAggregator merge, liveness stamping and freshness window."""

import unittest

from motion_dashboard.managers.status import StatusAggregator

from fakes import FakeClock


class TestStatusMerge(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.status = StatusAggregator(clock=self.clock)

    def test_initial_state(self):
        snap = self.status.snapshot()
        self.assertFalse(snap.is_online)
        self.assertIsNone(snap.last_heartbeat)
        self.assertFalse(snap.motion_detected)
        self.assertTrue(snap.system_armed)
        self.assertFalse(self.status.has_metadata)
        self.assertFalse(self.status.is_fresh())

    def test_merge_overwrites_present_fields_only(self):
        self.status.merge_metadata({"systemArmed": False, "esp32IP": "192.168.1.40"})
        self.status.merge_metadata({"motionDetected": True})
        snap = self.status.snapshot()
        self.assertFalse(snap.system_armed)
        self.assertEqual(snap.esp32_ip, "192.168.1.40")
        self.assertTrue(snap.motion_detected)
        self.assertTrue(self.status.has_metadata)

    def test_merge_stamps_local_heartbeat(self):
        self.status.merge_metadata({"lastHeartbeat": "2001-01-01T00:00:00Z"})
        self.assertEqual(self.status.snapshot().last_heartbeat, self.clock.now)

    def test_unknown_keys_kept_in_extra(self):
        self.status.merge_metadata({"lastAction": "arm", "sensor_location": "Porch"})
        d = self.status.to_dict()
        self.assertEqual(d["lastAction"], "arm")
        self.assertEqual(d["sensor_location"], "Porch")

    def test_wrong_type_skipped(self):
        self.status.merge_metadata({"systemArmed": "yes"})
        self.assertTrue(self.status.snapshot().system_armed)

    def test_record_alarm_marks_online_and_sets_flag(self):
        self.status.record_alarm(True)
        snap = self.status.snapshot()
        self.assertTrue(snap.is_online)
        self.assertTrue(snap.motion_detected)
        self.assertEqual(snap.last_heartbeat, self.clock.now)

    def test_record_alarm_none_keeps_flag(self):
        self.status.record_alarm(True)
        self.clock.advance(seconds=5)
        self.status.record_alarm(None)
        snap = self.status.snapshot()
        self.assertTrue(snap.motion_detected)
        self.assertEqual(snap.last_heartbeat, self.clock.now)

    def test_snapshot_is_a_copy(self):
        snap = self.status.snapshot()
        snap.system_armed = False
        snap.extra["x"] = 1
        self.assertTrue(self.status.system_armed)
        self.assertNotIn("x", self.status.to_dict())


class TestFreshness(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.status = StatusAggregator(clock=self.clock)
        self.status.record_alarm(None)

    def test_fresh_at_119_seconds(self):
        self.clock.advance(seconds=119)
        self.assertTrue(self.status.is_fresh())

    def test_stale_at_121_seconds(self):
        self.clock.advance(seconds=121)
        self.assertFalse(self.status.is_fresh())

    def test_exact_boundary_is_stale(self):
        self.clock.advance(milliseconds=120_000)
        self.assertFalse(self.status.is_fresh())
        self.clock.advance(milliseconds=-1)
        self.assertTrue(self.status.is_fresh())

    def test_to_dict_includes_is_fresh(self):
        self.assertTrue(self.status.to_dict()["isFresh"])
