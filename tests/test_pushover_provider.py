"""Tests for PushoverProvider: payload, priority mapping and failure reporting."""

import unittest
from unittest.mock import MagicMock, patch

import requests

from motion_dashboard.services.notifications.providers.pushover import (
    PUSHOVER_API_URL,
    PushoverProvider,
)

REQUEST = {
    "id": "notif_1",
    "type": "motion_detected",
    "message": "🚨 Security Alert: 🚨 Motion detected",
    "priority": "high",
    "timestamp": "2024-05-01T12:00:00.000Z",
}


def _response(status_code=200, data=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data if data is not None else {"status": 1}
    resp.text = ""
    return resp


class TestPushoverProvider(unittest.TestCase):

    def setUp(self):
        self.config = {"pushover_api_token": "tok", "pushover_user_key": "uk", "device": "phone"}
        self.provider = PushoverProvider(self.config, dashboard_url="http://dash:5055")

    @patch("motion_dashboard.services.notifications.providers.pushover.requests.post")
    def test_high_priority_request(self, mock_post):
        mock_post.return_value = _response()
        result = self.provider.send(REQUEST)
        self.assertEqual(result, {"provider": "PUSHOVER", "status": "success"})
        url = mock_post.call_args[0][0]
        data = mock_post.call_args[1]["data"]
        self.assertEqual(url, PUSHOVER_API_URL)
        self.assertEqual(data["priority"], 1)
        self.assertEqual(data["token"], "tok")
        self.assertEqual(data["user"], "uk")
        self.assertEqual(data["device"], "phone")
        self.assertEqual(data["url"], "http://dash:5055")
        self.assertEqual(data["timestamp"], 1714564800)
        self.assertNotIn("retry", data)

    @patch("motion_dashboard.services.notifications.providers.pushover.requests.post")
    def test_priority_mapping(self, mock_post):
        mock_post.return_value = _response()
        for priority, expected in (("normal", 0), ("low", -1), ("unknown", 0)):
            self.provider.send(dict(REQUEST, priority=priority))
            self.assertEqual(mock_post.call_args[1]["data"]["priority"], expected)

    @patch("motion_dashboard.services.notifications.providers.pushover.requests.post")
    def test_api_error_reported(self, mock_post):
        mock_post.return_value = _response(400, {"status": 0, "errors": ["user key is invalid"]})
        result = self.provider.send(REQUEST)
        self.assertEqual(result["status"], "failure")
        self.assertIn("user key is invalid", result["message"])

    @patch("motion_dashboard.services.notifications.providers.pushover.requests.post")
    def test_network_error_reported(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("unreachable")
        result = self.provider.send(REQUEST)
        self.assertEqual(result["provider"], "PUSHOVER")
        self.assertEqual(result["status"], "failure")
