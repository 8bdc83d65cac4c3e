"""API blueprint: system status/commands, events, triggers, motion log, notifications, stats."""

import logging

from flask import Blueprint, jsonify, request

from motion_dashboard.constants import (
    DEFAULT_MOTION_LOG_LIMIT,
    DEFAULT_NOTIFICATIONS_LIMIT,
    MAX_MOTION_EVENTS,
)
from motion_dashboard.logging_utils import error_buffer
from motion_dashboard.services.commands import CommandTransportError, InvalidCommandError

logger = logging.getLogger("motion-dashboard")


def _limit_arg(default: int) -> int:
    """?limit= as a non-negative int; falls back to default when missing or not a number."""
    return max(0, request.args.get("limit", default, type=int))


def _json_object() -> dict:
    """Request body as a dict; anything else (missing, invalid, array, scalar) is empty."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_bp(orchestrator):
    """Create API blueprint with routes closed over orchestrator."""
    bp = Blueprint("api", __name__)
    aggregator = orchestrator.aggregator
    trigger_tracker = orchestrator.trigger_tracker
    motion_log = orchestrator.motion_log
    notifier = orchestrator.notifier

    @bp.route("/system", methods=["GET"])
    def get_system():
        if not aggregator.has_metadata:
            return jsonify({"error": "No system data found"}), 404
        status = aggregator.get_system_status()
        status["isOnline"] = aggregator.is_system_online()
        return jsonify({"status": status})

    @bp.route("/system", methods=["POST"])
    def post_system():
        body = _json_object()
        try:
            result = orchestrator.command_service.execute(body.get("action"))
        except InvalidCommandError as e:
            return jsonify({"error": str(e)}), 400
        except CommandTransportError as e:
            return jsonify({"error": str(e)}), 500
        return jsonify(result)

    @bp.route("/events")
    def list_events():
        events = aggregator.get_motion_events()
        limit = _limit_arg(MAX_MOTION_EVENTS)
        return jsonify({
            "events": [e.to_dict() for e in events[:limit]],
            "count": len(events),
        })

    @bp.route("/triggers")
    def list_triggers():
        return jsonify({
            "triggers": [t.to_dict() for t in trigger_tracker.get_triggers()],
            "stats": trigger_tracker.get_stats().to_dict(),
        })

    @bp.route("/motion", methods=["GET"])
    def list_motion():
        return jsonify({"events": motion_log.list_recent(_limit_arg(DEFAULT_MOTION_LOG_LIMIT))})

    @bp.route("/motion", methods=["POST"])
    def post_motion():
        body = _json_object()
        try:
            record = motion_log.insert(body.get("sensor_location"))
        except ValueError:
            return jsonify({"error": "sensor_location is required"}), 400
        except OSError as e:
            logger.error(f"Error inserting motion event: {e}")
            return jsonify({"error": "Internal server error"}), 500
        return jsonify({"success": True, "data": record}), 201

    @bp.route("/notifications", methods=["GET"])
    def list_notifications():
        return jsonify({
            "notifications": notifier.recent(_limit_arg(DEFAULT_NOTIFICATIONS_LIMIT)),
            "total": notifier.recent_count,
        })

    @bp.route("/notifications", methods=["POST"])
    def post_notification():
        body = _json_object()
        if not body.get("type") or not body.get("message"):
            return jsonify({"error": "type and message are required"}), 400
        entry, results = notifier.publish_sync({
            "type": str(body["type"]),
            "message": str(body["message"]),
            "priority": body.get("priority") or "normal",
            "timestamp": body.get("timestamp"),
        })
        return jsonify({
            "success": True,
            "notification": entry,
            "providers": results,
            "message": "Notification processed successfully",
        })

    @bp.route("/stats")
    def stats():
        return jsonify({
            "uptime_seconds": round(orchestrator.uptime_seconds, 1),
            "store": {
                "backend": orchestrator.config["STORE_BACKEND"],
                "connected": orchestrator.store.connected,
            },
            "device_online": aggregator.is_system_online(),
            "buffered_events": len(aggregator.get_motion_events()),
            "subscribers": aggregator.subscriber_counts,
            "triggers": trigger_tracker.get_stats().to_dict(),
            "notifications": {
                "providers": notifier.provider_names,
                "recent": notifier.recent_count,
            },
            "errors": error_buffer.get_all(),
        })

    return bp
