"""Live stream blueprint: Server-Sent Events for motion events and system status."""

import json
import logging
import threading

from flask import Blueprint, Response

from motion_dashboard.constants import STREAM_KEEPALIVE_SECONDS

logger = logging.getLogger("motion-dashboard")


def format_sse(event: str, payload) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def event_stream(aggregator, keepalive_seconds: float = STREAM_KEEPALIVE_SECONDS):
    """Yield SSE frames for one client until the generator is closed.

    Subscribing replays the current events and status first, so a new client
    never waits for the next device push. Every frame is a full snapshot, so at
    most one undelivered frame per channel is held: a slow client gets the
    latest state, not a backlog. Closing the generator (client disconnect)
    removes both subscriptions.
    """
    pending: dict[str, object] = {}
    ready = threading.Condition()

    def offer(name: str, payload) -> None:
        with ready:
            pending[name] = payload
            ready.notify()

    def on_events(events):
        offer("events", [e.to_dict() for e in events])

    def on_status(status):
        payload = status.to_dict()
        # Stored isOnline only records that the device was seen at some point
        payload["isOnline"] = payload["isFresh"] = aggregator.is_system_online()
        offer("status", payload)

    unsubscribers = [
        aggregator.subscribe_to_motion_events(on_events),
        aggregator.subscribe_to_system_status(on_status),
    ]
    logger.debug("SSE client connected")
    try:
        while True:
            with ready:
                if not ready.wait_for(lambda: pending, timeout=keepalive_seconds):
                    frame = None
                else:
                    name = next(iter(pending))
                    frame = format_sse(name, pending.pop(name))
            yield frame if frame is not None else ": keepalive\n\n"
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
        logger.debug("SSE client disconnected")


def create_bp(orchestrator):
    """Create stream blueprint closed over orchestrator."""
    bp = Blueprint("stream", __name__)

    @bp.route("/stream")
    def stream():
        return Response(
            event_stream(orchestrator.aggregator),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return bp
