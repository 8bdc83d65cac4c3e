"""Alarm message classification.

Pure function (no store, no logging) so it is easy to unit test. The ESP32
firmware is expected to include one of the marker substrings; surrounding text
such as a location suffix is allowed.
"""

from datetime import datetime

from motion_dashboard.constants import MOTION_CLEARED_MARKER, MOTION_DETECTED_MARKER
from motion_dashboard.models import MotionEvent, MotionEventType, generate_event_id


def classify_message(message: str) -> MotionEventType | None:
    """Return the event type for message, or None if it carries no known marker.

    The detected marker wins when both are present.
    """
    if MOTION_DETECTED_MARKER in message:
        return MotionEventType.MOTION_DETECTED
    if MOTION_CLEARED_MARKER in message:
        return MotionEventType.MOTION_CLEARED
    return None


def classify(message: str, now: datetime) -> MotionEvent | None:
    """Build a MotionEvent stamped at now, or None for unrecognized messages."""
    event_type = classify_message(message)
    if event_type is None:
        return None
    return MotionEvent(
        id=generate_event_id(now),
        message=message,
        timestamp=now,
        type=event_type,
        created_at=now,
    )
