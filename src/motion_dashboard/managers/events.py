"""Bounded newest-first buffer of classified alarm events."""

import threading
from collections import deque

from motion_dashboard.constants import MAX_MOTION_EVENTS
from motion_dashboard.models import MotionEvent


class MotionEventBuffer:
    """Ring buffer of MotionEvent, newest first, capped at MAX_MOTION_EVENTS.

    Order is insertion order; events are never re-sorted by timestamp.
    """

    def __init__(self, capacity: int = MAX_MOTION_EVENTS):
        self._events: deque[MotionEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def push(self, event: MotionEvent) -> None:
        """Prepend event; the oldest falls off the tail once at capacity."""
        with self._lock:
            self._events.appendleft(event)

    def snapshot(self) -> list[MotionEvent]:
        """Return a copy of the buffer, newest first."""
        with self._lock:
            return list(self._events)

    @property
    def capacity(self) -> int:
        return self._events.maxlen

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
