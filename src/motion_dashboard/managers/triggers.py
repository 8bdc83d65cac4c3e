"""Motion trigger session tracking: pairs start/end edges and derives statistics."""

import logging
import threading
from datetime import datetime

from motion_dashboard.constants import DEFAULT_SENSOR_LOCATION
from motion_dashboard.models import (
    Clock,
    TriggerEvent,
    TriggerStats,
    TriggerStatus,
    TriggerType,
    generate_event_id,
    round_half_up,
    utc_now,
)

logger = logging.getLogger('motion-dashboard')


def compute_stats(triggers: list[TriggerEvent], now: datetime,
                  open_start: datetime | None = None,
                  last_trigger_time: datetime | None = None) -> TriggerStats:
    """Pure aggregate over the full trigger history.

    todayTriggers compares local calendar dates. Durations come from every
    event that carries one (resolved starts and ends alike).
    """
    today = now.astimezone().date()
    starts = [t for t in triggers if t.type == TriggerType.MOTION_START]
    today_count = sum(1 for t in starts if t.timestamp.astimezone().date() == today)
    durations = [t.duration for t in triggers if t.duration is not None]
    average = sum(durations) / len(durations) if durations else 0
    longest = max(durations, default=0)
    return TriggerStats(
        total_triggers=len(starts),
        today_triggers=today_count,
        average_duration=average,
        longest_duration=longest,
        current_status="active" if open_start is not None else "idle",
        last_trigger_time=last_trigger_time,
    )


class TriggerDurationTracker:
    """Two-state machine (idle / active) fed by the aggregated motion flag.

    A single global open session: concurrent motion at multiple locations is not
    tracked separately. Only real transitions emit events, so repeated identical
    flag values are no-ops.
    """

    def __init__(self, clock: Clock = utc_now,
                 sensor_location: str = DEFAULT_SENSOR_LOCATION):
        self._clock = clock
        self._sensor_location = sensor_location
        self._triggers: list[TriggerEvent] = []  # newest first
        self._open_start: datetime | None = None
        self._last_trigger_time: datetime | None = None
        self._stats = TriggerStats()
        self._stats_day = self._clock().astimezone().date()
        self._lock = threading.Lock()

    def on_motion_flag(self, motion_detected: bool) -> TriggerEvent | None:
        """Feed the current motion flag; returns the appended event, or None on no-op."""
        with self._lock:
            now = self._clock()
            if motion_detected and self._open_start is None:
                event = self._start(now)
            elif not motion_detected and self._open_start is not None:
                event = self._end(now)
            else:
                return None
            self._refresh_stats(now)
            return event.copy()

    def _refresh_stats(self, now: datetime) -> None:
        self._stats = compute_stats(
            self._triggers, now, self._open_start, self._last_trigger_time
        )
        self._stats_day = now.astimezone().date()

    def on_status(self, status) -> None:
        """Status subscriber entry point (receives SystemStatus copies)."""
        self.on_motion_flag(bool(status.motion_detected))

    def _start(self, now: datetime) -> TriggerEvent:
        event = TriggerEvent(
            id=generate_event_id(now, prefix="trigger_"),
            timestamp=now,
            type=TriggerType.MOTION_START,
            status=TriggerStatus.ACTIVE,
            sensor_location=self._sensor_location,
        )
        self._triggers.insert(0, event)
        self._open_start = now
        self._last_trigger_time = now
        logger.info(f"Motion trigger started at {self._sensor_location}")
        return event

    def _end(self, now: datetime) -> TriggerEvent:
        elapsed = (now - self._open_start).total_seconds()
        duration = max(0, round_half_up(elapsed))
        event = TriggerEvent(
            id=generate_event_id(now, prefix="trigger_end_"),
            timestamp=now,
            type=TriggerType.MOTION_END,
            status=TriggerStatus.RESOLVED,
            sensor_location=self._sensor_location,
            duration=duration,
        )
        self._triggers.insert(0, event)
        for trigger in self._triggers:
            if trigger.type == TriggerType.MOTION_START and trigger.status == TriggerStatus.ACTIVE:
                trigger.duration = duration
                trigger.status = TriggerStatus.RESOLVED
                break
        self._open_start = None
        logger.info(f"Motion trigger ended after {duration}s")
        return event

    def get_triggers(self) -> list[TriggerEvent]:
        """Copies of the trigger history, newest first."""
        with self._lock:
            return [t.copy() for t in self._triggers]

    def get_stats(self) -> TriggerStats:
        """Stats as of the last mutation, recounted once the local date has moved on."""
        with self._lock:
            now = self._clock()
            if now.astimezone().date() != self._stats_day:
                self._refresh_stats(now)
            return self._stats

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._open_start is not None
