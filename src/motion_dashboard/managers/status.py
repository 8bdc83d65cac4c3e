"""Thread-safe owner of the single SystemStatus snapshot."""

import logging
import threading
from datetime import timedelta
from typing import Any

from motion_dashboard.constants import HEARTBEAT_FRESHNESS_MS
from motion_dashboard.models import STATUS_FIELDS, Clock, SystemStatus, utc_now

logger = logging.getLogger('motion-dashboard')

# Metadata keys that never land in extra: the heartbeat is always stamped locally.
_STAMPED_KEYS = frozenset({"lastHeartbeat"})


class StatusAggregator:
    """Merges metadata pushes and alarm liveness into one status snapshot."""

    def __init__(self, clock: Clock = utc_now,
                 freshness_ms: int = HEARTBEAT_FRESHNESS_MS):
        self._clock = clock
        self._freshness = timedelta(milliseconds=freshness_ms)
        self._status = SystemStatus()
        self._has_metadata = False
        self._lock = threading.RLock()

    def merge_metadata(self, patch: dict[str, Any]) -> SystemStatus:
        """Shallow-overwrite present fields, then stamp the heartbeat.

        Any metadata push counts as a liveness signal, regardless of content.
        Known fields with the wrong type are skipped; unknown keys are kept in extra.
        """
        with self._lock:
            for key, value in patch.items():
                if key in _STAMPED_KEYS:
                    continue
                field_def = STATUS_FIELDS.get(key)
                if field_def is None:
                    self._status.extra[key] = value
                    continue
                attr, accepted = field_def
                if value is None and attr == "esp32_ip":
                    self._status.esp32_ip = None
                elif isinstance(value, accepted):
                    setattr(self._status, attr, value)
                else:
                    logger.debug(f"Ignoring metadata field {key}={value!r} (unexpected type)")
            self._status.last_heartbeat = self._clock()
            self._has_metadata = True
            return self._status.copy()

    def record_alarm(self, motion_detected: bool | None) -> SystemStatus:
        """Apply an alarm push: mark online and stamp the heartbeat.

        motion_detected is None for unrecognized messages, which leave the
        motion flag untouched.
        """
        with self._lock:
            self._status.is_online = True
            self._status.last_heartbeat = self._clock()
            if motion_detected is not None:
                self._status.motion_detected = motion_detected
            return self._status.copy()

    def is_fresh(self) -> bool:
        """True iff the last heartbeat is younger than the freshness window."""
        with self._lock:
            last = self._status.last_heartbeat
        if last is None:
            return False
        return self._clock() - last < self._freshness

    @property
    def system_armed(self) -> bool:
        with self._lock:
            return self._status.system_armed

    @property
    def has_metadata(self) -> bool:
        """True once any metadata push has been merged."""
        with self._lock:
            return self._has_metadata

    def snapshot(self) -> SystemStatus:
        """Defensive copy of the current status."""
        with self._lock:
            return self._status.copy()

    def to_dict(self) -> dict:
        """Wire shape with the derived isFresh flag."""
        with self._lock:
            out = self._status.to_dict()
        out["isFresh"] = self.is_fresh()
        return out
