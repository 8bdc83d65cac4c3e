"""Thread-safe persisted motion log behind GET/POST /api/motion.

A thin list/insert store: records live in motion_log.json under the application
storage path, newest first. Writes are atomic (temp file + os.replace) and all
file I/O is serialized by one lock so concurrent Flask request threads and the
scheduler's prune job do not corrupt the file.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import timedelta

from motion_dashboard.constants import (
    DEFAULT_MOTION_LOG_LIMIT,
    DEFAULT_MOTION_LOG_MAX_ENTRIES,
)
from motion_dashboard.models import Clock, generate_event_id, parse_iso, to_iso, utc_now

logger = logging.getLogger("motion-dashboard")

MOTION_LOG_FILENAME = "motion_log.json"


class MotionLogStore:
    """Insert/list store for device-reported motion records."""

    def __init__(
        self,
        storage_path: str,
        max_entries: int = DEFAULT_MOTION_LOG_MAX_ENTRIES,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize with the application storage root.

        Args:
            storage_path: Directory under which motion_log.json will be created
                (config STORAGE_PATH).
            max_entries: Oldest records beyond this count are dropped on insert.
            clock: Time source for record timestamps and pruning.
        """
        self._storage_path = os.path.realpath(os.path.abspath(storage_path))
        self._file_path = os.path.join(self._storage_path, MOTION_LOG_FILENAME)
        self._max_entries = max(1, int(max_entries))
        self._clock = clock
        self._lock = threading.Lock()

    def insert(self, sensor_location: str) -> dict:
        """Append a record for sensor_location and return it.

        Raises:
            ValueError: sensor_location is empty.
            OSError: the log file could not be written.
        """
        if not isinstance(sensor_location, str) or not sensor_location.strip():
            raise ValueError("sensor_location is required")
        now = self._clock()
        ts = to_iso(now)
        record = {
            "id": generate_event_id(now, prefix="motion_"),
            "sensor_location": sensor_location.strip(),
            "timestamp": ts,
            "created_at": ts,
        }
        with self._lock:
            records = self._read()
            records.insert(0, record)
            del records[self._max_entries:]
            self._write(records)
        logger.debug("Motion log insert: %s", record["sensor_location"])
        return record

    def list_recent(self, limit: int = DEFAULT_MOTION_LOG_LIMIT) -> list[dict]:
        """Return up to limit records, newest first."""
        limit = max(0, int(limit))
        with self._lock:
            return self._read()[:limit]

    def prune(self, retention_days: int) -> int:
        """Drop records older than retention_days. Returns the number removed."""
        cutoff = self._clock() - timedelta(days=retention_days)
        with self._lock:
            records = self._read()
            kept = []
            for r in records:
                ts = parse_iso(r.get("timestamp"))
                if ts is None or ts >= cutoff:
                    kept.append(r)
            removed = len(records) - len(kept)
            if removed:
                self._write(kept)
        if removed:
            logger.info("Pruned %d motion log entr%s older than %d days",
                        removed, "y" if removed == 1 else "ies", retention_days)
        return removed

    def _read(self) -> list[dict]:
        """Read and parse the JSON file; empty list if missing or invalid."""
        if not os.path.isfile(self._file_path):
            return []
        try:
            with open(self._file_path, encoding="utf-8") as f:
                out = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read motion log %s: %s", self._file_path, e)
            return []
        if not isinstance(out, list):
            return []
        return [r for r in out if isinstance(r, dict)]

    def _write(self, records: list[dict]) -> None:
        """Write records as JSON atomically; creates parent dir if needed."""
        os.makedirs(self._storage_path, exist_ok=True)
        tmp_fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=self._storage_path,
            delete=False,
            suffix=".tmp",
            encoding="utf-8",
        )
        tmp_path = tmp_fd.name
        try:
            json.dump(records, tmp_fd, indent=2, ensure_ascii=False)
            tmp_fd.close()
            os.replace(tmp_path, self._file_path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
