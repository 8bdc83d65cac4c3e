"""Motion event, system status, and trigger models plus time helpers."""

import math
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NotRequired, TypedDict

# Injectable time source; every duration and freshness computation goes through one.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def to_iso(dt: datetime | None) -> str | None:
    """ISO 8601 UTC with millisecond precision and a Z suffix (same shape the device and store use)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: Any) -> datetime | None:
    """Parse an ISO 8601 string into an aware datetime; None if missing or malformed."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def round_half_up(value: float) -> int:
    """Round to nearest int with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def generate_event_id(now: datetime, prefix: str = "") -> str:
    """Time-derived unique id: epoch milliseconds plus a short random suffix."""
    ms = int(now.timestamp() * 1000)
    return f"{prefix}{ms}_{uuid.uuid4().hex[:8]}"


class MotionEventType(Enum):
    """Closed classification of alarm messages."""
    MOTION_DETECTED = "motion_detected"
    MOTION_CLEARED = "motion_cleared"


@dataclass(frozen=True, slots=True)
class MotionEvent:
    """One classified alarm message. Frozen so buffer snapshots can share instances."""
    id: str
    message: str
    timestamp: datetime
    type: MotionEventType
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message,
            "timestamp": to_iso(self.timestamp),
            "type": self.type.value,
            "created_at": to_iso(self.created_at),
        }


# Wire name -> (attribute name, accepted types). Every other metadata key goes to extra.
STATUS_FIELDS: dict[str, tuple[str, tuple[type, ...]]] = {
    "isOnline": ("is_online", (bool,)),
    "motionDetected": ("motion_detected", (bool,)),
    "systemArmed": ("system_armed", (bool,)),
    "esp32IP": ("esp32_ip", (str,)),
}


@dataclass(slots=True)
class SystemStatus:
    """Current device status snapshot. Updated by merge, never replaced wholesale."""
    is_online: bool = False
    last_heartbeat: datetime | None = None
    motion_detected: bool = False
    system_armed: bool = True
    esp32_ip: str | None = None

    # Metadata keys carried through verbatim (lastAction, actionTimestamp, sensor_location, ...)
    extra: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "SystemStatus":
        return SystemStatus(
            is_online=self.is_online,
            last_heartbeat=self.last_heartbeat,
            motion_detected=self.motion_detected,
            system_armed=self.system_armed,
            esp32_ip=self.esp32_ip,
            extra=dict(self.extra),
        )

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out.update({
            "isOnline": self.is_online,
            "lastHeartbeat": to_iso(self.last_heartbeat) or "",
            "motionDetected": self.motion_detected,
            "systemArmed": self.system_armed,
        })
        if self.esp32_ip is not None:
            out["esp32IP"] = self.esp32_ip
        return out


class TriggerType(Enum):
    MOTION_START = "motion_start"
    MOTION_END = "motion_end"


class TriggerStatus(Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


@dataclass(slots=True)
class TriggerEvent:
    """One edge of a trigger session. A motion_start is resolved in place when its end arrives."""
    id: str
    timestamp: datetime
    type: TriggerType
    status: TriggerStatus
    sensor_location: str
    duration: int | None = None  # seconds; set on motion_end and on the resolved start

    def copy(self) -> "TriggerEvent":
        return TriggerEvent(
            id=self.id,
            timestamp=self.timestamp,
            type=self.type,
            status=self.status,
            sensor_location=self.sensor_location,
            duration=self.duration,
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "timestamp": to_iso(self.timestamp),
            "type": self.type.value,
            "sensor_location": self.sensor_location,
            "status": self.status.value,
        }
        if self.duration is not None:
            out["duration"] = self.duration
        return out


@dataclass(frozen=True, slots=True)
class TriggerStats:
    """Aggregate over the full trigger history, recomputed after every mutation."""
    total_triggers: int = 0
    today_triggers: int = 0
    average_duration: float = 0.0
    longest_duration: int = 0
    current_status: str = "idle"
    last_trigger_time: datetime | None = None

    def to_dict(self) -> dict:
        out = {
            "totalTriggers": self.total_triggers,
            "todayTriggers": self.today_triggers,
            "averageDuration": self.average_duration,
            "longestDuration": self.longest_duration,
            "currentStatus": self.current_status,
        }
        if self.last_trigger_time is not None:
            out["lastTriggerTime"] = to_iso(self.last_trigger_time)
        return out


class NotificationRequest(TypedDict):
    """Outbound notification shape accepted by the notification sink."""

    type: str
    message: str
    priority: str
    timestamp: str
    id: NotRequired[str]
