"""Manager modules for the event buffer, status snapshot, subscribers, triggers, and motion log."""

from motion_dashboard.managers.events import MotionEventBuffer
from motion_dashboard.managers.motion_log import MotionLogStore
from motion_dashboard.managers.status import StatusAggregator
from motion_dashboard.managers.subscribers import SubscriberRegistry
from motion_dashboard.managers.triggers import TriggerDurationTracker

__all__ = [
    "MotionEventBuffer",
    "MotionLogStore",
    "StatusAggregator",
    "SubscriberRegistry",
    "TriggerDurationTracker",
]
