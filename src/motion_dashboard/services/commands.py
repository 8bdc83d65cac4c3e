"""Arm/disarm command intake.

Writes the new armed state to the system key on the realtime store. The
aggregator picks it up through its normal system subscription, so the store
stays the single source of truth for systemArmed.
"""

import logging
from typing import Any

from motion_dashboard.constants import ACTION_ARM, VALID_ACTIONS
from motion_dashboard.models import Clock, to_iso, utc_now
from motion_dashboard.services.store.base import StoreError

logger = logging.getLogger("motion-dashboard")


class CommandError(Exception):
    """Base class for arm/disarm failures surfaced to the caller."""


class InvalidCommandError(CommandError):
    """Action is not 'arm' or 'disarm'."""


class CommandTransportError(CommandError):
    """The store read/write for the command failed."""


class SystemCommandService:
    """Executes arm/disarm against the store's system key."""

    def __init__(self, store: Any, system_key: str, clock: Clock = utc_now) -> None:
        self._store = store
        self._system_key = system_key
        self._clock = clock

    def execute(self, action: Any) -> dict:
        """Apply action and return the response body for the API.

        Raises:
            InvalidCommandError: action is not one of VALID_ACTIONS.
            CommandTransportError: the store rejected the read or write.
        """
        if not isinstance(action, str) or action not in VALID_ACTIONS:
            raise InvalidCommandError("Invalid action. Use 'arm' or 'disarm'")

        armed = action == ACTION_ARM
        stamp = to_iso(self._clock())
        try:
            current = self._store.get(self._system_key)
            update = dict(current) if isinstance(current, dict) else {}
            update.update({
                "systemArmed": armed,
                "lastUpdate": stamp,
                "lastAction": action,
                "actionTimestamp": stamp,
            })
            self._store.set(self._system_key, update)
        except StoreError as e:
            logger.error("System %s failed: %s", action, e)
            raise CommandTransportError(f"Failed to {action} system") from e

        logger.info("System %sed successfully", action)
        return {
            "success": True,
            "message": f"System {action}ed successfully",
            "systemArmed": armed,
            "timestamp": stamp,
        }
