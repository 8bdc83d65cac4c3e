"""Provider contract for alert delivery."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, NotRequired, TypedDict

if TYPE_CHECKING:
    from motion_dashboard.models import NotificationRequest


class NotificationResult(TypedDict):
    """Outcome of one delivery attempt, as listed in the notifications API response."""

    provider: str
    status: str  # success | failure | skipped
    message: NotRequired[str | None]
    payload: NotRequired[dict]


class BaseNotificationProvider(ABC):

    @abstractmethod
    def send(self, notification: "NotificationRequest") -> NotificationResult | None:
        """Deliver one {type, message, priority, timestamp} alert.

        Transport problems go into the returned result; None means skipped.
        """
        ...
