"""Single-slot transient notifications."""

import logging
from typing import Optional

from .clock import Clock, TimerHandle
from .models import Notification, Severity

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 3.0


class NotificationScheduler:
    """
    Holds at most one visible notification.

    A new notification replaces the current one and rearms the expiry
    timer. The previous timer is cancelled, and expiry also checks
    identity, so an old timer can never clear a newer message.

    Usage:
        notifications = NotificationScheduler(clock)
        notifications.notify("Updated", Severity.SUCCESS)
        notifications.current  # -> Notification, until it expires
    """

    def __init__(self, clock: Clock, duration: float = DEFAULT_DURATION):
        self.clock = clock
        self.duration = duration
        self._current: Optional[Notification] = None
        self._timer: Optional[TimerHandle] = None

    @property
    def current(self) -> Optional[Notification]:
        return self._current

    def notify(self, message: str, severity: Severity = Severity.SUCCESS) -> Notification:
        """Show a message, replacing whatever is visible."""
        self._cancel_timer()

        notification = Notification(
            message=message,
            severity=severity,
            expires_at=self.clock.time() + self.duration,
        )
        self._current = notification
        self._timer = self.clock.call_later(self.duration, lambda: self._expire(notification))

        logger.debug(f"Notification ({severity.value}): {message}")
        return notification

    def clear(self) -> None:
        """Empty the slot and drop the pending timer."""
        self._cancel_timer()
        self._current = None

    def _expire(self, notification: Notification) -> None:
        if self._current is not notification:
            return
        self._current = None
        self._timer = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
