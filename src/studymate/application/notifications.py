"""Notifier implementations used by the CLI, the server and tests."""

import logging

from studymate.domain.session.ports import Notification, Notifier

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "error": logging.WARNING,
}


class LoggingNotifier(Notifier):
    """Writes notifications to the ``studymate.notifications`` logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("studymate.notifications")

    def notify(self, notification: Notification) -> None:
        self.logger.log(_LEVELS[notification.level], notification.message)


class CollectingNotifier(Notifier):
    """
    Buffers notifications until drained.

    The HTTP server returns the buffered notifications with each response.
    """

    def __init__(self, forward_to: Notifier | None = None):
        self._pending: list[Notification] = []
        self._forward_to = forward_to

    def notify(self, notification: Notification) -> None:
        self._pending.append(notification)
        if self._forward_to is not None:
            self._forward_to.notify(notification)

    @property
    def pending(self) -> list[Notification]:
        return list(self._pending)

    def drain(self) -> list[Notification]:
        drained, self._pending = self._pending, []
        return drained
