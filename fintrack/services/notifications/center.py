"""
Notification Collaborator

Accepts (title, message, severity) and holds the notification until the UI
renders or dismisses it. Fire-and-forget: callers never consume a result.
"""

from abc import ABC, abstractmethod

from fintrack.models.finance import Notification, NotificationSeverity


class NotifierInterface(ABC):
    """Anything that can show a transient message to the user."""

    @abstractmethod
    def notify(
        self,
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
    ) -> None:
        pass


class NotificationCenter(NotifierInterface):
    """
    Queue of pending notifications.

    The Streamlit page drains it on every render; tests inspect `pending`.
    """

    def __init__(self):
        self._pending: list[Notification] = []

    def notify(
        self,
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
    ) -> None:
        self._pending.append(
            Notification(title=title, message=message, severity=severity)
        )

    @property
    def pending(self) -> list[Notification]:
        return list(self._pending)

    def dismiss(self, notification_id: str) -> bool:
        before = len(self._pending)
        self._pending = [n for n in self._pending if n.id != notification_id]
        return len(self._pending) < before

    def drain(self) -> list[Notification]:
        """Return and clear all pending notifications."""
        drained, self._pending = self._pending, []
        return drained
