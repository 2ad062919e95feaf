"""Notifier port: abstract interface for outbound delivery notifications.

Email, WhatsApp or SMS adapters implement this interface. Notifications are
advisory: nothing in the lifecycle waits on them or rolls back when they fail.
"""

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    """Abstract interface for notifier adapters."""

    @abstractmethod
    def notify(self, event_name: str, payload: dict) -> dict:
        """Send a notification about a delivery event.

        Returns:
            dict with keys: status ("sent" or "failed"), message_id, error (on failure)
        """
        ...
