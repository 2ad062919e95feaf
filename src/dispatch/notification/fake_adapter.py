"""Fake notifier: records notifications in memory for tests and development."""

import threading
from uuid import uuid4

from dispatch.notification.port import NotifierPort


class FakeNotifier(NotifierPort):
    """Fake notifier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.should_raise = False
        self.failure_reason = "Notification service unavailable"
        self.sent: list[dict] = []
        self._lock = threading.Lock()

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Notification service unavailable",
        should_raise: bool = False,
    ):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.should_raise = should_raise

    def notify(self, event_name: str, payload: dict) -> dict:
        if self.should_raise:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return {"status": "failed", "message_id": None, "error": self.failure_reason}

        message_id = f"msg-{uuid4().hex[:10]}"
        with self._lock:
            self.sent.append({"event": event_name, "payload": payload, "message_id": message_id})
        return {"status": "sent", "message_id": message_id}

    def events_sent(self) -> list[str]:
        with self._lock:
            return [entry["event"] for entry in self.sent]
