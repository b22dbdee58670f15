"""Fake notifier — records notifications in memory for tests and development."""

from datetime import UTC, datetime

from orderflow.notifications.port import NotificationFailed, NotificationPort


class FakeNotifier(NotificationPort):
    """Notifier that keeps every message it was asked to send."""

    def __init__(self):
        self.sent = []
        self.should_succeed = True
        self.failure_reason = "Notifier unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notifier unavailable"):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _send(self, kind: str, **payload) -> None:
        if not self.should_succeed:
            raise NotificationFailed(self.failure_reason)
        self.sent.append({"kind": kind, "sent_at": datetime.now(UTC), **payload})

    def order_rejected(self, order_id: str, order_number: str, reason: str) -> None:
        self._send("order_rejected", order_id=order_id, order_number=order_number, reason=reason)

    def order_ready(self, order_id: str, order_number: str) -> None:
        self._send("order_ready", order_id=order_id, order_number=order_number)
