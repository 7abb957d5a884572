"""Fake notification stream — in-memory broker for testing."""

from collections.abc import Callable
from uuid import uuid4

from notifications.stream.port import NotificationStreamPort


class FakeNotificationStream(NotificationStreamPort):
    """Stream adapter that records subscriptions and delivers published messages in-process."""

    def __init__(self):
        self.subscriptions: dict[str, tuple[str, Callable[[dict], None]]] = {}
        self.history: list[tuple[str, str]] = []  # (action, topic)
        self.closed = False

    def subscribe(self, topic: str, handler: Callable[[dict], None], token: str | None = None) -> str:
        subscription_id = f"sub-{uuid4().hex[:12]}"
        self.subscriptions[subscription_id] = (topic, handler)
        self.history.append(("subscribe", topic))
        self.closed = False
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> None:
        entry = self.subscriptions.pop(subscription_id, None)
        if entry is not None:
            self.history.append(("unsubscribe", entry[0]))

    def close(self) -> None:
        for subscription_id in list(self.subscriptions):
            self.unsubscribe(subscription_id)
        self.closed = True

    def publish(self, topic: str, payload: dict) -> int:
        """Deliver `payload` to every handler subscribed to `topic`; returns the delivery count."""
        handlers = [handler for t, handler in self.subscriptions.values() if t == topic]
        for handler in handlers:
            handler(payload)
        return len(handlers)

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.subscriptions.values()]

    def reset(self):
        """Forget all subscriptions and history (useful between tests)."""
        self.subscriptions.clear()
        self.history.clear()
        self.closed = False
