"""Notification stream port — abstract interface for server-pushed events.

The broker delivers JSON messages on topics. Adapters handle the transport;
the subscription manager only deals with topics and decoded payloads.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable


class NotificationStreamPort(ABC):
    """Abstract interface for live notification adapters."""

    @abstractmethod
    def subscribe(self, topic: str, handler: Callable[[dict], None], token: str | None = None) -> str:
        """Start delivering messages published on `topic` to `handler`.

        Returns:
            subscription id, used to unsubscribe
        """
        ...

    @abstractmethod
    def unsubscribe(self, subscription_id: str) -> None:
        """Stop a subscription. Unknown ids are ignored."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Drop every subscription and release the connection."""
        ...
