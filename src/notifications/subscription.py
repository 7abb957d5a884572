"""Live notification subscription manager.

Keeps at most one subscription per authenticated identity for the whole
process. Starting again for the same identity is a no-op; starting for a
different identity tears the previous subscription down first; `stop()` (on
logout) tears it down.

Topics:
    customers  /topic/customer/{user_id}/order-updates  → OrderStatusUpdate
    vendors    /topic/vendor/{vendor_id}/orders          → NewOrderAlert
"""

from collections.abc import Callable

import pydantic
import structlog

from notifications.stream.port import NotificationStreamPort
from shared.schemas import NewOrderAlert, OrderStatusUpdate
from shared.session import Session

logger = structlog.get_logger(__name__)


def topic_for(session: Session) -> str:
    if session.is_vendor:
        return f"/topic/vendor/{session.vendor_id}/orders"
    return f"/topic/customer/{session.user_id}/order-updates"


class SubscriptionManager:
    def __init__(self, stream: NotificationStreamPort):
        self.stream = stream
        self.identity: tuple[str, str] | None = None
        self.topic: str | None = None
        self._subscription_id: str | None = None

    @property
    def active(self) -> bool:
        return self._subscription_id is not None

    def start(
        self,
        session: Session,
        on_status_update: Callable[[OrderStatusUpdate], None] | None = None,
        on_new_order: Callable[[NewOrderAlert], None] | None = None,
    ) -> bool:
        """Subscribe for `session`'s identity. Returns False when already subscribed for it."""
        if self.active and self.identity == session.identity:
            return False
        if self.active:
            self.stop()

        topic = topic_for(session)
        if session.is_vendor:
            handler = self._handler(NewOrderAlert, on_new_order)
        else:
            handler = self._handler(OrderStatusUpdate, on_status_update)

        self._subscription_id = self.stream.subscribe(topic, handler, token=session.token)
        self.identity = session.identity
        self.topic = topic
        logger.info("Subscribed to live updates", topic=topic)
        return True

    def stop(self) -> None:
        if self._subscription_id is None:
            return
        self.stream.unsubscribe(self._subscription_id)
        logger.info("Unsubscribed from live updates", topic=self.topic)
        self._subscription_id = None
        self.identity = None
        self.topic = None

    def _handler(self, model, callback):
        def handle(payload: dict) -> None:
            try:
                message = model.model_validate(payload)
            except pydantic.ValidationError as exc:
                logger.warning("Dropped malformed notification", topic=self.topic, errors=exc.error_count())
                return
            logger.info(
                "Notification received",
                topic=self.topic,
                sub_order_id=message.sub_order_id,
                message=message.message,
            )
            if callback is not None:
                callback(message)

        return handle
