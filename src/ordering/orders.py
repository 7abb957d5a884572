"""Customer order history — cached server copies, refreshed on push updates."""

import structlog

from shared.backend.port import BackendPort
from shared.schemas import OrderSchema, OrderStatusUpdate

logger = structlog.get_logger(__name__)


class OrderHistory:
    def __init__(self, backend: BackendPort):
        self.backend = backend
        self._orders: dict[str, OrderSchema] = {}

    @property
    def orders(self) -> list[OrderSchema]:
        """Cached orders, newest first when the server supplies timestamps."""
        return sorted(
            self._orders.values(),
            key=lambda o: (o.created_at is not None, o.created_at, o.id),
            reverse=True,
        )

    def list_orders(self) -> list[OrderSchema]:
        self._orders = {o.id: o for o in self.backend.list_orders()}
        return self.orders

    def get_order(self, order_id) -> OrderSchema:
        order = self.backend.get_order(str(order_id))
        self._orders[order.id] = order
        return order

    def cached(self, order_id) -> OrderSchema | None:
        return self._orders.get(str(order_id))

    def find_by_sub_order(self, sub_order_id) -> OrderSchema | None:
        for order in self._orders.values():
            if any(s.id == str(sub_order_id) for s in order.sub_orders):
                return order
        return None

    def find_by_number(self, order_number: str) -> OrderSchema | None:
        return next((o for o in self._orders.values() if o.order_number == order_number), None)

    def apply_update(self, update: OrderStatusUpdate) -> OrderSchema | None:
        """React to a pushed sub-order status change by re-fetching its order.

        Pushed payloads are hints; the re-fetched order is the source of truth.
        Returns None when the order is not in the local history yet.
        """
        order = None
        if update.sub_order_id:
            order = self.find_by_sub_order(update.sub_order_id)
        if order is None and update.order_number:
            order = self.find_by_number(update.order_number)
        if order is None:
            logger.info("Status update for unknown order", order_number=update.order_number)
            return None

        logger.info(
            "Order status changed",
            order_number=order.order_number,
            sub_order_id=update.sub_order_id,
            new_status=update.new_status,
        )
        return self.get_order(order.id)
