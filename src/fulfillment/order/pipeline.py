"""Sub-order status pipeline — vendor actions and the automatic pickup timer.

Every status change goes through `request_transition`:

1. the transition is checked against the local, server-confirmed status and
   rejected with `InvalidTransition` before anything is sent;
2. a second request for the same sub-order while one is in flight is refused
   with `InvalidOperationError`;
3. a manual change disarms any running countdown for that sub-order;
4. the backend is asked to make the change. On acceptance the local copy
   takes the server's status, `COOKING` arms a countdown and the parent order
   is re-fetched for its derived status. On rejection the local copy keeps
   (or, after a conflict, re-reads) the server's status, and a countdown that
   was disarmed is restored when the sub-order is still cooking.

`tick()` advances every countdown at once. Each expiry issues exactly one
`PICKED_UP` request; its outcome is reported and never retried.
"""

import threading
from contextlib import contextmanager

import structlog
from protean.exceptions import InvalidOperationError, ValidationError

from fulfillment.order.countdown import CountdownBoard
from fulfillment.order.order import Order, SubOrder, SubOrderStatus
from shared.backend.port import BackendPort
from shared.config import get_settings
from shared.errors import BackendError, ConflictError, InvalidTransition
from shared.reporting import Reporter
from shared.schemas import NewOrderAlert, OrderStatusUpdate
from shared.session import Session

logger = structlog.get_logger(__name__)


class FulfillmentPipeline:
    def __init__(
        self,
        backend: BackendPort,
        session: Session,
        reporter: Reporter | None = None,
        countdown_ticks: int | None = None,
        board: CountdownBoard | None = None,
    ):
        self.backend = backend
        self.session = session
        self.reporter = reporter or Reporter()
        self.countdown_ticks = countdown_ticks or get_settings().cooking_countdown_seconds
        self.board = board or CountdownBoard()
        self.orders: dict[str, Order] = {}
        self._in_flight: set[str] = set()
        self._guard_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------
    def load_orders(self) -> list[Order]:
        vendor_id = self.session.vendor_id
        self.orders = {}
        for schema in self.backend.list_orders():
            order = Order.from_schema(schema, vendor_id=vendor_id)
            if order.sub_orders:
                self.orders[str(order.order_id)] = order
        self._reconcile_countdowns()
        logger.info("Vendor orders loaded", vendor_id=vendor_id, orders=len(self.orders))
        return list(self.orders.values())

    def _refresh_order(self, order_id) -> Order:
        schema = self.backend.get_order(str(order_id))
        order = Order.from_schema(schema, vendor_id=self.session.vendor_id)
        self.orders[str(order.order_id)] = order
        self._reconcile_countdowns()
        return order

    def _reconcile_countdowns(self) -> None:
        """Drop countdowns whose sub-order is no longer cooking."""
        for key in list(self.board.active):
            sub_order = self.sub_order(key)
            if sub_order is None or sub_order.status != SubOrderStatus.COOKING.value:
                self.board.disarm(key)

    # -------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------
    def order_for(self, sub_order_id) -> Order | None:
        return next((o for o in self.orders.values() if o.sub_order(sub_order_id) is not None), None)

    def sub_order(self, sub_order_id) -> SubOrder | None:
        order = self.order_for(sub_order_id)
        return order.sub_order(sub_order_id) if order is not None else None

    def _require_order(self, sub_order_id) -> Order:
        order = self.order_for(sub_order_id)
        if order is None:
            raise InvalidTransition({"sub_order_id": [f"Sub-order {sub_order_id} is not loaded"]})
        return order

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    @contextmanager
    def _in_flight_guard(self, sub_order_id: str):
        # Automatic pickups run on a worker thread
        with self._guard_lock:
            if sub_order_id in self._in_flight:
                raise InvalidOperationError(f"A status change for sub-order {sub_order_id} is already in progress")
            self._in_flight.add(sub_order_id)
        try:
            yield
        finally:
            with self._guard_lock:
                self._in_flight.discard(sub_order_id)

    def request_transition(self, sub_order_id, target, automatic: bool = False) -> SubOrder:
        sub_order_id = str(sub_order_id)
        target = SubOrderStatus(target)
        order = self._require_order(sub_order_id)
        order.assert_can_transition(sub_order_id, target)

        with self._in_flight_guard(sub_order_id):
            # Automatic requests come from an expired countdown, already removed
            remaining = None if automatic else self.board.disarm(sub_order_id)

            try:
                response = self.backend.update_sub_order_status(sub_order_id, target.value)
            except ConflictError as exc:
                logger.warning(
                    "Status change conflicted",
                    sub_order_id=sub_order_id,
                    target=target.value,
                    server_status=exc.current_status,
                )
                self._after_rejection(order, sub_order_id, remaining)
                raise
            except BackendError as exc:
                logger.warning(
                    "Status change failed",
                    sub_order_id=sub_order_id,
                    target=target.value,
                    error=str(exc),
                )
                self._restore_countdown(sub_order_id, remaining)
                raise

            confirmed = SubOrderStatus(response.status) if response is not None and response.status else target
            order.apply_sub_order_status(sub_order_id, confirmed)
            if confirmed == SubOrderStatus.COOKING:
                self.board.arm(sub_order_id, self.countdown_ticks)

            logger.info(
                "Sub-order status changed",
                sub_order_id=sub_order_id,
                status=confirmed.value,
                automatic=automatic,
            )

            try:
                order = self._refresh_order(order.order_id)
            except BackendError as exc:
                logger.warning("Could not re-fetch order", order_id=str(order.order_id), error=str(exc))

        return order.sub_order(sub_order_id)

    def _after_rejection(self, order: Order, sub_order_id: str, remaining: int | None) -> None:
        try:
            self._refresh_order(order.order_id)
        except BackendError as exc:
            logger.warning("Could not re-fetch order", order_id=str(order.order_id), error=str(exc))
        self._restore_countdown(sub_order_id, remaining)

    def _restore_countdown(self, sub_order_id: str, remaining: int | None) -> None:
        sub_order = self.sub_order(sub_order_id)
        if remaining and sub_order is not None and sub_order.status == SubOrderStatus.COOKING.value:
            self.board.arm(sub_order_id, remaining)

    def _manual(self, sub_order_id, target: SubOrderStatus, success_message: str) -> SubOrder:
        try:
            sub_order = self.request_transition(sub_order_id, target)
        except BackendError as exc:
            self.reporter.error(exc.message or "Status update failed", sub_order_id=str(sub_order_id))
            raise
        self.reporter.success(success_message, sub_order_id=str(sub_order_id))
        return sub_order

    def confirm(self, sub_order_id) -> SubOrder:
        """Accept a pending sub-order and start cooking; arms the pickup countdown."""
        return self._manual(sub_order_id, SubOrderStatus.COOKING, "Order confirmed, cooking started")

    def cancel(self, sub_order_id) -> SubOrder:
        return self._manual(sub_order_id, SubOrderStatus.CANCELLED, "Order cancelled")

    def mark_ready(self, sub_order_id) -> SubOrder:
        return self._manual(sub_order_id, SubOrderStatus.READY, "Order ready for pickup")

    def dispatch(self, sub_order_id) -> SubOrder:
        return self._manual(sub_order_id, SubOrderStatus.DELIVERING, "Order out for delivery")

    def mark_delivered(self, sub_order_id) -> SubOrder:
        return self._manual(sub_order_id, SubOrderStatus.DELIVERED, "Order delivered")

    # -------------------------------------------------------------------
    # Clock
    # -------------------------------------------------------------------
    def advance(self) -> list[str]:
        """Advance all countdowns one tick; returns the expired ids without firing them."""
        return self.board.tick()

    def tick(self) -> list[str]:
        """Advance all countdowns one tick and fire the ones that expired."""
        expired = self.advance()
        for sub_order_id in expired:
            self.fire(sub_order_id)
        return expired

    def fire(self, sub_order_id: str) -> None:
        """Issue the automatic `PICKED_UP` request for an expired countdown."""
        order = self.order_for(sub_order_id)
        number = order.order_number if order is not None else sub_order_id
        try:
            self.request_transition(sub_order_id, SubOrderStatus.PICKED_UP, automatic=True)
        except (BackendError, ValidationError, InvalidOperationError) as exc:
            logger.warning("Automatic pickup failed", sub_order_id=sub_order_id, error=str(exc))
            self.reporter.error(f"Automatic update failed for order #{number}", sub_order_id=sub_order_id)
            return
        self.reporter.success(f"Order #{number} automatically moved to picked up", sub_order_id=sub_order_id)

    # -------------------------------------------------------------------
    # Live notifications
    # -------------------------------------------------------------------
    def apply_notification(self, notification: OrderStatusUpdate | NewOrderAlert) -> Order | None:
        """Bring the local view up to date after a pushed event.

        A known sub-order re-fetches its parent order; anything else reloads
        the vendor's order list.
        """
        order = self.order_for(notification.sub_order_id) if notification.sub_order_id else None
        if order is None:
            self.load_orders()
            return self.order_for(notification.sub_order_id) if notification.sub_order_id else None
        return self._refresh_order(order.order_id)

    def rebind(self, backend: BackendPort, session: Session) -> None:
        """Carry on with a refreshed session for the same vendor, keeping orders and countdowns."""
        if session.identity != self.session.identity:
            raise ValueError("A pipeline can only be rebound to the same vendor")
        self.backend = backend
        self.session = session

    def stop(self) -> None:
        self.board.clear()
