"""Order aggregate — the vendor's view of a customer order.

An order holds one sub-order per vendor. Vendors move their own sub-orders
through the pipeline; the parent order's status is derived by the server from
its sub-orders and is only ever copied from a server response.

Sub-order state machine:
    PENDING → COOKING → PICKED_UP → DELIVERING → DELIVERED
    COOKING → READY → DELIVERING   (manual "ready for pickup")
    {PENDING, COOKING} → CANCELLED
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, String, Text

from fulfillment.domain import fulfillment
from shared.errors import InvalidTransition
from shared.money import to_money
from shared.schemas import OrderSchema, SubOrderSchema


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SubOrderStatus(Enum):
    PENDING = "PENDING"
    COOKING = "COOKING"
    READY = "READY"
    PICKED_UP = "PICKED_UP"
    DELIVERING = "DELIVERING"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERING = "DELIVERING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


_VALID_TRANSITIONS = {
    SubOrderStatus.PENDING: {SubOrderStatus.COOKING, SubOrderStatus.CANCELLED},
    SubOrderStatus.COOKING: {SubOrderStatus.PICKED_UP, SubOrderStatus.READY, SubOrderStatus.CANCELLED},
    SubOrderStatus.READY: {SubOrderStatus.DELIVERING},
    SubOrderStatus.PICKED_UP: {SubOrderStatus.DELIVERING},
    SubOrderStatus.DELIVERING: {SubOrderStatus.DELIVERED},
    SubOrderStatus.DELIVERED: set(),  # terminal
    SubOrderStatus.CANCELLED: set(),  # terminal
}

TERMINAL_SUB_ORDER_STATUSES = frozenset({SubOrderStatus.DELIVERED, SubOrderStatus.CANCELLED})
TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def _sub_status(value) -> SubOrderStatus:
    if isinstance(value, SubOrderStatus):
        return value
    try:
        return SubOrderStatus(value)
    except ValueError:
        raise InvalidTransition({"status": [f"Unknown sub-order status: {value}"]}) from None


def allowed_transitions(current) -> frozenset[SubOrderStatus]:
    return frozenset(_VALID_TRANSITIONS[_sub_status(current)])


def assert_can_transition(current, target) -> None:
    """Raise `InvalidTransition` unless `current → target` is a legal step."""
    current, target = _sub_status(current), _sub_status(target)
    if target not in _VALID_TRANSITIONS[current]:
        raise InvalidTransition({"status": [f"Cannot transition from {current.value} to {target.value}"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Order")
class SubOrder:
    """One vendor's share of an order."""

    sub_order_id = Identifier(required=True)
    sub_order_number = String(max_length=50)
    vendor_id = Identifier(required=True)
    vendor_name = String(max_length=255)
    status = String(
        max_length=20,
        choices=SubOrderStatus,
        default=SubOrderStatus.PENDING.value,
    )
    subtotal = String(max_length=32, default="0")  # Decimal as text
    items = Text()  # JSON snapshot of the order items
    updated_at = DateTime()

    @property
    def amount(self) -> Decimal:
        return to_money(self.subtotal)

    @property
    def is_terminal(self) -> bool:
        return SubOrderStatus(self.status) in TERMINAL_SUB_ORDER_STATUSES

    @property
    def item_snapshot(self) -> list[dict]:
        return json.loads(self.items) if self.items else []

    def can_transition_to(self, target) -> bool:
        return _sub_status(target) in _VALID_TRANSITIONS[SubOrderStatus(self.status)]


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Order:
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    customer_name = String(max_length=255)
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    total_amount = String(max_length=32, default="0")  # Decimal as text
    payment_method = String(max_length=50)
    delivery_name = String(max_length=255)
    delivery_phone = String(max_length=50)
    delivery_address = String(max_length=500)
    notes = Text()
    sub_orders = HasMany(SubOrder)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def from_schema(cls, schema: OrderSchema, vendor_id: str | None = None):
        """Build the aggregate from a server payload.

        When `vendor_id` is given only that vendor's sub-orders are kept, which
        is all a vendor is allowed to act on.
        """
        order = cls(
            order_id=schema.id,
            order_number=schema.order_number,
            customer_name=schema.customer_name or schema.delivery_name or "",
            status=schema.status,
            total_amount=str(schema.total_amount),
            payment_method=schema.payment_method,
            delivery_name=schema.delivery_name,
            delivery_phone=schema.delivery_phone,
            delivery_address=schema.delivery_address,
            notes=schema.notes,
            created_at=schema.created_at,
            updated_at=schema.updated_at,
        )
        for sub_order in schema.sub_orders:
            if vendor_id is not None and sub_order.vendor_id != str(vendor_id):
                continue
            order.add_sub_orders(_sub_order_from_schema(sub_order))
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def amount(self) -> Decimal:
        return to_money(self.total_amount)

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_ORDER_STATUSES

    def sub_order(self, sub_order_id) -> SubOrder | None:
        return next((s for s in (self.sub_orders or []) if str(s.sub_order_id) == str(sub_order_id)), None)

    def _require_sub_order(self, sub_order_id) -> SubOrder:
        sub_order = self.sub_order(sub_order_id)
        if sub_order is None:
            raise InvalidTransition({"sub_order_id": [f"Sub-order {sub_order_id} is not part of order {self.order_number}"]})
        return sub_order

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def assert_can_transition(self, sub_order_id, target) -> SubOrder:
        """Check a requested status change locally, before any backend call."""
        sub_order = self._require_sub_order(sub_order_id)
        assert_can_transition(sub_order.status, target)
        return sub_order

    def apply_sub_order_status(self, sub_order_id, status) -> SubOrder:
        """Record a status the server has confirmed. The server is the authority, so no checks."""
        sub_order = self._require_sub_order(sub_order_id)
        sub_order.status = _sub_status(status).value
        sub_order.updated_at = datetime.now(UTC)
        self.updated_at = sub_order.updated_at
        return sub_order


def _sub_order_from_schema(schema: SubOrderSchema) -> SubOrder:
    return SubOrder(
        sub_order_id=schema.id,
        sub_order_number=schema.sub_order_number,
        vendor_id=schema.vendor_id,
        vendor_name=schema.vendor_name,
        status=schema.status,
        subtotal=str(schema.subtotal),
        items=json.dumps([i.model_dump(mode="json") for i in schema.items]),
        updated_at=schema.updated_at,
    )
