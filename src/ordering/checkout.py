"""Checkout — turn the server-confirmed cart into an order.

The server splits the order into one sub-order per vendor in the cart; the
client only checks that there is something to order, somewhere to send it and
a known way to pay.
"""

import structlog
from protean.exceptions import ValidationError

from shared.backend.port import BackendPort
from shared.schemas import Cart, OrderSchema, PaymentMethod

logger = structlog.get_logger(__name__)

_PAYMENT_METHODS = {m.value for m in PaymentMethod}


def place_order(
    backend: BackendPort,
    cart: Cart,
    address_id: str | None,
    payment_method: str,
    notes: str | None = None,
) -> OrderSchema:
    errors: dict[str, list[str]] = {}
    if not cart.items:
        errors["cart"] = ["Cart is empty"]
    if not address_id:
        errors["address_id"] = ["Please choose a delivery address"]
    if payment_method not in _PAYMENT_METHODS:
        errors["payment_method"] = [f"Unknown payment method: {payment_method}"]
    if errors:
        raise ValidationError(errors)

    order = backend.create_order(str(address_id), payment_method, notes or None)
    logger.info(
        "Order placed",
        order_id=order.id,
        order_number=order.order_number,
        sub_orders=len(order.sub_orders),
        total_amount=str(order.total_amount),
    )
    return order
