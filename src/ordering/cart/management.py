"""Cart management — server-confirmed cart with guarded mutations.

The client never edits quantities locally: every mutation is proxied to the
backend and followed by a re-fetch, so `CartManager.cart` is always the last
copy the server confirmed. A failed mutation leaves that copy untouched.
"""

from collections.abc import Mapping
from contextlib import contextmanager
from enum import Enum

import structlog
from protean.exceptions import InvalidOperationError, ValidationError
from pydantic import BaseModel, ConfigDict

from ordering.cart.pricing import CartSummary, aggregate_cart, compute_line_price, selected_variants
from shared.backend.port import BackendPort
from shared.errors import BackendError
from shared.reporting import Reporter
from shared.schemas import Cart, CartItem, Product

logger = structlog.get_logger(__name__)


class CartOutcome(Enum):
    UPDATED = "UPDATED"
    REMOVAL_REQUESTED = "REMOVAL_REQUESTED"


class CartUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: CartOutcome
    item_id: str
    quantity: int
    cart: Cart


class CartManager:
    def __init__(self, backend: BackendPort, reporter: Reporter | None = None):
        self.backend = backend
        self.reporter = reporter or Reporter()
        self.cart = Cart()
        self._in_flight: set[str] = set()

    @property
    def summary(self) -> CartSummary:
        return aggregate_cart(self.cart.items)

    @contextmanager
    def _guard(self, key: str):
        if key in self._in_flight:
            raise InvalidOperationError(f"Cart operation already in progress: {key}")
        self._in_flight.add(key)
        try:
            yield
        except BackendError as exc:
            logger.warning("Cart mutation rejected", key=key, error=str(exc))
            self.reporter.error(exc.message)
            raise
        finally:
            self._in_flight.discard(key)

    def refresh(self) -> Cart:
        self.cart = self.backend.fetch_cart()
        return self.cart

    def add_item(self, product: Product, selections: Mapping | None = None, quantity: int = 1) -> CartItem:
        """Add a product line with its variant selections.

        Selections and quantity are validated before anything is sent, so an
        incomplete choice never reaches the backend.
        """
        if not product.available:
            raise ValidationError({"product": [f"{product.name} is not available"]})
        compute_line_price(product, selections, quantity)

        with self._guard(f"add:{product.id}"):
            item = self.backend.add_cart_item(product.id, quantity, selected_variants(product, selections))
            self.refresh()

        logger.info("Cart item added", product_id=product.id, quantity=quantity)
        self.reporter.success(f"Added {product.name} to cart")
        return item

    def _existing_item(self, item_id) -> CartItem:
        item = self.cart.item(item_id)
        if item is None:
            raise ValidationError({"item_id": [f"Cart item {item_id} not found"]})
        return item

    def update_quantity(self, item_id, new_quantity: int) -> CartUpdate:
        """Set a line's quantity; anything below 1 removes the line instead."""
        item = self._existing_item(item_id)

        with self._guard(item.id):
            if new_quantity < 1:
                self.backend.remove_cart_item(item.id)
                outcome = CartOutcome.REMOVAL_REQUESTED
            else:
                self.backend.update_cart_item(item.id, new_quantity)
                outcome = CartOutcome.UPDATED
            self.refresh()

        logger.info("Cart item quantity changed", item_id=item.id, quantity=new_quantity, outcome=outcome.value)
        return CartUpdate(outcome=outcome, item_id=item.id, quantity=max(new_quantity, 0), cart=self.cart)

    def increment(self, item_id) -> CartUpdate:
        return self.update_quantity(item_id, self._existing_item(item_id).quantity + 1)

    def decrement(self, item_id) -> CartUpdate:
        return self.update_quantity(item_id, self._existing_item(item_id).quantity - 1)

    def remove_item(self, item_id) -> Cart:
        item = self._existing_item(item_id)
        with self._guard(item.id):
            self.backend.remove_cart_item(item.id)
            self.refresh()
        logger.info("Cart item removed", item_id=item.id)
        return self.cart

    def clear(self) -> Cart:
        with self._guard("cart"):
            self.backend.clear_cart()
            self.refresh()
        logger.info("Cart cleared")
        return self.cart
