"""Fake backend adapter — in-memory storefront server for testing and development.

Mirrors the server-side rules the client depends on: prices are computed from
base price plus captured adjustments, checkout splits the cart into one
sub-order per vendor, and the parent order status is derived from its
sub-orders. Failures can be injected per operation.
"""

from collections import defaultdict, deque
from decimal import Decimal

from shared.backend.port import BackendPort
from shared.errors import BackendError, ConflictError, RejectedError
from shared.schemas import (
    Address,
    AddressRequest,
    Cart,
    CartItem,
    CartItemProduct,
    CreateProductRequest,
    OrderItem,
    OrderSchema,
    PaymentMethod,
    Product,
    ProductPage,
    SelectedVariant,
    SubOrderSchema,
    VendorStats,
)

_TERMINAL_SUB_STATUSES = {"DELIVERED", "CANCELLED"}


def derive_order_status(statuses: list[str]) -> str:
    """Aggregate order status the server derives from its sub-order statuses."""
    if statuses and all(s == "DELIVERED" for s in statuses):
        return "COMPLETED"
    if statuses and all(s == "CANCELLED" for s in statuses):
        return "CANCELLED"
    if any(s in ("PICKED_UP", "DELIVERING") for s in statuses):
        return "DELIVERING"
    if any(s == "READY" for s in statuses):
        return "READY"
    if any(s == "COOKING" for s in statuses):
        return "PREPARING"
    return "CONFIRMED"


class FakeBackend(BackendPort):
    """Backend adapter that keeps all server state in memory."""

    def __init__(self):
        self.products: dict[str, Product] = {}
        self.cart_items: list[CartItem] = []
        self.orders: dict[str, OrderSchema] = {}
        self.addresses: dict[str, Address] = {}
        self.calls: list[tuple] = []
        self._failures: dict[str, deque] = defaultdict(deque)
        self._ids = defaultdict(int)

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def fail_next(self, operation: str, error: BackendError, times: int = 1) -> None:
        """Make the next `times` calls of `operation` raise `error`."""
        for _ in range(times):
            self._failures[operation].append(error)

    def calls_to(self, operation: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == operation]

    def seed_product(self, product: Product) -> Product:
        self.products[product.id] = product
        return product

    def seed_address(self, **fields) -> Address:
        address_id = fields.pop("id", None) or self._next_id("address")
        is_default = fields.pop("is_default", not self.addresses)
        request = AddressRequest(is_default=is_default, **fields)
        return self._store_address(address_id, request)

    def set_server_status(self, sub_order_id: str, status: str) -> None:
        """Change a sub-order behind the client's back."""
        order, sub_order = self._find_sub_order(sub_order_id)
        self._replace_sub_order(order, sub_order.model_copy(update={"status": status}))

    def reset(self) -> None:
        self.__init__()

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if self._failures[operation]:
            raise self._failures[operation].popleft()

    def _next_id(self, kind: str) -> str:
        self._ids[kind] += 1
        return str(self._ids[kind])

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def fetch_cart(self) -> Cart:
        self._record("fetch_cart")
        return self._cart()

    def _cart(self) -> Cart:
        return Cart(
            id="cart-1",
            items=tuple(self.cart_items),
            total_amount=sum((i.subtotal for i in self.cart_items), Decimal("0")),
            total_items=sum(i.quantity for i in self.cart_items),
        )

    def add_cart_item(self, product_id: str, quantity: int, selections: list[SelectedVariant]) -> CartItem:
        self._record("add_cart_item", product_id, quantity, tuple(selections))
        product = self.products.get(str(product_id))
        if product is None:
            raise RejectedError("Product not found", 404)
        if not product.available:
            raise RejectedError("Product is not available", 400)
        if quantity < 1:
            raise RejectedError("Quantity must be at least 1", 400)

        item = self._price_item(
            item_id=self._next_id("cart_item"),
            product=product,
            quantity=quantity,
            selections=tuple(selections),
        )
        self.cart_items.append(item)
        return item

    def _price_item(self, item_id, product, quantity, selections) -> CartItem:
        item_price = product.base_price + sum((s.price_adjustment for s in selections), Decimal("0"))
        return CartItem(
            id=item_id,
            product=CartItemProduct(
                id=product.id,
                name=product.name,
                base_price=product.base_price,
                images=product.images,
                vendor_name=product.vendor_name,
            ),
            quantity=quantity,
            selected_variants=selections,
            item_price=item_price,
            subtotal=item_price * quantity,
            vendor_name=product.vendor_name,
            vendor_id=product.vendor_id,
        )

    def update_cart_item(self, item_id: str, quantity: int) -> CartItem:
        self._record("update_cart_item", item_id, quantity)
        index = self._cart_index(item_id)
        if quantity < 1:
            raise RejectedError("Quantity must be at least 1", 400)
        existing = self.cart_items[index]
        product = self.products.get(existing.product.id)
        if product is not None and not product.available:
            raise RejectedError("Product is not available", 400)
        updated = existing.model_copy(
            update={"quantity": quantity, "subtotal": existing.item_price * quantity},
        )
        self.cart_items[index] = updated
        return updated

    def remove_cart_item(self, item_id: str) -> None:
        self._record("remove_cart_item", item_id)
        del self.cart_items[self._cart_index(item_id)]

    def clear_cart(self) -> None:
        self._record("clear_cart")
        self.cart_items.clear()

    def _cart_index(self, item_id) -> int:
        for index, item in enumerate(self.cart_items):
            if item.id == str(item_id):
                return index
        raise RejectedError("Cart item not found", 404)

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def create_order(self, address_id: str, payment_method: str, notes: str | None = None) -> OrderSchema:
        self._record("create_order", address_id, payment_method, notes)
        if not self.cart_items:
            raise RejectedError("Cart is empty", 400)
        address = self.addresses.get(str(address_id))
        if address is None:
            raise RejectedError("Address does not belong to current user", 400)
        if payment_method not in {m.value for m in PaymentMethod}:
            raise RejectedError(f"Unknown payment method: {payment_method}", 400)

        order_id = self._next_id("order")
        order_number = f"ORD{int(order_id):05d}"

        by_vendor: dict[str, list[CartItem]] = {}
        for item in self.cart_items:
            by_vendor.setdefault(item.vendor_id, []).append(item)

        sub_orders = []
        for index, (vendor_id, items) in enumerate(by_vendor.items(), start=1):
            sub_orders.append(
                SubOrderSchema(
                    id=self._next_id("sub_order"),
                    sub_order_number=f"{order_number}-{index}",
                    vendor_id=vendor_id,
                    vendor_name=items[0].vendor_name,
                    subtotal=sum((i.subtotal for i in items), Decimal("0")),
                    status="PENDING",
                    items=[
                        OrderItem(
                            id=self._next_id("order_item"),
                            product_name=i.product.name,
                            quantity=i.quantity,
                            price=i.item_price,
                            subtotal=i.subtotal,
                            selected_variants=list(i.selected_variants),
                        )
                        for i in items
                    ],
                )
            )

        order = OrderSchema(
            id=order_id,
            order_number=order_number,
            customer_id="1",
            customer_name=address.recipient_name,
            total_amount=sum((s.subtotal for s in sub_orders), Decimal("0")),
            status="PENDING",
            payment_method=payment_method,
            delivery_name=address.recipient_name,
            delivery_phone=address.recipient_phone,
            delivery_address=address.full_address,
            notes=notes,
            sub_orders=sub_orders,
        )
        self.orders[order_id] = order
        self.cart_items.clear()
        return order

    def update_sub_order_status(self, sub_order_id: str, new_status: str) -> SubOrderSchema:
        self._record("update_sub_order_status", sub_order_id, new_status)
        order, sub_order = self._find_sub_order(sub_order_id)
        if sub_order.status in _TERMINAL_SUB_STATUSES or sub_order.status == new_status:
            raise ConflictError(
                f"Sub-order is already {sub_order.status}",
                409,
                {"currentStatus": sub_order.status},
            )
        updated = sub_order.model_copy(update={"status": new_status})
        self._replace_sub_order(order, updated)
        return updated

    def _find_sub_order(self, sub_order_id) -> tuple[OrderSchema, SubOrderSchema]:
        for order in self.orders.values():
            for sub_order in order.sub_orders:
                if sub_order.id == str(sub_order_id):
                    return order, sub_order
        raise RejectedError("Sub-order not found", 404)

    def _replace_sub_order(self, order: OrderSchema, sub_order: SubOrderSchema) -> None:
        sub_orders = [sub_order if s.id == sub_order.id else s for s in order.sub_orders]
        self.orders[order.id] = order.model_copy(
            update={
                "sub_orders": sub_orders,
                "status": derive_order_status([s.status for s in sub_orders]),
            }
        )

    def list_orders(self) -> list[OrderSchema]:
        self._record("list_orders")
        return list(self.orders.values())

    def get_order(self, order_id: str) -> OrderSchema:
        self._record("get_order", order_id)
        order = self.orders.get(str(order_id))
        if order is None:
            raise RejectedError("Order not found", 404)
        return order

    # -------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------
    def list_products(self, params: dict | None = None) -> ProductPage:
        self._record("list_products", dict(params or {}))
        params = params or {}
        products = list(self.products.values())

        if "vendorId" in params:
            products = [p for p in products if p.vendor_id == str(params["vendorId"])]
        if "region" in params:
            products = [p for p in products if p.region == params["region"]]
        if "category" in params:
            products = [p for p in products if p.category == params["category"]]
        if "available" in params:
            products = [p for p in products if p.available == params["available"]]
        if "featured" in params:
            products = [p for p in products if p.featured == params["featured"]]
        if "search" in params:
            keyword = params["search"].lower()
            products = [p for p in products if keyword in p.name.lower()]

        page = int(params.get("page", 0))
        size = int(params.get("size", 12))
        chunk = products[page * size : (page + 1) * size]
        return ProductPage(
            content=tuple(chunk),
            total_pages=(len(products) + size - 1) // size,
            total_elements=len(products),
            number=page,
            size=size,
        )

    def get_product(self, product_id: str) -> Product:
        self._record("get_product", product_id)
        product = self.products.get(str(product_id))
        if product is None:
            raise RejectedError("Product not found", 404)
        return product

    def create_product(self, request: CreateProductRequest) -> Product:
        self._record("create_product", request)
        product = Product(
            id=self._next_id("product"),
            vendor_id="1",
            vendor_name="Fake Kitchen",
            name=request.name,
            description=request.description,
            base_price=request.base_price,
            region=request.region,
            category=request.category,
            images=tuple(request.images),
            available=request.available,
            featured=request.featured,
        )
        self.products[product.id] = product
        return product

    def delete_product(self, product_id: str) -> None:
        self._record("delete_product", product_id)
        if self.products.pop(str(product_id), None) is None:
            raise RejectedError("Product not found", 404)

    def fetch_vendor_stats(self) -> VendorStats:
        self._record("fetch_vendor_stats")
        return VendorStats()

    # -------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------
    def list_addresses(self) -> list[Address]:
        self._record("list_addresses")
        return sorted(self.addresses.values(), key=lambda a: not a.is_default)

    def create_address(self, request: AddressRequest) -> Address:
        self._record("create_address", request)
        return self._store_address(self._next_id("address"), request)

    def _store_address(self, address_id: str, request: AddressRequest) -> Address:
        should_be_default = not self.addresses or request.is_default
        if should_be_default:
            self._unset_defaults()
        address = Address(
            id=address_id,
            recipient_name=request.recipient_name,
            recipient_phone=request.recipient_phone,
            address_line=request.address_line,
            ward=request.ward,
            district=request.district,
            city=request.city,
            full_address=", ".join([request.address_line, request.ward, request.district, request.city]),
            is_default=should_be_default,
            label=request.label,
        )
        self.addresses[address_id] = address
        return address

    def set_default_address(self, address_id: str) -> Address:
        self._record("set_default_address", address_id)
        address = self.addresses.get(str(address_id))
        if address is None:
            raise RejectedError("Address not found", 404)
        self._unset_defaults()
        address = address.model_copy(update={"is_default": True})
        self.addresses[address.id] = address
        return address

    def delete_address(self, address_id: str) -> None:
        self._record("delete_address", address_id)
        address = self.addresses.get(str(address_id))
        if address is None:
            raise RejectedError("Address not found", 404)
        if address.is_default and len(self.addresses) > 1:
            raise RejectedError("Cannot delete default address. Please set another address as default first.", 400)
        del self.addresses[address.id]

    def _unset_defaults(self) -> None:
        for key, existing in list(self.addresses.items()):
            if existing.is_default:
                self.addresses[key] = existing.model_copy(update={"is_default": False})
