"""Pydantic wire schemas for the storefront backend.

These are external contracts (anti-corruption layer): camelCase on the wire,
snake_case in Python. Money fields are `Decimal`. Catalogue and cart payloads
are frozen because the client never mutates server state locally.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Region(Enum):
    NORTH = "NORTH"
    CENTRAL = "CENTRAL"
    SOUTH = "SOUTH"


class Category(Enum):
    MAIN_DISH = "MAIN_DISH"
    SIDE_DISH = "SIDE_DISH"
    DESSERT = "DESSERT"
    DRINK = "DRINK"
    SNACK = "SNACK"


class PaymentMethod(Enum):
    COD = "COD"
    BANK_TRANSFER = "BANK_TRANSFER"


class Role(Enum):
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FrozenWireModel(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True, frozen=True)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class Variant(FrozenWireModel):
    id: str
    name: str
    price_adjustment: Decimal = Decimal("0")


class VariantGroup(FrozenWireModel):
    id: str
    name: str
    is_multi_select: bool = False
    is_required: bool = False
    variants: tuple[Variant, ...] = ()

    def variant(self, variant_id) -> Variant | None:
        return next((v for v in self.variants if v.id == str(variant_id)), None)


class Product(FrozenWireModel):
    id: str
    vendor_id: str
    vendor_name: str = ""
    name: str
    description: str | None = None
    base_price: Decimal
    region: str | None = None
    category: str | None = None
    images: tuple[str, ...] = ()
    available: bool = True
    featured: bool = False
    sold_count: int = 0
    rating: float | None = None
    review_count: int = 0
    variant_groups: tuple[VariantGroup, ...] = ()

    def group(self, group_id) -> VariantGroup | None:
        return next((g for g in self.variant_groups if g.id == str(group_id)), None)


class ProductPage(FrozenWireModel):
    content: tuple[Product, ...] = ()
    total_pages: int = 0
    total_elements: int = 0
    number: int = 0
    size: int = 0


class CreateProductRequest(WireModel):
    name: str
    description: str | None = None
    base_price: Decimal
    region: str
    category: str
    images: list[str] = Field(default_factory=list)
    available: bool = True
    featured: bool = False


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class SelectedVariant(FrozenWireModel):
    variant_id: str
    group_id: str | None = None
    group_name: str
    variant_name: str
    price_adjustment: Decimal = Decimal("0")


class CartItemProduct(FrozenWireModel):
    id: str
    name: str
    base_price: Decimal
    images: tuple[str, ...] = ()
    vendor_name: str = ""


class CartItem(FrozenWireModel):
    id: str
    product: CartItemProduct
    quantity: int = Field(ge=1)
    selected_variants: tuple[SelectedVariant, ...] = ()
    item_price: Decimal | None = None
    subtotal: Decimal | None = None
    vendor_name: str = ""
    vendor_id: str


class Cart(FrozenWireModel):
    id: str | None = None
    items: tuple[CartItem, ...] = ()
    total_amount: Decimal = Decimal("0")
    total_items: int = 0

    def item(self, item_id) -> CartItem | None:
        return next((i for i in self.items if i.id == str(item_id)), None)


class AddToCartRequest(WireModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    selected_variants: list[SelectedVariant] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItem(WireModel):
    id: str
    product_name: str
    quantity: int
    price: Decimal
    subtotal: Decimal
    selected_variants: list[SelectedVariant] = Field(default_factory=list)
    product_image: str | None = None


class SubOrderSchema(WireModel):
    id: str
    sub_order_number: str
    vendor_id: str
    vendor_name: str = ""
    subtotal: Decimal = Decimal("0")
    status: str
    items: list[OrderItem] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderSchema(WireModel):
    id: str
    order_number: str
    customer_id: str | None = None
    customer_name: str | None = None
    total_amount: Decimal = Decimal("0")
    shipping_fee: Decimal = Decimal("0")
    status: str
    payment_method: str | None = None
    delivery_name: str | None = None
    delivery_phone: str | None = None
    delivery_address: str | None = None
    notes: str | None = None
    sub_orders: list[SubOrderSchema] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateOrderRequest(WireModel):
    address_id: str
    payment_method: str
    notes: str | None = None


class DailyRevenue(WireModel):
    date: str
    revenue: Decimal = Decimal("0")
    order_count: int = 0


class ProductSales(WireModel):
    product_name: str
    quantity: int = 0
    revenue: Decimal = Decimal("0")


class VendorStats(WireModel):
    total_revenue: Decimal | None = None
    total_orders: int | None = None
    pending_orders: int | None = None
    processing_orders: int | None = None
    completed_orders: int | None = None
    cancelled_orders: int | None = None
    total_products: int | None = None
    revenue_chart: list[DailyRevenue] = Field(default_factory=list)
    top_products: list[ProductSales] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------
class Address(WireModel):
    id: str
    recipient_name: str
    recipient_phone: str
    address_line: str
    ward: str
    district: str
    city: str
    full_address: str | None = None
    is_default: bool = False
    label: str | None = None


class AddressRequest(WireModel):
    recipient_name: str = ""
    recipient_phone: str = ""
    address_line: str = ""
    ward: str = ""
    district: str = ""
    city: str = ""
    is_default: bool = False
    label: str | None = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class AuthResponse(WireModel):
    token: str
    type: str = "Bearer"
    user_id: str
    email: str
    full_name: str = ""
    role: str
    vendor_id: str | None = None


# ---------------------------------------------------------------------------
# Push notifications
# ---------------------------------------------------------------------------
class OrderStatusUpdate(WireModel):
    """Pushed to a customer when one of their sub-orders changes status."""

    order_number: str | None = None
    sub_order_id: str | None = None
    sub_order_number: str | None = None
    vendor_name: str | None = None
    old_status: str | None = None
    new_status: str
    message: str = ""
    timestamp: datetime | None = None


class NewOrderAlert(WireModel):
    """Pushed to a vendor when a new sub-order lands in their queue."""

    order_number: str | None = None
    sub_order_id: str | None = None
    sub_order_number: str | None = None
    subtotal: Decimal | None = None
    item_count: int | None = None
    customer_name: str | None = None
    delivery_address: str | None = None
    message: str = ""
    timestamp: datetime | None = None
