"""Cart pricing — line prices from variant selections and per-vendor cart totals.

All arithmetic is `Decimal`. A line's unit price is the product's base price
plus the price adjustment of every selected variant; its total is the unit
price times the quantity. Cart totals are plain sums of line subtotals.
"""

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict

from shared.money import ZERO
from shared.schemas import CartItem, Product, SelectedVariant, Variant


class LinePrice(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_price: Decimal
    quantity: int
    line_total: Decimal
    adjustments: Decimal = ZERO


class VendorGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    vendor_id: str
    vendor_name: str
    items: tuple[CartItem, ...]
    subtotal: Decimal
    item_count: int


class CartSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    groups: tuple[VendorGroup, ...] = ()
    total_amount: Decimal = ZERO
    total_items: int = 0

    def group(self, vendor_id) -> VendorGroup | None:
        return next((g for g in self.groups if g.vendor_id == str(vendor_id)), None)

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0


def _as_list(choice) -> list[Variant]:
    if choice is None:
        return []
    if isinstance(choice, Variant):
        return [choice]
    return list(choice)


def _resolve_selections(product: Product, selections: Mapping) -> list[tuple]:
    """Check selections against the product's groups.

    Returns (group, variant) pairs in the product's group order.
    """
    errors: list[str] = []

    unknown = [str(g) for g in selections if product.group(g) is None]
    if unknown:
        errors.append(f"Unknown option group(s): {', '.join(sorted(unknown))}")

    missing = [g.name for g in product.variant_groups if g.is_required and not _as_list(selections.get(g.id))]
    if missing:
        errors.append(f"Please choose: {', '.join(missing)}")

    resolved = []
    for group in product.variant_groups:
        chosen = _as_list(selections.get(group.id))
        if len(chosen) > 1 and not group.is_multi_select:
            errors.append(f"Only one choice allowed for {group.name}")
            continue
        seen = set()
        for variant in chosen:
            if group.variant(variant.id) is None:
                errors.append(f"{variant.name} is not an option of {group.name}")
                continue
            if variant.id in seen:
                continue
            seen.add(variant.id)
            # Adjustment comes from the catalogue, not from the caller's copy
            resolved.append((group, group.variant(variant.id)))

    if errors:
        raise ValidationError({"selections": errors})
    return resolved


def compute_line_price(product: Product, selections: Mapping | None, quantity: int) -> LinePrice:
    """Price one cart line.

    Args:
        product: Catalogue product being ordered.
        selections: Mapping of variant group id to the chosen `Variant`, or to
            a sequence of variants for a multi-select group.
        quantity: Number of units, at least 1.

    Raises:
        ValidationError: quantity not a whole number or below 1, a required group without a choice
            (named in the message), or a choice that does not fit the product.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError({"quantity": ["Quantity must be a whole number"]})
    if quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    resolved = _resolve_selections(product, selections or {})
    adjustments = sum((variant.price_adjustment for _, variant in resolved), ZERO)
    unit_price = product.base_price + adjustments

    return LinePrice(
        unit_price=unit_price,
        quantity=quantity,
        line_total=unit_price * quantity,
        adjustments=adjustments,
    )


def selected_variants(product: Product, selections: Mapping | None) -> list[SelectedVariant]:
    """Snapshot the chosen variants (names and adjustments) for an add-to-cart request."""
    return [
        SelectedVariant(
            variant_id=variant.id,
            group_id=group.id,
            group_name=group.name,
            variant_name=variant.name,
            price_adjustment=variant.price_adjustment,
        )
        for group, variant in _resolve_selections(product, selections or {})
    ]


def line_item_price(item: CartItem) -> Decimal:
    return item.product.base_price + sum((v.price_adjustment for v in item.selected_variants), ZERO)


def line_subtotal(item: CartItem) -> Decimal:
    return line_item_price(item) * item.quantity


def aggregate_cart(line_items: Iterable[CartItem]) -> CartSummary:
    """Group cart lines by vendor (first-seen order) and total them.

    Pure: the same multiset of lines always yields the same per-vendor
    subtotals and cart totals, whatever order they arrive in.
    """
    buckets: dict[str, list[CartItem]] = {}
    for item in line_items:
        buckets.setdefault(str(item.vendor_id), []).append(item)

    groups = tuple(_vendor_group(vendor_id, items) for vendor_id, items in buckets.items())

    return CartSummary(
        groups=groups,
        total_amount=sum((g.subtotal for g in groups), ZERO),
        total_items=sum(g.item_count for g in groups),
    )


def _vendor_group(vendor_id: str, items: Sequence[CartItem]) -> VendorGroup:
    vendor_name = next((i.vendor_name or i.product.vendor_name for i in items if i.vendor_name or i.product.vendor_name), "")
    return VendorGroup(
        vendor_id=vendor_id,
        vendor_name=vendor_name,
        items=tuple(items),
        subtotal=sum((line_subtotal(i) for i in items), ZERO),
        item_count=sum(i.quantity for i in items),
    )
