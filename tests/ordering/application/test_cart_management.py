"""Tests for CartManager against the in-memory backend."""

from decimal import Decimal

import pytest
from ordering.cart.management import CartManager, CartOutcome
from protean.exceptions import InvalidOperationError, ValidationError
from shared.errors import RejectedError, TransientNetworkError

SIZE_GROUP = {
    "id": "g-size",
    "name": "Size",
    "required": True,
    "variants": [("s", "S", 0), ("m", "M", 5000)],
}


@pytest.fixture
def manager(backend, reporter):
    return CartManager(backend, reporter)


@pytest.fixture
def pho(backend, make_product):
    return backend.seed_product(make_product(product_id="p-pho", vendor_id="v-a", base_price="50000"))


@pytest.fixture
def bun(backend, make_product):
    return backend.seed_product(
        make_product(
            product_id="p-bun",
            vendor_id="v-b",
            vendor_name="Bếp Huế",
            name="Bún bò Huế",
            base_price="30000",
            groups=[SIZE_GROUP],
        )
    )


class TestAddItem:
    def test_add_item_refreshes_cart(self, manager, backend, pho):
        manager.add_item(pho, {}, 2)

        assert len(manager.cart.items) == 1
        assert manager.cart.total_amount == Decimal("100000")
        assert backend.calls_to("fetch_cart")

    def test_add_item_sends_variant_snapshot(self, manager, backend, bun):
        manager.add_item(bun, {"g-size": bun.group("g-size").variant("m")}, 1)

        _, product_id, quantity, selections = backend.calls_to("add_cart_item")[0]
        assert product_id == "p-bun"
        assert quantity == 1
        assert selections[0].variant_name == "M"
        assert manager.cart.items[0].item_price == Decimal("35000")

    def test_missing_required_selection_makes_no_call(self, manager, backend, bun):
        with pytest.raises(ValidationError) as exc_info:
            manager.add_item(bun, {}, 1)

        assert "Size" in exc_info.value.messages["selections"][0]
        assert backend.calls == []

    def test_unavailable_product_rejected_locally(self, manager, backend, make_product):
        product = backend.seed_product(make_product(available=False))

        with pytest.raises(ValidationError) as exc_info:
            manager.add_item(product, {}, 1)

        assert "product" in exc_info.value.messages
        assert backend.calls == []

    def test_success_notice(self, manager, reporter, pho):
        manager.add_item(pho, {}, 1)
        assert reporter.messages("success") == ["Added Phở bò to cart"]


class TestSummary:
    def test_summary_groups_by_vendor(self, manager, pho, bun):
        manager.add_item(pho, {}, 2)
        manager.add_item(bun, {"g-size": bun.group("g-size").variant("m")}, 1)

        summary = manager.summary
        assert [g.vendor_id for g in summary.groups] == ["v-a", "v-b"]
        assert summary.total_amount == Decimal("135000")
        assert summary.total_items == 3


class TestUpdateQuantity:
    def test_update_quantity(self, manager, backend, pho):
        manager.add_item(pho, {}, 1)
        item_id = manager.cart.items[0].id

        update = manager.update_quantity(item_id, 4)

        assert update.outcome == CartOutcome.UPDATED
        assert backend.calls_to("update_cart_item") == [("update_cart_item", item_id, 4)]
        assert manager.cart.items[0].quantity == 4
        assert manager.cart.total_amount == Decimal("200000")

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_below_one_requests_removal(self, manager, backend, pho, quantity):
        manager.add_item(pho, {}, 1)
        item_id = manager.cart.items[0].id

        update = manager.update_quantity(item_id, quantity)

        assert update.outcome == CartOutcome.REMOVAL_REQUESTED
        assert backend.calls_to("remove_cart_item") == [("remove_cart_item", item_id)]
        assert backend.calls_to("update_cart_item") == []
        assert manager.cart.items == ()

    def test_unknown_item(self, manager):
        with pytest.raises(ValidationError) as exc_info:
            manager.update_quantity("missing", 2)
        assert "item_id" in exc_info.value.messages

    def test_rejection_keeps_prior_cart(self, manager, backend, reporter, pho):
        manager.add_item(pho, {}, 1)
        before = manager.cart
        backend.fail_next("update_cart_item", RejectedError("Product is not available", 400))

        with pytest.raises(RejectedError):
            manager.update_quantity(before.items[0].id, 3)

        assert manager.cart is before
        assert "Product is not available" in reporter.messages("error")

    def test_network_failure_keeps_prior_cart(self, manager, backend, pho):
        manager.add_item(pho, {}, 2)
        before = manager.cart
        backend.fail_next("remove_cart_item", TransientNetworkError("Could not reach the server"))

        with pytest.raises(TransientNetworkError):
            manager.update_quantity(before.items[0].id, 0)

        assert manager.cart is before
        assert manager.cart.items[0].quantity == 2

    def test_failed_call_releases_guard(self, manager, backend, pho):
        manager.add_item(pho, {}, 1)
        item_id = manager.cart.items[0].id
        backend.fail_next("update_cart_item", TransientNetworkError("timeout"))

        with pytest.raises(TransientNetworkError):
            manager.update_quantity(item_id, 2)

        assert manager.update_quantity(item_id, 2).outcome == CartOutcome.UPDATED


class TestIncrementDecrement:
    def test_increment(self, manager, pho):
        manager.add_item(pho, {}, 1)
        update = manager.increment(manager.cart.items[0].id)
        assert update.quantity == 2
        assert manager.cart.items[0].quantity == 2

    def test_decrement_to_zero_removes(self, manager, backend, pho):
        manager.add_item(pho, {}, 1)
        update = manager.decrement(manager.cart.items[0].id)
        assert update.outcome == CartOutcome.REMOVAL_REQUESTED
        assert manager.cart.items == ()


class TestRemoveAndClear:
    def test_remove_item(self, manager, pho, bun):
        manager.add_item(pho, {}, 1)
        manager.add_item(bun, {"g-size": bun.group("g-size").variant("s")}, 1)

        manager.remove_item(manager.cart.items[0].id)

        assert [i.product.id for i in manager.cart.items] == ["p-bun"]

    def test_clear(self, manager, backend, pho, bun):
        manager.add_item(pho, {}, 1)
        manager.add_item(bun, {"g-size": bun.group("g-size").variant("s")}, 1)

        manager.clear()

        assert manager.cart.items == ()
        assert manager.summary.is_empty


class TestInFlightGuard:
    def test_reentrant_mutation_refused(self, manager, backend, pho):
        manager.add_item(pho, {}, 1)
        item_id = manager.cart.items[0].id
        reentrant = []
        original = backend.update_cart_item

        def update_and_retap(line_item_id, quantity):
            try:
                manager.update_quantity(line_item_id, quantity + 1)
            except InvalidOperationError as exc:
                reentrant.append(exc)
            return original(line_item_id, quantity)

        backend.update_cart_item = update_and_retap

        manager.update_quantity(item_id, 2)

        assert len(reentrant) == 1
        assert len(backend.calls_to("update_cart_item")) == 1
        assert manager.cart.items[0].quantity == 2
