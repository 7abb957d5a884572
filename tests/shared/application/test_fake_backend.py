"""Tests for the server rules the in-memory backend mirrors."""

from decimal import Decimal

import pytest
from shared.backend import get_backend, reset_backend
from shared.backend.fake_adapter import FakeBackend, derive_order_status
from shared.config import Settings
from shared.errors import ConflictError, RejectedError, TransientNetworkError
from shared.schemas import SelectedVariant


@pytest.fixture
def stocked(backend, make_product):
    backend.seed_product(make_product("p-1", vendor_id="v-1", vendor_name="Bếp Hà Nội", base_price="50000"))
    backend.seed_product(make_product("p-2", vendor_id="v-2", vendor_name="Bếp Huế", name="Bún bò", base_price="45000"))
    backend.seed_address(
        recipient_name="Lan",
        recipient_phone="0901234567",
        address_line="12 Hàng Bạc",
        ward="Hàng Bạc",
        district="Hoàn Kiếm",
        city="Hà Nội",
    )
    return backend


class TestDeriveOrderStatus:
    @pytest.mark.parametrize(
        "statuses, expected",
        [
            (["DELIVERED", "DELIVERED"], "COMPLETED"),
            (["CANCELLED", "CANCELLED"], "CANCELLED"),
            (["PICKED_UP", "PENDING"], "DELIVERING"),
            (["READY", "COOKING"], "READY"),
            (["COOKING", "PENDING"], "PREPARING"),
            (["PENDING", "CANCELLED"], "CONFIRMED"),
        ],
    )
    def test_status(self, statuses, expected):
        assert derive_order_status(statuses) == expected


class TestCheckout:
    def test_splits_by_vendor(self, stocked):
        stocked.add_cart_item("p-1", 2, [])
        stocked.add_cart_item("p-2", 1, [])

        order = stocked.create_order("1", "COD")

        assert [s.vendor_id for s in order.sub_orders] == ["v-1", "v-2"]
        assert [s.subtotal for s in order.sub_orders] == [Decimal("100000"), Decimal("45000")]
        assert order.total_amount == Decimal("145000")
        assert stocked.cart_items == []

    def test_captured_adjustments_priced(self, stocked):
        large = SelectedVariant(variant_id="l", group_name="Size", variant_name="Lớn", price_adjustment=Decimal("10000"))
        item = stocked.add_cart_item("p-1", 3, [large])
        assert item.item_price == Decimal("60000")
        assert item.subtotal == Decimal("180000")

    def test_empty_cart_rejected(self, stocked):
        with pytest.raises(RejectedError):
            stocked.create_order("1", "COD")

    def test_foreign_address_rejected(self, stocked):
        stocked.add_cart_item("p-1", 1, [])
        with pytest.raises(RejectedError):
            stocked.create_order("99", "COD")


class TestSubOrderStatus:
    def test_terminal_sub_order_conflicts(self, stocked):
        stocked.add_cart_item("p-1", 1, [])
        order = stocked.create_order("1", "COD")
        sub_order_id = order.sub_orders[0].id
        stocked.set_server_status(sub_order_id, "CANCELLED")

        with pytest.raises(ConflictError) as exc_info:
            stocked.update_sub_order_status(sub_order_id, "COOKING")

        assert exc_info.value.current_status == "CANCELLED"

    def test_parent_status_follows_sub_orders(self, stocked):
        stocked.add_cart_item("p-1", 1, [])
        order = stocked.create_order("1", "COD")

        stocked.update_sub_order_status(order.sub_orders[0].id, "COOKING")

        assert stocked.get_order(order.id).status == "PREPARING"


class TestFailureInjection:
    def test_fail_next_once(self, backend):
        backend.fail_next("list_orders", TransientNetworkError("timeout"))

        with pytest.raises(TransientNetworkError):
            backend.list_orders()
        assert backend.list_orders() == []
        assert len(backend.calls_to("list_orders")) == 2


class TestRegistry:
    def test_fake_selected_by_settings(self):
        assert isinstance(get_backend(settings=Settings(backend="fake")), FakeBackend)

    def test_http_needs_a_session(self):
        with pytest.raises(ValueError):
            get_backend(settings=Settings(backend="http"))

    def test_unknown_adapter(self):
        with pytest.raises(ValueError):
            get_backend(settings=Settings(backend="carrier-pigeon"))

    def test_reset(self):
        first = get_backend(settings=Settings(backend="fake"))
        reset_backend()
        assert get_backend(settings=Settings(backend="fake")) is not first
