"""Tests for the customer's order history."""

import pytest
from ordering.cart.management import CartManager
from ordering.checkout import place_order
from ordering.orders import OrderHistory
from shared.schemas import OrderStatusUpdate


@pytest.fixture
def placed_order(backend, make_product):
    backend.seed_product(make_product(product_id="p-a", vendor_id="v-a"))
    address = backend.seed_address(
        recipient_name="Lan",
        recipient_phone="0901234567",
        address_line="1 Nguyễn Huệ",
        ward="Bến Nghé",
        district="Quận 1",
        city="TP.HCM",
    )
    manager = CartManager(backend)
    manager.add_item(backend.products["p-a"], {}, 1)
    return place_order(backend, manager.cart, address.id, "COD")


class TestOrderHistory:
    def test_list_orders(self, backend, placed_order):
        history = OrderHistory(backend)
        orders = history.list_orders()
        assert [o.id for o in orders] == [placed_order.id]
        assert history.cached(placed_order.id) is not None

    def test_status_update_refetches_order(self, backend, placed_order):
        history = OrderHistory(backend)
        history.list_orders()
        sub_order = placed_order.sub_orders[0]
        backend.set_server_status(sub_order.id, "COOKING")

        refreshed = history.apply_update(
            OrderStatusUpdate(sub_order_id=sub_order.id, new_status="COOKING", message="Đang nấu")
        )

        assert refreshed.sub_orders[0].status == "COOKING"
        assert refreshed.status == "PREPARING"
        assert backend.calls_to("get_order") == [("get_order", placed_order.id)]

    def test_update_for_unknown_order_is_ignored(self, backend):
        history = OrderHistory(backend)
        assert history.apply_update(OrderStatusUpdate(sub_order_id="42", new_status="COOKING")) is None
        assert backend.calls_to("get_order") == []
