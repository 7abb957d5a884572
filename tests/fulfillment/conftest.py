import pytest


@pytest.fixture(autouse=True)
def _ctx(fulfillment_bed):
    with fulfillment_bed.domain_context():
        yield


@pytest.fixture
def seed_order(backend):
    """Put an order on the fake server with one sub-order per given status.

    The first sub-order belongs to vendor `v-1`; pass `vendors` to spread
    sub-orders over several vendors.
    """
    from shared.backend.fake_adapter import derive_order_status
    from shared.schemas import OrderSchema, SubOrderSchema

    counter = {"order": 0, "sub": 0}

    def _seed(*statuses, vendors=None, order_status=None, subtotal="50000"):
        counter["order"] += 1
        order_id = f"o-{counter['order']}"
        vendors = vendors or ["v-1"] * len(statuses)
        sub_orders = []
        for index, (status, vendor_id) in enumerate(zip(statuses, vendors, strict=True), start=1):
            counter["sub"] += 1
            sub_orders.append(
                SubOrderSchema(
                    id=f"s-{counter['sub']}",
                    sub_order_number=f"ORD{counter['order']:05d}-{index}",
                    vendor_id=vendor_id,
                    vendor_name=f"Kitchen {vendor_id}",
                    subtotal=subtotal,
                    status=status,
                )
            )
        if order_status is None:
            untouched = all(s == "PENDING" for s in statuses)
            order_status = "PENDING" if untouched else derive_order_status(list(statuses))
        order = OrderSchema(
            id=order_id,
            order_number=f"ORD{counter['order']:05d}",
            customer_name="Lan",
            total_amount=str(len(statuses) * int(subtotal)),
            status=order_status,
            payment_method="COD",
            sub_orders=sub_orders,
        )
        backend.orders[order_id] = order
        return order

    return _seed


@pytest.fixture
def pipeline(backend, vendor_session, reporter):
    from fulfillment.order.pipeline import FulfillmentPipeline

    return FulfillmentPipeline(backend, vendor_session, reporter=reporter, countdown_ticks=30)
