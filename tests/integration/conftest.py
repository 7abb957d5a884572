"""Fixtures for end-to-end storefront tests.

A `Storefront` is wired to the in-memory backend and notification stream so
that customer and vendor flows can run side by side in one process.
"""

import pytest


@pytest.fixture(autouse=True)
def _ctx(fulfillment_bed):
    with fulfillment_bed.domain_context():
        yield


@pytest.fixture
def stream():
    from notifications.stream.fake_stream import FakeNotificationStream

    return FakeNotificationStream()


@pytest.fixture
def storefront(backend, stream):
    from shared.config import Settings
    from storefront import Storefront

    settings = Settings(backend="fake", cooking_countdown_seconds=3, countdown_tick_seconds=0.01)
    return Storefront(settings=settings, backend=backend, stream=stream)


@pytest.fixture
def stocked(backend, make_product):
    """Two kitchens and one delivery address on the fake server."""
    backend.seed_product(
        make_product(
            "p-1",
            vendor_id="v-1",
            vendor_name="Bếp Hà Nội",
            name="Phở bò",
            base_price="50000",
            groups=[
                {
                    "id": "g-size",
                    "name": "Size",
                    "required": True,
                    "variants": [("s-m", "Vừa", 0), ("s-l", "Lớn", 10000)],
                }
            ],
        )
    )
    backend.seed_product(
        make_product("p-2", vendor_id="v-2", vendor_name="Bếp Huế", name="Bún bò Huế", base_price="45000")
    )
    backend.seed_address(
        id="a-1",
        recipient_name="Lan",
        recipient_phone="0901234567",
        address_line="12 Hàng Bạc",
        ward="Hàng Bạc",
        district="Hoàn Kiếm",
        city="Hà Nội",
    )
    return backend
