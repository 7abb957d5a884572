import os
from decimal import Decimal
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Tests always run against the in-memory backend unless a test builds an
    HTTP adapter explicitly.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["ENVIRONMENT"] = "test"
    os.environ["STOREFRONT_BACKEND"] = "fake"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically reset process-wide singletons after every test"""
    yield

    from notifications.stream import reset_stream
    from shared.backend import reset_backend
    from shared.config import reset_settings

    reset_backend()
    reset_stream()
    reset_settings()


@pytest.fixture(scope="session")
def fulfillment_bed():
    from fulfillment.domain import fulfillment

    bed = DomainFixture(fulfillment)
    bed.setup()
    yield bed
    bed.teardown()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture
def backend():
    from shared.backend.fake_adapter import FakeBackend

    return FakeBackend()


@pytest.fixture
def reporter():
    from shared.reporting import Reporter

    return Reporter()


@pytest.fixture
def make_product():
    """Build a catalogue product; `groups` is a list of dicts with a `variants` list of (id, name, adjustment)."""
    from shared.schemas import Product, Variant, VariantGroup

    def _make(
        product_id="p-1",
        vendor_id="v-1",
        vendor_name="Bếp Hà Nội",
        name="Phở bò",
        base_price="50000",
        available=True,
        groups=(),
    ):
        variant_groups = tuple(
            VariantGroup(
                id=g["id"],
                name=g["name"],
                is_required=g.get("required", False),
                is_multi_select=g.get("multi", False),
                variants=tuple(
                    Variant(id=vid, name=vname, price_adjustment=Decimal(str(adj))) for vid, vname, adj in g["variants"]
                ),
            )
            for g in groups
        )
        return Product(
            id=product_id,
            vendor_id=vendor_id,
            vendor_name=vendor_name,
            name=name,
            base_price=Decimal(str(base_price)),
            region="NORTH",
            category="MAIN_DISH",
            available=available,
            variant_groups=variant_groups,
        )

    return _make


@pytest.fixture
def customer_session():
    from shared.session import Session

    return Session(token="customer-token", user_id="7", email="lan@example.com", full_name="Lan", role="CUSTOMER")


@pytest.fixture
def vendor_session():
    from shared.session import Session

    return Session(
        token="vendor-token",
        user_id="3",
        email="kitchen@example.com",
        full_name="Bếp Hà Nội",
        role="VENDOR",
        vendor_id="v-1",
    )
