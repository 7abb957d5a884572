from catalogue.filters import ProductFilters
from shared.schemas import Category, Region


class TestProductFilters:
    def test_defaults(self):
        assert ProductFilters().to_params() == {"page": 0, "size": 12}

    def test_all_filters(self):
        params = ProductFilters(
            region=Region.CENTRAL,
            category=Category.DESSERT,
            vendor_id="v-1",
            keyword="  chè ",
            featured=True,
            page=2,
            size=24,
            sort_by="basePrice",
            descending=False,
        ).to_params()

        assert params == {
            "page": 2,
            "size": 24,
            "region": "CENTRAL",
            "category": "DESSERT",
            "vendorId": "v-1",
            "search": "chè",
            "featured": True,
            "sortBy": "basePrice",
            "sortDirection": "ASC",
        }

    def test_unknown_sort_field_ignored(self):
        assert "sortBy" not in ProductFilters(sort_by="password").to_params()

    def test_next_page(self):
        assert ProductFilters(page=1).next_page().page == 2

