"""Product browsing — paginated listings and product detail."""

import structlog

from catalogue.filters import ProductFilters
from shared.backend.port import BackendPort
from shared.schemas import Product, ProductPage

logger = structlog.get_logger(__name__)


class ProductBrowser:
    def __init__(self, backend: BackendPort):
        self.backend = backend

    def list_products(self, filters: ProductFilters | None = None) -> ProductPage:
        filters = filters or ProductFilters()
        page = self.backend.list_products(filters.to_params())
        logger.debug("Products listed", page=page.number, returned=len(page.content), total=page.total_elements)
        return page

    def get_product(self, product_id) -> Product:
        return self.backend.get_product(str(product_id))

    def has_more(self, page: ProductPage) -> bool:
        return page.number + 1 < page.total_pages
