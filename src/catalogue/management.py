"""Vendor product management — create and remove the vendor's own products."""

import structlog
from protean.exceptions import ValidationError

from shared.backend.port import BackendPort
from shared.money import ZERO
from shared.schemas import Category, CreateProductRequest, Product, Region
from shared.session import Session

logger = structlog.get_logger(__name__)

_REGIONS = {r.value for r in Region}
_CATEGORIES = {c.value for c in Category}


def validate_product(request: CreateProductRequest) -> None:
    errors: dict[str, list[str]] = {}
    if not request.name or not request.name.strip():
        errors["name"] = ["Product name is required"]
    elif len(request.name) > 200:
        errors["name"] = ["Product name must be at most 200 characters"]
    if request.base_price is None or request.base_price <= ZERO:
        errors["base_price"] = ["Base price must be greater than zero"]
    if request.region not in _REGIONS:
        errors["region"] = [f"Unknown region: {request.region}"]
    if request.category not in _CATEGORIES:
        errors["category"] = [f"Unknown category: {request.category}"]
    if errors:
        raise ValidationError(errors)


class VendorCatalog:
    def __init__(self, backend: BackendPort, session: Session):
        if not session.is_vendor:
            raise ValidationError({"session": ["Only vendors can manage products"]})
        self.backend = backend
        self.session = session

    def list_products(self, page: int = 0, size: int = 50) -> list[Product]:
        result = self.backend.list_products({"vendorId": self.session.vendor_id, "page": page, "size": size})
        return list(result.content)

    def create_product(self, request: CreateProductRequest) -> Product:
        validate_product(request)
        product = self.backend.create_product(request)
        logger.info("Product created", product_id=product.id, vendor_id=self.session.vendor_id)
        return product

    def delete_product(self, product_id) -> None:
        self.backend.delete_product(str(product_id))
        logger.info("Product deleted", product_id=str(product_id), vendor_id=self.session.vendor_id)
