"""HTTP backend adapter — talks to the storefront REST API with `requests`.

Response bodies are decoded with `parse_float=Decimal` so that prices never
pass through binary floating point.
"""

from decimal import Decimal

import requests
import structlog

from shared.backend.port import BackendPort
from shared.config import Settings, get_settings
from shared.errors import BackendError, ConflictError, RejectedError, TransientNetworkError
from shared.schemas import (
    Address,
    AddressRequest,
    AddToCartRequest,
    Cart,
    CartItem,
    CreateOrderRequest,
    CreateProductRequest,
    OrderSchema,
    Product,
    ProductPage,
    SelectedVariant,
    SubOrderSchema,
    VendorStats,
)
from shared.session import Session

logger = structlog.get_logger(__name__)


def _decode(response: requests.Response):
    if not response.content:
        return None
    try:
        return response.json(parse_float=Decimal)
    except ValueError:
        return {"message": response.text}


def raise_for_response(response: requests.Response) -> None:
    """Translate an HTTP error status into the client error taxonomy."""
    if response.status_code < 400:
        return

    body = _decode(response)
    payload = body if isinstance(body, dict) else {}
    message = payload.get("message") or response.reason or "Request failed"

    if response.status_code == 409:
        raise ConflictError(message, response.status_code, payload)
    if response.status_code >= 500:
        raise TransientNetworkError(message, response.status_code, payload)
    raise RejectedError(message, response.status_code, payload)


def send(
    http: requests.Session,
    method: str,
    url: str,
    timeout: float,
    json: dict | None = None,
    params: dict | None = None,
    headers: dict | None = None,
):
    """Issue one request and return the decoded body. No retries."""
    try:
        response = http.request(method, url, json=json, params=params, headers=headers, timeout=timeout)
    except (requests.ConnectionError, requests.Timeout) as exc:
        logger.warning("Backend unreachable", method=method, url=url, error=str(exc))
        raise TransientNetworkError(f"Could not reach the server: {exc}") from exc
    except requests.RequestException as exc:
        raise BackendError(str(exc)) from exc

    try:
        raise_for_response(response)
    except BackendError as exc:
        logger.info(
            "Backend rejected request",
            method=method,
            url=url,
            status_code=exc.status_code,
            error=exc.message,
        )
        raise

    return _decode(response)


class HttpBackend(BackendPort):
    """Backend adapter for the storefront REST API (`/api`)."""

    def __init__(self, session: Session, settings: Settings | None = None, http: requests.Session | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.http = http or requests.Session()
        self.http.headers.update(
            {
                "Authorization": session.authorization,
                "Accept": "application/json",
            }
        )

    def _call(self, method: str, path: str, json: dict | None = None, params: dict | None = None):
        url = f"{self.settings.api_url}{path}"
        return send(self.http, method, url, self.settings.request_timeout, json=json, params=params)

    def close(self) -> None:
        self.http.close()

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def fetch_cart(self) -> Cart:
        return Cart.model_validate(self._call("GET", "/cart") or {})

    def add_cart_item(self, product_id: str, quantity: int, selections: list[SelectedVariant]) -> CartItem:
        body = AddToCartRequest(product_id=product_id, quantity=quantity, selected_variants=list(selections))
        return CartItem.model_validate(self._call("POST", "/cart/items", json=body.to_wire()))

    def update_cart_item(self, item_id: str, quantity: int) -> CartItem:
        return CartItem.model_validate(self._call("PATCH", f"/cart/items/{item_id}", json={"quantity": quantity}))

    def remove_cart_item(self, item_id: str) -> None:
        self._call("DELETE", f"/cart/items/{item_id}")

    def clear_cart(self) -> None:
        self._call("DELETE", "/cart")

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def create_order(self, address_id: str, payment_method: str, notes: str | None = None) -> OrderSchema:
        body = CreateOrderRequest(address_id=address_id, payment_method=payment_method, notes=notes)
        return OrderSchema.model_validate(self._call("POST", "/orders", json=body.to_wire()))

    def update_sub_order_status(self, sub_order_id: str, new_status: str) -> SubOrderSchema:
        data = self._call("PATCH", f"/orders/sub/{sub_order_id}/status", json={"status": new_status})
        return SubOrderSchema.model_validate(data)

    def list_orders(self) -> list[OrderSchema]:
        return [OrderSchema.model_validate(o) for o in self._call("GET", "/orders") or []]

    def get_order(self, order_id: str) -> OrderSchema:
        return OrderSchema.model_validate(self._call("GET", f"/orders/{order_id}"))

    # -------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------
    def list_products(self, params: dict | None = None) -> ProductPage:
        return ProductPage.model_validate(self._call("GET", "/products", params=params) or {})

    def get_product(self, product_id: str) -> Product:
        return Product.model_validate(self._call("GET", f"/products/{product_id}"))

    def create_product(self, request: CreateProductRequest) -> Product:
        return Product.model_validate(self._call("POST", "/products", json=request.to_wire()))

    def delete_product(self, product_id: str) -> None:
        self._call("DELETE", f"/products/{product_id}")

    def fetch_vendor_stats(self) -> VendorStats:
        return VendorStats.model_validate(self._call("GET", "/vendors/me/stats") or {})

    # -------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------
    def list_addresses(self) -> list[Address]:
        return [Address.model_validate(a) for a in self._call("GET", "/addresses") or []]

    def create_address(self, request: AddressRequest) -> Address:
        return Address.model_validate(self._call("POST", "/addresses", json=request.to_wire()))

    def set_default_address(self, address_id: str) -> Address:
        return Address.model_validate(self._call("PATCH", f"/addresses/{address_id}/set-default"))

    def delete_address(self, address_id: str) -> None:
        self._call("DELETE", f"/addresses/{address_id}")
