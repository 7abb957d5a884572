"""Backend port — abstract interface for the storefront REST API."""

from abc import ABC, abstractmethod

from shared.schemas import (
    Address,
    AddressRequest,
    Cart,
    CartItem,
    CreateProductRequest,
    OrderSchema,
    Product,
    ProductPage,
    SelectedVariant,
    SubOrderSchema,
    VendorStats,
)


class BackendPort(ABC):
    """Abstract interface for backend adapters.

    Every method either returns the server-confirmed result or raises a
    `shared.errors.BackendError` subclass.
    """

    # Cart
    @abstractmethod
    def fetch_cart(self) -> Cart: ...

    @abstractmethod
    def add_cart_item(self, product_id: str, quantity: int, selections: list[SelectedVariant]) -> CartItem: ...

    @abstractmethod
    def update_cart_item(self, item_id: str, quantity: int) -> CartItem: ...

    @abstractmethod
    def remove_cart_item(self, item_id: str) -> None: ...

    @abstractmethod
    def clear_cart(self) -> None: ...

    # Orders
    @abstractmethod
    def create_order(self, address_id: str, payment_method: str, notes: str | None = None) -> OrderSchema: ...

    @abstractmethod
    def update_sub_order_status(self, sub_order_id: str, new_status: str) -> SubOrderSchema:
        """Change a sub-order's status.

        Raises `ConflictError` when the server's current status does not allow it.
        """
        ...

    @abstractmethod
    def list_orders(self) -> list[OrderSchema]: ...

    @abstractmethod
    def get_order(self, order_id: str) -> OrderSchema: ...

    # Catalogue
    @abstractmethod
    def list_products(self, params: dict | None = None) -> ProductPage: ...

    @abstractmethod
    def get_product(self, product_id: str) -> Product: ...

    @abstractmethod
    def create_product(self, request: CreateProductRequest) -> Product: ...

    @abstractmethod
    def delete_product(self, product_id: str) -> None: ...

    @abstractmethod
    def fetch_vendor_stats(self) -> VendorStats: ...

    # Addresses
    @abstractmethod
    def list_addresses(self) -> list[Address]: ...

    @abstractmethod
    def create_address(self, request: AddressRequest) -> Address: ...

    @abstractmethod
    def set_default_address(self, address_id: str) -> Address: ...

    @abstractmethod
    def delete_address(self, address_id: str) -> None: ...
