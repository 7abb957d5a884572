"""Dacsan storefront client.

Wires an authenticated session to the backend adapter, the customer services
(catalogue, cart, checkout, orders, addresses), the vendor pipeline and the
live notification subscription.

Usage:
    from storefront import Storefront, boot

    boot()
    store = Storefront()
    store.login("vendor@example.com", "secret")
    store.pipeline.load_orders()
    store.start_clock()   # inside a running event loop
    ...
    await store.logout()
"""

import structlog

from catalogue.browsing import ProductBrowser
from catalogue.management import VendorCatalog
from fulfillment.domain import fulfillment
from fulfillment.order.clock import TickingClock
from fulfillment.order.pipeline import FulfillmentPipeline
from fulfillment.projections.dashboard import build_dashboard, vendor_stats
from notifications.labels import status_label
from notifications.stream import get_stream
from notifications.subscription import SubscriptionManager
from ordering.addresses import AddressBook
from ordering.cart.management import CartManager
from ordering.checkout import place_order
from ordering.orders import OrderHistory
from shared import auth
from shared.backend import get_backend, reset_backend
from shared.config import Settings, get_settings
from shared.errors import BackendError
from shared.logging import bind_session, clear_session, configure_logging
from shared.reporting import Reporter
from shared.schemas import NewOrderAlert, OrderSchema, OrderStatusUpdate
from shared.session import Session

logger = structlog.get_logger(__name__)


def boot() -> None:
    """Configure logging, initialize the fulfillment domain and activate its context."""
    configure_logging()
    fulfillment.init()
    fulfillment.domain_context().push()


class Storefront:
    def __init__(self, settings: Settings | None = None, backend=None, stream=None):
        self.settings = settings or get_settings()
        self.reporter = Reporter()
        self.subscriptions = SubscriptionManager(stream or get_stream())
        self._backend_override = backend

        self.session: Session | None = None
        self.backend = None
        self.catalogue: ProductBrowser | None = None
        self.cart: CartManager | None = None
        self.orders: OrderHistory | None = None
        self.addresses: AddressBook | None = None
        self.pipeline: FulfillmentPipeline | None = None
        self.vendor_catalog: VendorCatalog | None = None
        self.clock: TickingClock | None = None

    # -------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------
    def login(self, email: str, password: str) -> Session:
        return self.open_session(auth.login(email, password, self.settings))

    def register(self, request: auth.RegisterRequest) -> Session:
        return self.open_session(auth.register(request, self.settings))

    def open_session(self, session: Session) -> Session:
        """Bind every service to `session`.

        A different identity replaces the current one. The same identity with a
        new token (re-login, token refresh) gets a fresh backend adapter while
        the vendor pipeline, its countdowns and the running clock carry on.
        """
        previous = self.session
        if previous is not None and previous.identity != session.identity:
            self._close_services()
        elif previous is not None and previous.token != session.token:
            # Adapters and the live subscription carry the old bearer token
            self.subscriptions.stop()
            if self._backend_override is None:
                reset_backend()

        self.session = session
        bind_session(user_id=session.user_id, role=session.role)

        self.backend = self._backend_override or get_backend(session, self.settings)
        self.catalogue = ProductBrowser(self.backend)
        self.cart = CartManager(self.backend, self.reporter)
        self.orders = OrderHistory(self.backend)
        self.addresses = AddressBook(self.backend)

        if session.is_vendor:
            if self.pipeline is None:
                self.pipeline = FulfillmentPipeline(
                    self.backend,
                    session,
                    reporter=self.reporter,
                    countdown_ticks=self.settings.cooking_countdown_seconds,
                )
            else:
                self.pipeline.rebind(self.backend, session)
            self.vendor_catalog = VendorCatalog(self.backend, session)

        self.subscriptions.start(
            session,
            on_status_update=self._on_status_update,
            on_new_order=self._on_new_order,
        )
        logger.info("Storefront session opened", role=session.role)
        return session

    def start_clock(self) -> TickingClock:
        """Start the countdown clock on the running event loop (vendors only)."""
        if self.pipeline is None:
            raise RuntimeError("The countdown clock needs a vendor session")
        if self.clock is None:
            self.clock = TickingClock(self.pipeline, self.settings.countdown_tick_seconds)
        self.clock.start()
        return self.clock

    async def logout(self) -> None:
        if self.clock is not None:
            await self.clock.stop()
        self._close_services()
        logger.info("Storefront session closed")
        clear_session()

    def _close_services(self) -> None:
        if self.clock is not None:
            self.clock.cancel()
        self.subscriptions.stop()
        if self.pipeline is not None:
            self.pipeline.stop()
        if self._backend_override is None:
            reset_backend()
        self.session = None
        self.backend = None
        self.catalogue = self.cart = self.orders = self.addresses = None
        self.pipeline = self.vendor_catalog = self.clock = None

    # -------------------------------------------------------------------
    # Customer flows
    # -------------------------------------------------------------------
    def checkout(self, address_id, payment_method: str, notes: str | None = None) -> OrderSchema:
        order = place_order(self.backend, self.cart.cart, address_id, payment_method, notes)
        self.cart.refresh()
        self.reporter.success(f"Order {order.order_number} placed")
        return order

    def _on_status_update(self, update: OrderStatusUpdate) -> None:
        self.reporter.info(update.message or f"Order {update.order_number}: {status_label(update.new_status)}")
        try:
            self.orders.apply_update(update)
        except BackendError as exc:
            self.reporter.error(
                f"Could not refresh order {update.order_number}: {exc.message}", status_code=exc.status_code
            )

    # -------------------------------------------------------------------
    # Vendor flows
    # -------------------------------------------------------------------
    def _on_new_order(self, alert: NewOrderAlert) -> None:
        self.reporter.info(alert.message or f"New order {alert.order_number}")
        if self.pipeline is None:
            return
        try:
            self.pipeline.apply_notification(alert)
        except BackendError as exc:
            self.reporter.error(f"Could not refresh orders: {exc.message}", order_number=alert.order_number)

    def dashboard(self):
        return build_dashboard(self.pipeline.orders.values(), self.pipeline.board)

    def stats(self, use_server: bool = True):
        server_stats = self.backend.fetch_vendor_stats() if use_server else None
        products = len(self.vendor_catalog.list_products()) if self.vendor_catalog is not None else 0
        return vendor_stats(self.pipeline.orders.values(), server_stats, total_products=products)
