"""Vendor dashboard — work-queue buckets and order statistics.

A sub-order belongs to at most one bucket. Once either the sub-order or its
parent order is terminal it only appears in HISTORY, so nothing shows up in an
active queue and in history at the same time.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict

from fulfillment.order.countdown import CountdownBoard
from fulfillment.order.order import Order, SubOrder, SubOrderStatus
from shared.money import ZERO
from shared.schemas import VendorStats


class DashboardTab(Enum):
    PENDING = "PENDING"
    COOKING = "COOKING"
    DELIVERING = "DELIVERING"
    HISTORY = "HISTORY"


_ACTIVE_TABS = {
    SubOrderStatus.PENDING: DashboardTab.PENDING,
    SubOrderStatus.COOKING: DashboardTab.COOKING,
    SubOrderStatus.READY: DashboardTab.DELIVERING,
    SubOrderStatus.PICKED_UP: DashboardTab.DELIVERING,
    SubOrderStatus.DELIVERING: DashboardTab.DELIVERING,
}


class DashboardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    order_number: str
    order_status: str
    customer_name: str | None = None
    delivery_address: str | None = None
    sub_order_id: str
    sub_order_number: str | None = None
    status: str
    subtotal: Decimal
    countdown: int | None = None


class DashboardSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_revenue: Decimal = ZERO
    total_orders: int = 0
    pending_orders: int = 0
    processing_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    total_products: int = 0


def bucket_for(order: Order, sub_order: SubOrder) -> DashboardTab:
    if order.is_terminal or sub_order.is_terminal:
        return DashboardTab.HISTORY
    return _ACTIVE_TABS[SubOrderStatus(sub_order.status)]


def build_dashboard(orders, board: CountdownBoard | None = None) -> dict[DashboardTab, list[DashboardEntry]]:
    """Partition every sub-order of `orders` into the dashboard tabs."""
    buckets: dict[DashboardTab, list[DashboardEntry]] = {tab: [] for tab in DashboardTab}
    for order in orders:
        for sub_order in order.sub_orders or []:
            buckets[bucket_for(order, sub_order)].append(
                DashboardEntry(
                    order_id=str(order.order_id),
                    order_number=order.order_number,
                    order_status=order.status,
                    customer_name=order.customer_name,
                    delivery_address=order.delivery_address,
                    sub_order_id=str(sub_order.sub_order_id),
                    sub_order_number=sub_order.sub_order_number,
                    status=sub_order.status,
                    subtotal=sub_order.amount,
                    countdown=board.remaining(sub_order.sub_order_id) if board is not None else None,
                )
            )
    return buckets


def vendor_stats(orders, server_stats: VendorStats | None = None, total_products: int = 0) -> DashboardSummary:
    """Revenue and order counts for the overview cards.

    Counts are computed from the loaded sub-orders; any figure the server
    reports takes precedence over the local one.
    """
    orders = list(orders)
    revenue = ZERO
    counts = {"pending": 0, "processing": 0, "completed": 0, "cancelled": 0}

    for order in orders:
        order_status = order.status
        for sub_order in order.sub_orders or []:
            status = sub_order.status
            if status == SubOrderStatus.DELIVERED.value or order_status == "COMPLETED":
                counts["completed"] += 1
                revenue += sub_order.amount
            elif status == SubOrderStatus.PENDING.value and order_status != "CANCELLED":
                counts["pending"] += 1
            elif status == SubOrderStatus.CANCELLED.value or order_status == "CANCELLED":
                counts["cancelled"] += 1
            else:
                counts["processing"] += 1

    server = server_stats or VendorStats()

    def prefer(server_value, local_value):
        return local_value if server_value is None else server_value

    return DashboardSummary(
        total_revenue=prefer(server.total_revenue, revenue),
        total_orders=prefer(server.total_orders, len(orders)),
        pending_orders=prefer(server.pending_orders, counts["pending"]),
        processing_orders=prefer(server.processing_orders, counts["processing"]),
        completed_orders=prefer(server.completed_orders, counts["completed"]),
        cancelled_orders=prefer(server.cancelled_orders, counts["cancelled"]),
        total_products=total_products,
    )
