"""Display labels for order and sub-order statuses (Vietnamese storefront copy)."""

STATUS_LABELS = {
    "PENDING": "Chờ xử lý",
    "CONFIRMED": "Đã xác nhận",
    "PROCESSING": "Đang xử lý",
    "PREPARING": "Đang chuẩn bị",
    "COOKING": "Đang nấu",
    "READY": "Sẵn sàng",
    "PICKED_UP": "Shipper đã lấy",
    "DELIVERING": "Đang giao",
    "DELIVERED": "Đã giao",
    "COMPLETED": "Hoàn thành",
    "CANCELLED": "Đã huỷ",
}

TAB_LABELS = {
    "PENDING": "Chờ xác nhận",
    "COOKING": "Đang nấu",
    "DELIVERING": "Đang giao",
    "HISTORY": "Lịch sử",
}


def status_label(status) -> str:
    """Label for a status; unknown statuses are shown as-is."""
    key = getattr(status, "value", status)
    return STATUS_LABELS.get(key, str(key))


def tab_label(tab) -> str:
    key = getattr(tab, "value", tab)
    return TAB_LABELS.get(key, str(key))
