import logging
from dataclasses import dataclass
from typing import Optional

import schemas
from errors import BackendError, NotFoundError
from models import OrderStatus

log = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Order not found. Please check the order ID and try again."
FETCH_FAILED_MESSAGE = "Failed to fetch order details"

STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.IN_PROGRESS: "In Progress",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

STATUS_MESSAGES = {
    OrderStatus.PENDING: "Your order has been received and is being processed.",
    OrderStatus.IN_PROGRESS: "Your order is on its way to you!",
    OrderStatus.DELIVERED: "Your order has been delivered. Enjoy!",
    OrderStatus.CANCELLED: "This order has been cancelled.",
}


@dataclass(frozen=True)
class TrackingResult:
    order: Optional[schemas.Order] = None
    error: Optional[str] = None

    @property
    def label(self):
        return STATUS_LABELS[self.order.status] if self.order else None

    @property
    def message(self):
        return STATUS_MESSAGES[self.order.status] if self.order else None


def track_order(order_id, client) -> TrackingResult:
    order_id = str(order_id or "").strip()
    if not order_id:
        return TrackingResult()
    try:
        order = client.get_order(order_id)
    except NotFoundError:
        return TrackingResult(error=NOT_FOUND_MESSAGE)
    except BackendError as e:
        log.error("Error fetching order %s: %s", order_id, e.message)
        return TrackingResult(error=FETCH_FAILED_MESSAGE)
    return TrackingResult(order=order)
