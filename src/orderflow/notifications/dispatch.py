"""Notification dispatch — tells people outside the core about order outcomes.

Reacts to OrderRejected and OrderReadyForDispatch. Delivery failures are
logged and dropped; the order has already moved on.
"""

import structlog
from protean.utils.mixins import handle

from orderflow.domain import orderflow
from orderflow.notifications import get_notifier
from orderflow.notifications.port import NotificationFailed
from orderflow.order.events import OrderReadyForDispatch, OrderRejected
from orderflow.order.order import Order

logger = structlog.get_logger(__name__)


@orderflow.event_handler(part_of=Order)
class OrderNotificationDispatcher:
    @handle(OrderRejected)
    def on_order_rejected(self, event: OrderRejected) -> None:
        try:
            get_notifier().order_rejected(str(event.order_id), event.order_number, event.reason)
        except NotificationFailed as exc:
            logger.warning(
                "Rejection notification failed",
                order_id=str(event.order_id),
                error=str(exc),
            )
            return
        logger.info("Rejection notification sent", order_id=str(event.order_id))

    @handle(OrderReadyForDispatch)
    def on_order_ready(self, event: OrderReadyForDispatch) -> None:
        try:
            get_notifier().order_ready(str(event.order_id), event.order_number)
        except NotificationFailed as exc:
            logger.warning(
                "Ready notification failed",
                order_id=str(event.order_id),
                error=str(exc),
            )
            return
        logger.info("Ready notification sent", order_id=str(event.order_id))
