"""Order fulfillment scheduling.

An order without a schedule, or one whose schedule has already passed, is
processed straight after checkout. Anything scheduled for later gets a
one-shot timer at ``scheduled_for`` plus a short grace period. When the timer
fires the order is loaded again and only processed if it is still pending
and unprocessed, so an order cancelled in the meantime stays quiet even if
its timer somehow survived.

Timers are not persisted. ``rebuild()`` re-derives them at start-up from
pending orders that were never processed, which makes delivery of the
"new order" notices at-least-once across restarts.
"""

from datetime import timedelta

import structlog
from protean.utils.globals import current_domain

from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.notifications.notification import NotificationKind
from streetmarket.ordering.order import Order
from streetmarket.ordering.processing import MarkOrderProcessed
from streetmarket.scheduling.clock import as_utc

logger = structlog.get_logger(__name__)

DEFAULT_GRACE_MS = 500


class OrderFulfillmentScheduler:
    def __init__(self, timers, clock, notifier, grace_ms: int = DEFAULT_GRACE_MS):
        self.timers = timers
        self.clock = clock
        self.notifier = notifier
        self.grace = timedelta(milliseconds=grace_ms)
        self._timer_ids: dict[str, str] = {}

    def scheduled_orders(self) -> list[str]:
        return [order_id for order_id, timer_id in self._timer_ids.items() if self.timers.is_scheduled(timer_id)]

    def is_scheduled(self, order_id) -> bool:
        return self.timers.is_scheduled(self._timer_ids.get(str(order_id)))

    def schedule(self, order_id) -> bool:
        """Process now or arm a timer. Returns True when a timer was armed."""
        order = current_domain.repository_for(Order).find(order_id)
        if order is None or not order.awaiting_processing:
            return False

        if order.is_due(self.clock.now()):
            self.process(order.id)
            return False

        self.unschedule(order.id)
        self._timer_ids[str(order.id)] = self.timers.call_at(
            as_utc(order.scheduled_for) + self.grace,
            self._fire,
            str(order.id),
            name=f"order:{order.short_id}",
        )
        logger.info("Order processing scheduled", order_id=str(order.id), scheduled_for=str(order.scheduled_for))
        return True

    def unschedule(self, order_id) -> bool:
        timer_id = self._timer_ids.pop(str(order_id), None)
        return self.timers.cancel(timer_id)

    def rebuild(self) -> int:
        """Re-arm timers for every pending order that was never processed."""
        orders = current_domain.repository_for(Order).awaiting_processing()
        for order in orders:
            self.schedule(order.id)
        logger.info("Fulfillment schedule rebuilt", orders=len(orders), timers=len(self.scheduled_orders()))
        return len(orders)

    def clear(self):
        for order_id in list(self._timer_ids):
            self.unschedule(order_id)

    def _fire(self, order_id):
        self._timer_ids.pop(order_id, None)
        self.process(order_id)

    def process(self, order_id) -> bool:
        """Tell the vendor and the customer about the order, once."""
        order = current_domain.repository_for(Order).find(order_id)
        if order is None:
            logger.info("Skipping processing of vanished order", order_id=str(order_id))
            return False
        if not order.awaiting_processing:
            logger.info("Skipping processing", order_id=str(order.id), status=order.status)
            return False

        vendor = current_domain.repository_for(Vendor).find(order.vendor_id)
        customer = current_domain.repository_for(User).find(order.customer_id)
        customer_name = customer.name if customer else "unknown customer"
        when = f"{order.scheduled_for:%Y-%m-%d %H:%M}" if order.scheduled_for else "Now"

        if vendor is not None:
            self.notifier.notify(
                recipient_id=vendor.user_id,
                kind=NotificationKind.ORDER_READY.value,
                title=f"New order {order.short_id} from {customer_name}",
                body=f"Customer {customer_name} scheduled {when}",
                duration_ms=4000,
            )
        self.notifier.notify(
            recipient_id=order.customer_id,
            kind=NotificationKind.ORDER_PLACED.value,
            title=f"Order {order.short_id} placed",
            body="vendor will be notified",
            duration_ms=3000,
        )

        current_domain.process(
            MarkOrderProcessed(order_id=str(order.id), processed_at=self.clock.now()),
            asynchronous=False,
        )
        return True
