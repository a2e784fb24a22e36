"""Order status changes requested by vendors, customers or the system."""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from streetmarket.domain import streetmarket
from streetmarket.ordering.order import CancellationActor, Order

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="Order")
class AcceptOrder:
    order_id = Identifier(required=True)
    accepted_at = DateTime()


@streetmarket.command(part_of="Order")
class CompleteOrder:
    order_id = Identifier(required=True)
    completed_at = DateTime()


@streetmarket.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(choices=CancellationActor, default=CancellationActor.CUSTOMER.value)
    cancelled_at = DateTime()


@streetmarket.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(AcceptOrder)
    def accept_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.accept(command.accepted_at)
        repo.add(order)

    @handle(CompleteOrder)
    def complete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.complete(command.completed_at)
        repo.add(order)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)
        order.cancel(
            reason=command.reason,
            cancelled_by=command.cancelled_by or CancellationActor.CUSTOMER.value,
            cancelled_at=command.cancelled_at,
        )
        repo.add(order)
        logger.info("Order cancelled", order_id=str(order.id), cancelled_by=order.cancelled_by)
