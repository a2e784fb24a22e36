from protean import handle
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.ordering.order import Order


@streetmarket.command(part_of="Order")
class MarkOrderProcessed:
    """Stamp ``processed_at`` once the vendor and customer have been told."""

    order_id = Identifier(required=True)
    processed_at = DateTime()


@streetmarket.command_handler(part_of=Order)
class OrderProcessingHandler:
    @handle(MarkOrderProcessed)
    def mark_processed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.fetch(command.order_id)

        vendor = current_domain.repository_for(Vendor).find(order.vendor_id)
        changed = order.mark_processed(command.processed_at, vendor_name=vendor.name if vendor else None)
        if changed:
            repo.add(order)
        return changed
