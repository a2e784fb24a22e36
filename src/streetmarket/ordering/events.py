"""Domain events for the order lifecycle."""

from protean.fields import DateTime, Identifier, Integer, String

from streetmarket.domain import streetmarket


@streetmarket.event(part_of="Order")
class OrderPlaced:
    """One per vendor for every checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    item_count = Integer(default=0)
    scheduled_for = DateTime()
    placed_at = DateTime(required=True)


@streetmarket.event(part_of="Order")
class OrderReadyForAttention:
    """The vendor and customer were told about the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    processed_at = DateTime(required=True)


@streetmarket.event(part_of="Order")
class OrderAccepted:
    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    accepted_at = DateTime(required=True)


@streetmarket.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@streetmarket.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    reason = String()
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)
