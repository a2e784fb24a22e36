"""Order aggregate — one vendor's share of a checkout.

State Machine:
    PENDING → ACCEPTED → COMPLETED
    PENDING → CANCELLED
    ACCEPTED → CANCELLED

``completed`` and ``cancelled`` are terminal; every change from them is
refused. Processing (telling the vendor and customer about the order) is
tracked separately through ``processed_at`` and does not change the status.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from streetmarket.domain import streetmarket
from streetmarket.ordering.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCompleted,
    OrderPlaced,
    OrderReadyForAttention,
)
from streetmarket.scheduling.clock import as_utc
from streetmarket.shared.errors import InvalidTransitionError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CancellationActor(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    SYSTEM = "system"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.ACCEPTED, OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@streetmarket.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    line_no = Integer(default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@streetmarket.aggregate(limit=-1)
class Order:
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    items = HasMany(OrderItem)
    scheduled_for = DateTime()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    contact_name = String(max_length=100)
    contact_phone = String(max_length=64)
    processed_at = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(choices=CancellationActor)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        vendor_id,
        lines,
        placed_at=None,
        scheduled_for=None,
        contact_name=None,
        contact_phone=None,
        vendor_name=None,
    ):
        """Create a pending order.

        Args:
            lines: ``(product_id, quantity)`` pairs, all sold by ``vendor_id``.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        placed_at = placed_at or datetime.now(UTC)
        order = cls(
            customer_id=str(customer_id),
            vendor_id=str(vendor_id),
            items=[
                OrderItem(product_id=str(product_id), quantity=quantity, line_no=line_no)
                for line_no, (product_id, quantity) in enumerate(lines)
            ],
            scheduled_for=scheduled_for,
            status=OrderStatus.PENDING.value,
            contact_name=contact_name or None,
            contact_phone=contact_phone or None,
            created_at=placed_at,
            updated_at=placed_at,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                vendor_id=str(vendor_id),
                vendor_name=vendor_name,
                item_count=sum(quantity for _, quantity in lines),
                scheduled_for=scheduled_for,
                placed_at=placed_at,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def short_id(self) -> str:
        return str(self.id)[:8]

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[OrderStatus(self.status)]

    @property
    def awaiting_processing(self) -> bool:
        return self.status == OrderStatus.PENDING.value and self.processed_at is None

    def ordered_items(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.line_no)

    def is_due(self, now: datetime) -> bool:
        return self.scheduled_for is None or as_utc(self.scheduled_for) <= as_utc(now)

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if not can_transition(current, target_status):
            raise InvalidTransitionError(
                {"status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def accept(self, accepted_at=None):
        self._assert_can_transition(OrderStatus.ACCEPTED)
        now = accepted_at or datetime.now(UTC)
        self.status = OrderStatus.ACCEPTED.value
        self.updated_at = now
        self.raise_(OrderAccepted(order_id=str(self.id), vendor_id=str(self.vendor_id), accepted_at=now))

    def complete(self, completed_at=None):
        self._assert_can_transition(OrderStatus.COMPLETED)
        now = completed_at or datetime.now(UTC)
        self.status = OrderStatus.COMPLETED.value
        self.updated_at = now
        self.raise_(OrderCompleted(order_id=str(self.id), vendor_id=str(self.vendor_id), completed_at=now))

    def cancel(self, reason=None, cancelled_by=CancellationActor.CUSTOMER.value, cancelled_at=None):
        self._assert_can_transition(OrderStatus.CANCELLED)
        try:
            actor = CancellationActor(cancelled_by).value
        except ValueError:
            raise ValidationError({"cancelled_by": [f"Unknown actor: {cancelled_by}"]}) from None

        now = cancelled_at or datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason or None
        self.cancelled_by = actor
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                vendor_id=str(self.vendor_id),
                reason=reason,
                cancelled_by=actor,
                cancelled_at=now,
            )
        )

    def mark_processed(self, processed_at=None, vendor_name=None) -> bool:
        """Record that the order was brought to the vendor's attention.

        Returns False, changing nothing, when the order is no longer waiting.
        """
        if not self.awaiting_processing:
            return False

        now = processed_at or datetime.now(UTC)
        self.processed_at = now
        self.updated_at = now
        self.raise_(
            OrderReadyForAttention(
                order_id=str(self.id),
                vendor_id=str(self.vendor_id),
                vendor_name=vendor_name,
                processed_at=now,
            )
        )
        return True
