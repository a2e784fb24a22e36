"""Recent activity — a capped, newest-first feed of what happened.

Entries come from the projector below (catalogue, cart, favorites and order
events) and from ``record_activity`` for things that are not domain events,
such as logins and proximity sightings. Only the newest ``ACTIVITY_LIMIT``
entries are kept.
"""

from datetime import UTC, datetime
from uuid import uuid4

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from streetmarket.cart.cart import Cart
from streetmarket.cart.events import CartLineAdded
from streetmarket.catalogue.events import ProductAdded, VendorActivationChanged, VendorCreated
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.favorites.events import FavoriteAdded, FavoriteRemoved
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.ordering.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCompleted,
    OrderPlaced,
    OrderReadyForAttention,
)
from streetmarket.ordering.order import Order

ACTIVITY_LIMIT = 50


@streetmarket.projection
class ActivityEntry:
    entry_id = Identifier(identifier=True, required=True)
    text = String(required=True, max_length=500)
    occurred_at = DateTime(required=True)
    sequence = Integer(default=0)

    def render(self) -> str:
        return f"{self.occurred_at:%Y-%m-%d %H:%M:%S}: {self.text}"


def _entries() -> list[ActivityEntry]:
    """All entries, newest first."""
    items = current_domain.repository_for(ActivityEntry)._dao.query.all().items
    return sorted(items, key=lambda e: e.sequence, reverse=True)


def record_activity(text: str, occurred_at=None, limit: int = ACTIVITY_LIMIT) -> ActivityEntry:
    """Add an entry and drop the oldest ones beyond ``limit``."""
    existing = _entries()
    entry = ActivityEntry(
        entry_id=str(uuid4()),
        text=text[:500],
        occurred_at=occurred_at or datetime.now(UTC),
        sequence=(existing[0].sequence + 1) if existing else 1,
    )
    repo = current_domain.repository_for(ActivityEntry)
    repo.add(entry)

    for stale in existing[max(0, limit - 1) :]:
        repo._dao.delete(stale)
    return entry


def recent(limit: int = ACTIVITY_LIMIT) -> list[ActivityEntry]:
    return _entries()[:limit]


def clear_activity():
    repo = current_domain.repository_for(ActivityEntry)
    for entry in _entries():
        repo._dao.delete(entry)


@streetmarket.projector(projector_for=ActivityEntry, aggregates=[Vendor, Product, Cart, Order, FavoriteList])
class ActivityProjector:
    @on(VendorCreated)
    def on_vendor_created(self, event):
        record_activity(f"Created vendor profile for {event.name}")

    @on(VendorActivationChanged)
    def on_vendor_activation_changed(self, event):
        record_activity(f"{event.name} is now {'active' if event.active else 'inactive'}")

    @on(ProductAdded)
    def on_product_added(self, event):
        record_activity(f"Added product {event.name} for {event.vendor_name or 'vendor'}")

    @on(CartLineAdded)
    def on_cart_line_added(self, event):
        record_activity(f"Added to cart: {event.product_name or event.product_id}")

    @on(OrderPlaced)
    def on_order_placed(self, event):
        record_activity(f"Order placed (#{event.order_id[:8]}) for vendor {event.vendor_name}", event.placed_at)

    @on(OrderReadyForAttention)
    def on_order_ready(self, event):
        record_activity(f"Order #{event.order_id[:8]} ready for vendor {event.vendor_name}", event.processed_at)

    @on(OrderAccepted)
    def on_order_accepted(self, event):
        record_activity(f"Order {event.order_id[:8]} marked accepted", event.accepted_at)

    @on(OrderCompleted)
    def on_order_completed(self, event):
        record_activity(f"Order {event.order_id[:8]} marked completed", event.completed_at)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        record_activity(f"Order {event.order_id[:8]} marked cancelled", event.cancelled_at)

    @on(FavoriteAdded)
    def on_favorite_added(self, event):
        record_activity(f"Saved favorite: {event.vendor_name or event.vendor_id}")

    @on(FavoriteRemoved)
    def on_favorite_removed(self, event):
        record_activity(f"Removed favorite: {event.vendor_name or event.vendor_id}")
