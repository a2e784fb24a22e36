"""Vendor aggregate — a street vendor's public profile.

A vendor is owned by exactly one vendor-role user. Only vendors that are
``active`` and have a known ``location`` take part in proximity scans and
radius filtering. ``product_ids`` keeps the catalogue order in which the
vendor listed products; ``order_ids`` lists every order placed with them.
Both are stored as JSON arrays.
"""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String, Text, ValueObject

from streetmarket.catalogue.events import VendorActivationChanged, VendorCreated, VendorRelocated
from streetmarket.domain import streetmarket
from streetmarket.shared.geo_point import GeoPoint

DEFAULT_CATEGORY = "food"


@streetmarket.aggregate(limit=-1)
class Vendor:
    user_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    category = String(max_length=50, default=DEFAULT_CATEGORY)
    location = ValueObject(GeoPoint)
    active = Boolean(default=False)
    product_ids = Text()  # JSON array of product ids
    order_ids = Text()  # JSON array of order ids
    meta = Text()  # Free text shown in listings; None when never set
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id, name, category=None, location=None, active=False, meta=None):
        now = datetime.now(UTC)
        vendor = cls(
            user_id=user_id,
            name=name,
            category=category or DEFAULT_CATEGORY,
            location=location,
            active=bool(active),
            product_ids=json.dumps([]),
            order_ids=json.dumps([]),
            meta=meta,
            created_at=now,
            updated_at=now,
        )
        vendor.raise_(
            VendorCreated(
                vendor_id=str(vendor.id),
                user_id=str(user_id),
                name=vendor.name,
                category=vendor.category,
                active=vendor.active,
                created_at=now,
            )
        )
        return vendor

    # -------------------------------------------------------------------
    # Catalogue and order references
    # -------------------------------------------------------------------
    @property
    def products(self) -> list[str]:
        return json.loads(self.product_ids) if self.product_ids else []

    @property
    def orders(self) -> list[str]:
        return json.loads(self.order_ids) if self.order_ids else []

    def list_product(self, product_id):
        products = self.products
        if str(product_id) not in products:
            products.append(str(product_id))
            self.product_ids = json.dumps(products)
            self.updated_at = datetime.now(UTC)

    def delist_product(self, product_id):
        products = [pid for pid in self.products if pid != str(product_id)]
        self.product_ids = json.dumps(products)
        self.updated_at = datetime.now(UTC)

    def attach_order(self, order_id):
        orders = self.orders
        orders.append(str(order_id))
        self.order_ids = json.dumps(orders)

    # -------------------------------------------------------------------
    # Presence
    # -------------------------------------------------------------------
    @property
    def is_visible(self) -> bool:
        """Active vendors with a location show up in proximity scans."""
        return bool(self.active) and self.location is not None

    def relocate(self, point: GeoPoint):
        """Move the vendor and make sure they are listed as active."""
        self.location = point
        self.active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(
            VendorRelocated(
                vendor_id=str(self.id),
                name=self.name,
                latitude=point.latitude,
                longitude=point.longitude,
            )
        )

    def set_active(self, active: bool):
        if bool(self.active) == bool(active):
            return
        self.active = bool(active)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            VendorActivationChanged(
                vendor_id=str(self.id),
                name=self.name,
                active=self.active,
            )
        )

    def matches(self, term: str) -> bool:
        term = term.lower()
        return term in self.name.lower() or term in (self.meta or "").lower()

    def blurb(self) -> str:
        """Text used in proximity notifications."""
        return self.meta or f"{(self.category or 'vendor').capitalize()} available near you"
