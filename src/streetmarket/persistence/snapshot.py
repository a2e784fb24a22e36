"""Snapshot codec — capture the marketplace state into a dict and back.

Layout (version 2)::

    {
        "version": 2,
        "users": [...], "vendors": [...], "products": [...], "orders": [...],
        "favorites": {user_id: [vendor_id, ...]},
        "recent_activity": [{"text", "occurred_at"}, ...],  # newest first
        "settings": {"proximity_radius_km", "notification_mode"},
        "active_user_id": "...",
    }

Carts are never captured. Loading is lenient: missing sections default to
empty, unknown keys are ignored and records that fail validation are
skipped with a warning. Snapshots without a version are taken to be in the
older camelCase layout and migrated. Snapshots from a newer version are
refused.
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pydantic
import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from streetmarket.activity.feed import ACTIVITY_LIMIT, ActivityEntry, recent
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import DEFAULT_CATEGORY, Vendor
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.ordering.order import Order, OrderItem
from streetmarket.persistence.records import (
    ActivityRecord,
    OrderRecord,
    ProductRecord,
    UserRecord,
    VendorRecord,
)
from streetmarket.scheduling.clock import as_utc
from streetmarket.shared.geo_point import GeoPoint

logger = structlog.get_logger(__name__)

SNAPSHOT_VERSION = 2

_SECTIONS = (
    "version",
    "users",
    "vendors",
    "products",
    "orders",
    "favorites",
    "recent_activity",
    "settings",
    "active_user_id",
)


@dataclass
class RestoredState:
    settings: dict = field(default_factory=dict)
    active_user_id: str | None = None
    counts: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------
def _point(point: GeoPoint | None) -> dict | None:
    return point.to_json() if point is not None else None


def _iso(moment: datetime | None) -> str | None:
    moment = as_utc(moment)
    return moment.isoformat() if moment else None


def capture(settings: dict | None = None, active_user_id=None) -> dict:
    users = current_domain.repository_for(User).list_all()
    vendors = current_domain.repository_for(Vendor).list_all()
    products = current_domain.repository_for(Product).list_all()
    orders = current_domain.repository_for(Order).list_all()
    favorites = current_domain.repository_for(FavoriteList).list_all()

    return {
        "version": SNAPSHOT_VERSION,
        "users": [
            {
                "id": str(user.id),
                "name": user.name,
                "phone": user.phone,
                "role": user.role,
                "category": user.category,
                "manual_location": _point(user.manual_location),
                "last_known_location": _point(user.last_known_location),
                "registered_at": _iso(user.registered_at),
            }
            for user in users
        ],
        "vendors": [
            {
                "id": str(vendor.id),
                "user_id": str(vendor.user_id),
                "name": vendor.name,
                "category": vendor.category,
                "location": _point(vendor.location),
                "active": bool(vendor.active),
                "product_ids": vendor.products,
                "order_ids": vendor.orders,
                "meta": vendor.meta,
                "created_at": _iso(vendor.created_at),
            }
            for vendor in vendors
        ],
        "products": [
            {
                "id": str(product.id),
                "vendor_id": str(product.vendor_id),
                "name": product.name,
                "price": product.price,
                "description": product.description,
                "image_url": product.image_url,
                "created_at": _iso(product.created_at),
            }
            for product in products
        ],
        "orders": [
            {
                "id": str(order.id),
                "customer_id": str(order.customer_id),
                "vendor_id": str(order.vendor_id),
                "items": [
                    {"product_id": str(item.product_id), "quantity": item.quantity} for item in order.ordered_items()
                ],
                "scheduled_for": _iso(order.scheduled_for),
                "status": order.status,
                "created_at": _iso(order.created_at),
                "contact_name": order.contact_name,
                "contact_phone": order.contact_phone,
                "processed_at": _iso(order.processed_at),
                "cancellation_reason": order.cancellation_reason,
                "cancelled_by": order.cancelled_by,
                "updated_at": _iso(order.updated_at),
            }
            for order in orders
        ],
        "favorites": {str(fav.user_id): fav.vendors for fav in favorites if fav.vendors},
        "recent_activity": [
            {"text": entry.text, "occurred_at": _iso(entry.occurred_at)} for entry in recent(ACTIVITY_LIMIT)
        ],
        "settings": dict(settings or {}),
        "active_user_id": str(active_user_id) if active_user_id else None,
    }


# ---------------------------------------------------------------------------
# Version handling
# ---------------------------------------------------------------------------
def _is_legacy(data: dict) -> bool:
    return "version" not in data


def migrate_legacy(data: dict) -> dict:
    """Convert the version-less camelCase layout to version 2.

    The old layout kept every collection as an id-keyed map, product details
    under ``desc``/``img``, order lines as ``{productId, qty}`` and settings
    as ``{proximityRadiusKm, notificationMode}``.
    """

    def values(section):
        raw = data.get(section) or {}
        return list(raw.values()) if isinstance(raw, dict) else list(raw)

    def point(raw):
        if isinstance(raw, dict) and raw.get("lat") is not None and raw.get("lng") is not None:
            return {"lat": raw["lat"], "lng": raw["lng"]}
        return None

    now = datetime.now(UTC).isoformat()
    users = [
        {
            "id": user.get("id"),
            "name": user.get("name"),
            "phone": user.get("phone"),
            "role": user.get("role") or "customer",
            "category": user.get("category") or None,
        }
        for user in values("users")
    ]
    vendors = [
        {
            "id": vendor.get("id"),
            "user_id": vendor.get("userId"),
            "name": vendor.get("name"),
            "category": vendor.get("category") or DEFAULT_CATEGORY,
            "location": point(vendor.get("location")),
            "active": bool(vendor.get("active")),
            "product_ids": vendor.get("products") or [],
            "order_ids": vendor.get("orders") or [],
            "meta": vendor.get("meta") or None,
        }
        for vendor in values("vendors")
    ]
    products = [
        {
            "id": product.get("id"),
            "vendor_id": product.get("vendorId"),
            "name": product.get("name"),
            "price": product.get("price"),
            "description": product.get("desc") or None,
            "image_url": product.get("img") or None,
        }
        for product in values("products")
    ]
    orders = [
        {
            "id": order.get("id"),
            "customer_id": order.get("customerId"),
            "vendor_id": order.get("vendorId"),
            "items": [
                {"product_id": item.get("productId"), "quantity": item.get("qty", 1)}
                for item in order.get("items") or []
            ],
            "scheduled_for": order.get("schedule") or None,
            "status": order.get("status") or "pending",
            "created_at": order.get("createdAt") or now,
            "contact_name": order.get("contactName") or None,
            "contact_phone": order.get("contactPhone") or None,
        }
        for order in values("orders")
    ]

    favorites = {}
    for user_id, saved in (data.get("favorites") or {}).items():
        # A saved Set serializes as {} and carries no vendors
        if isinstance(saved, list):
            favorites[user_id] = saved

    legacy_settings = data.get("settings") or {}
    settings = {}
    if "proximityRadiusKm" in legacy_settings:
        settings["proximity_radius_km"] = legacy_settings["proximityRadiusKm"]
    if "notificationMode" in legacy_settings:
        settings["notification_mode"] = legacy_settings["notificationMode"]

    logger.info("Migrating legacy snapshot", users=len(users), vendors=len(vendors), orders=len(orders))
    return {
        "version": SNAPSHOT_VERSION,
        "users": users,
        "vendors": vendors,
        "products": products,
        "orders": orders,
        "favorites": favorites,
        "recent_activity": [{"text": str(text), "occurred_at": now} for text in data.get("recentActivity") or []],
        "settings": settings,
        "active_user_id": data.get("currentUserId"),
    }


def normalize(data) -> dict | None:
    """Bring a loaded snapshot to the current layout, or None to start empty."""
    if data is None:
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring malformed snapshot", type=type(data).__name__)
        return None

    if _is_legacy(data):
        return migrate_legacy(data)

    version = data.get("version")
    if not isinstance(version, int) or version > SNAPSHOT_VERSION:
        logger.warning("Snapshot version not supported, starting empty", version=version, supported=SNAPSHOT_VERSION)
        return None

    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        logger.debug("Ignoring unknown snapshot keys", keys=unknown)
    return data


# ---------------------------------------------------------------------------
# Restore
# ---------------------------------------------------------------------------
def _geo(record) -> GeoPoint | None:
    if record is None:
        return None
    return GeoPoint(latitude=record.lat, longitude=record.lng)


def _records(section, model, rows):
    for row in rows or []:
        try:
            yield model.model_validate(row)
        except pydantic.ValidationError as exc:
            logger.warning("Skipping invalid snapshot record", section=section, errors=exc.error_count())


def _build_user(r: UserRecord) -> User:
    return User(
        id=r.id,
        name=r.name,
        phone=r.phone,
        role=r.role,
        category=r.category,
        manual_location=_geo(r.manual_location),
        last_known_location=_geo(r.last_known_location),
        registered_at=as_utc(r.registered_at),
    )


def _build_vendor(r: VendorRecord) -> Vendor:
    return Vendor(
        id=r.id,
        user_id=r.user_id,
        name=r.name,
        category=r.category or DEFAULT_CATEGORY,
        location=_geo(r.location),
        active=r.active,
        product_ids=json.dumps(r.product_ids),
        order_ids=json.dumps(r.order_ids),
        meta=r.meta,
        created_at=as_utc(r.created_at),
        updated_at=as_utc(r.created_at),
    )


def _build_product(r: ProductRecord) -> Product:
    return Product(
        id=r.id,
        vendor_id=r.vendor_id,
        name=r.name,
        price=r.price,
        description=r.description,
        image_url=r.image_url,
        created_at=as_utc(r.created_at),
    )


def _build_order(r: OrderRecord) -> Order:
    return Order(
        id=r.id,
        customer_id=r.customer_id,
        vendor_id=r.vendor_id,
        items=[
            OrderItem(product_id=item.product_id, quantity=item.quantity, line_no=line_no)
            for line_no, item in enumerate(r.items)
        ],
        scheduled_for=as_utc(r.scheduled_for),
        status=r.status,
        created_at=as_utc(r.created_at),
        contact_name=r.contact_name,
        contact_phone=r.contact_phone,
        processed_at=as_utc(r.processed_at),
        cancellation_reason=r.cancellation_reason,
        cancelled_by=r.cancelled_by,
        updated_at=as_utc(r.updated_at or r.created_at),
    )


_RESTORERS = (
    ("users", UserRecord, _build_user, User),
    ("vendors", VendorRecord, _build_vendor, Vendor),
    ("products", ProductRecord, _build_product, Product),
    ("orders", OrderRecord, _build_order, Order),
)


def restore(data: dict | None) -> RestoredState:
    """Write a snapshot into the repositories.

    Aggregates are rebuilt directly, without raising domain events, so
    restoring does not repeat activity or notifications.
    """
    state = RestoredState()
    data = normalize(data)
    if data is None:
        return state

    for section, model, build, aggregate_cls in _RESTORERS:
        repo = current_domain.repository_for(aggregate_cls)
        restored = 0
        for record in _records(section, model, data.get(section)):
            try:
                repo.add(build(record))
            except ValidationError as exc:
                logger.warning("Skipping snapshot record", section=section, record_id=record.id, error=str(exc))
                continue
            restored += 1
        state.counts[section] = restored

    repo = current_domain.repository_for(FavoriteList)
    restored = 0
    for user_id, vendor_ids in (data.get("favorites") or {}).items():
        if not isinstance(vendor_ids, list):
            continue
        # Duplicates collapse, first occurrence wins
        saved = list(dict.fromkeys(map(str, vendor_ids)))
        try:
            repo.add(FavoriteList(user_id=str(user_id), vendor_ids=json.dumps(saved)))
        except ValidationError as exc:
            logger.warning("Skipping snapshot record", section="favorites", record_id=str(user_id), error=str(exc))
            continue
        restored += 1
    state.counts["favorites"] = restored

    activity = list(_records("recent_activity", ActivityRecord, data.get("recent_activity")))[:ACTIVITY_LIMIT]
    repo = current_domain.repository_for(ActivityEntry)
    for position, record in enumerate(activity):
        repo.add(
            ActivityEntry(
                entry_id=str(uuid4()),
                text=record.text[:500],
                occurred_at=as_utc(record.occurred_at),
                sequence=len(activity) - position,
            )
        )
    state.counts["recent_activity"] = len(activity)

    settings = data.get("settings")
    state.settings = settings if isinstance(settings, dict) else {}
    state.active_user_id = data.get("active_user_id") or None
    logger.info("Snapshot restored", **state.counts)
    return state
