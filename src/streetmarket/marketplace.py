"""Marketplace — the application context behind every user intent.

One ``Marketplace`` owns the collaborators of a running simulator: the
snapshot store, the presenter, the location provider, the clock and timer
queue, the fulfillment scheduler and the proximity monitor. Intent methods
translate user actions into domain commands, schedule follow-up work and
save a best-effort snapshot after every change.

The caller is responsible for an active domain context (the API middleware,
the runner's timer loop and the test fixtures all push one).
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from streetmarket.activity.feed import record_activity, recent
from streetmarket.cart.cart import Cart
from streetmarket.cart.management import AddToCart, ClearCart, CreateCart, RemoveFromCart, summarize
from streetmarket.catalogue.authoring import AddProduct, CreateVendor, SetVendorActive
from streetmarket.catalogue.browsing import browse_vendors
from streetmarket.catalogue.locations import SetUserLocation, SetVendorLocation
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.registration import RegisterOrFindUser
from streetmarket.catalogue.removal import RemoveProduct, RemoveVendor
from streetmarket.catalogue.user import Role, User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.config import USER_SETTINGS, MarketSettings
from streetmarket.domain import streetmarket
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.favorites.management import RemoveFavorite, ToggleFavorite
from streetmarket.notifications.notification import Notification, NotificationKind
from streetmarket.notifications.notifier import Notifier
from streetmarket.notifications.presentation_port import View
from streetmarket.notifications.recording_presenter import RecordingPresenter
from streetmarket.ordering.checkout import PlaceOrder
from streetmarket.ordering.fulfillment import OrderFulfillmentScheduler
from streetmarket.ordering.lifecycle import AcceptOrder, CancelOrder, CompleteOrder
from streetmarket.ordering.order import CancellationActor, Order
from streetmarket.persistence import snapshot
from streetmarket.persistence.store import MemoryStore
from streetmarket.proximity.location_port import UserLocationProvider
from streetmarket.proximity.monitor import ProximityMonitor
from streetmarket.scheduling.clock import SystemClock, as_utc
from streetmarket.scheduling.timers import TimerQueue
from streetmarket.shared.errors import (
    ForbiddenActionError,
    LocationUnavailableError,
    NotLoggedInError,
    PersistenceError,
    describe,
    not_found,
)
from streetmarket.shared.geo import is_valid_pair
from streetmarket.utils.logging import bind_session, clear_session

logger = structlog.get_logger(__name__)


@dataclass
class IntentResult:
    ok: bool
    value: Any = None
    error: str | None = None


def _iso(moment):
    moment = as_utc(moment)
    return moment.isoformat() if moment else None


class Marketplace:
    def __init__(
        self,
        store=None,
        presenter=None,
        locations=None,
        clock=None,
        settings: MarketSettings | None = None,
        domain=streetmarket,
    ):
        self.domain = domain
        self.store = store or MemoryStore()
        self.presenter = presenter or RecordingPresenter()
        self.locations = locations or UserLocationProvider()
        self.clock = clock or SystemClock()
        self.settings = settings or MarketSettings.from_env()

        self.timers = TimerQueue(self.clock)
        self.notifier = Notifier(self.presenter, self.settings.notification_mode, clock=self.clock)
        self.fulfillment = OrderFulfillmentScheduler(
            self.timers,
            self.clock,
            self.notifier,
            grace_ms=self.settings.schedule_grace_ms,
        )
        self.proximity = ProximityMonitor(
            self.clock,
            self.notifier,
            self.locations,
            active_user=lambda: self.active_user_id,
            radius_km=self.settings.proximity_radius_km,
            cooldown_seconds=self.settings.cooldown_seconds,
        )

        self.active_user_id: str | None = None
        self.cart_id: str | None = None
        self.started = False

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def start(self):
        """Load the saved state, re-arm order timers and start proximity scans."""
        restored = snapshot.restore(self._load())

        preferences = {k: v for k, v in restored.settings.items() if k in USER_SETTINGS}
        if preferences:
            try:
                self._apply_settings(self.settings.merged(preferences))
            except ValueError as exc:
                logger.warning("Ignoring saved settings", error=str(exc))

        if restored.active_user_id and current_domain.repository_for(User).find(restored.active_user_id):
            self.active_user_id = str(restored.active_user_id)
            bind_session(user_id=self.active_user_id)

        self.cart_id = self._new_cart()
        self.fulfillment.rebuild()
        self.proximity.start(self.timers, self.settings.scan_interval_seconds)
        self.started = True
        logger.info("Marketplace started", active_user_id=self.active_user_id)

        for view in View:
            self.presenter.render(view)

    def shutdown(self):
        self.save()
        self.proximity.stop()
        self.fulfillment.clear()
        self.timers.cancel_all()
        self.started = False
        clear_session()
        logger.info("Marketplace stopped")

    def tick(self, now=None) -> int:
        """Run every timer that is due. Returns how many ran."""
        return self.timers.run_due(now or self.clock.now())

    def _load(self):
        try:
            return self.store.load()
        except PersistenceError as exc:
            logger.warning("Could not load saved state, starting empty", error=str(exc))
            self.presenter.toast("Saved data could not be loaded", 4000)
            return None

    def save(self) -> bool:
        try:
            self.store.save(snapshot.capture(self.settings.user_preferences(), self.active_user_id))
        except PersistenceError as exc:
            logger.warning("Could not save state", error=str(exc))
            self.presenter.toast("Could not save your changes", 4000)
            return False
        return True

    def _changed(self, *views: View):
        self.save()
        for view in views:
            self.presenter.render(view)

    def _new_cart(self) -> str:
        return current_domain.process(CreateCart(customer_id=self.active_user_id), asynchronous=False)

    # -------------------------------------------------------------------
    # Action boundary
    # -------------------------------------------------------------------
    def run_intent(self, intent, *args, **kwargs) -> IntentResult:
        """Run an intent, turning domain errors into a toast instead of raising."""
        try:
            return IntentResult(ok=True, value=intent(*args, **kwargs))
        except (ValidationError, ObjectNotFoundError) as exc:
            message = describe(exc)
            logger.info("Intent rejected", intent=getattr(intent, "__name__", str(intent)), reason=message)
            self.presenter.toast(message, 4000)
            return IntentResult(ok=False, error=message)

    # -------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------
    def active_user(self) -> User | None:
        if not self.active_user_id:
            return None
        return current_domain.repository_for(User).find(self.active_user_id)

    def _require_user(self) -> User:
        user = self.active_user()
        if user is None:
            raise NotLoggedInError({"user": ["Please log in first"]})
        return user

    def login(self, name, phone, role=Role.CUSTOMER.value, category=None) -> User:
        user_id = current_domain.process(
            RegisterOrFindUser(name=name, phone=phone, role=role, category=category),
            asynchronous=False,
        )
        user = current_domain.repository_for(User).fetch(user_id)

        self.active_user_id = str(user.id)
        bind_session(user_id=self.active_user_id)
        self.cart_id = self._new_cart()
        self.proximity.reset_cooldowns()
        record_activity(f"Logged in as {user.name} ({user.role})", self.clock.now())
        logger.info("Logged in", user_id=self.active_user_id, role=user.role)

        self._changed(View.VENDORS, View.CART, View.ORDERS, View.FAVORITES, View.ACTIVITY)
        return user

    def logout(self):
        logger.info("Logged out", user_id=self.active_user_id)
        self.active_user_id = None
        clear_session()
        self.cart_id = self._new_cart()
        self._changed(View.VENDORS, View.CART, View.ORDERS, View.FAVORITES)

    def set_my_location(self, latitude, longitude, manual=True) -> str | None:
        """Store the active user's position. Vendors move their stall.

        Returns the vendor id when the active user is a vendor.
        """
        user = self._require_user()
        if not is_valid_pair(latitude, longitude):
            raise LocationUnavailableError({"location": ["Enter a valid latitude and longitude"]})

        vendor_id = None
        if user.is_vendor:
            vendor_id = current_domain.process(
                SetVendorLocation(user_id=str(user.id), latitude=float(latitude), longitude=float(longitude)),
                asynchronous=False,
            )
        else:
            current_domain.process(
                SetUserLocation(
                    user_id=str(user.id),
                    latitude=float(latitude),
                    longitude=float(longitude),
                    manual=manual,
                ),
                asynchronous=False,
            )
        self._changed(View.VENDORS)
        return vendor_id

    # -------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------
    def create_vendor(self, name, category=None, latitude=None, longitude=None, active=False, meta=None) -> str:
        vendor_id = current_domain.process(
            CreateVendor(
                name=name,
                category=category,
                latitude=latitude,
                longitude=longitude,
                active=active,
                meta=meta,
            ),
            asynchronous=False,
        )
        self._changed(View.VENDORS, View.ACTIVITY)
        return vendor_id

    def add_product(self, vendor_id, name, price, description=None, image_url=None) -> str:
        product_id = current_domain.process(
            AddProduct(
                vendor_id=vendor_id,
                name=name,
                price=price,
                description=description,
                image_url=image_url,
            ),
            asynchronous=False,
        )
        self._changed(View.VENDORS)
        return product_id

    def remove_product(self, product_id, vendor_id=None):
        if vendor_id is not None:
            product = current_domain.repository_for(Product).fetch(product_id)
            if str(product.vendor_id) != str(vendor_id):
                raise not_found("product", product_id)
        current_domain.process(
            RemoveProduct(product_id=product_id, removed_at=self.clock.now()),
            asynchronous=False,
        )
        self._changed(View.VENDORS, View.CART, View.ACTIVITY)

    def remove_vendor(self, vendor_id) -> list[str]:
        """Remove a vendor and everything hanging off it. Returns cancelled order ids."""
        cancelled = current_domain.process(
            RemoveVendor(vendor_id=vendor_id, removed_at=self.clock.now()),
            asynchronous=False,
        )
        for order_id in cancelled:
            self.fulfillment.unschedule(order_id)
            self._notify_status_change(order_id, CancellationActor.SYSTEM.value)
        self._changed(View.VENDORS, View.CART, View.ORDERS, View.FAVORITES, View.ACTIVITY)
        return cancelled

    def set_vendor_active(self, vendor_id, active: bool):
        current_domain.process(SetVendorActive(vendor_id=vendor_id, active=active), asynchronous=False)
        self._changed(View.VENDORS)

    def browse(self, category=None, search=None, radius_km=None) -> list[dict]:
        origin = None
        if self.active_user_id:
            location = self.locations.current_location(self.active_user_id)
            origin = location.pair if location else None
        if origin is not None and radius_km is None:
            radius_km = self.settings.proximity_radius_km

        listings = browse_vendors(category=category, search=search, origin=origin, radius_km=radius_km)
        return [listing.to_dict() for listing in listings]

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def add_to_cart(self, product_id, quantity=1) -> bool:
        added = current_domain.process(
            AddToCart(cart_id=self.cart_id, product_id=product_id, quantity=quantity),
            asynchronous=False,
        )
        if added:
            self.presenter.render(View.CART)
            self.presenter.render(View.ACTIVITY)
        return added

    def remove_from_cart(self, product_id) -> bool:
        removed = current_domain.process(
            RemoveFromCart(cart_id=self.cart_id, product_id=product_id),
            asynchronous=False,
        )
        self._changed(View.CART)
        return removed

    def clear_cart(self):
        current_domain.process(ClearCart(cart_id=self.cart_id), asynchronous=False)
        self.presenter.render(View.CART)

    def cart_summary(self) -> dict:
        return summarize(current_domain.repository_for(Cart).get(self.cart_id))

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def place_order(self, scheduled_for=None, contact_name=None, contact_phone=None) -> list[str]:
        """Check the cart out, one order per vendor, and schedule their processing."""
        user = self._require_user()

        order_ids = current_domain.process(
            PlaceOrder(
                cart_id=self.cart_id,
                customer_id=str(user.id),
                scheduled_for=as_utc(scheduled_for),
                contact_name=contact_name or user.name,
                contact_phone=contact_phone or user.phone,
                placed_at=self.clock.now(),
            ),
            asynchronous=False,
        )
        # Persist the orders before any processing notice goes out
        self.save()

        for order_id in order_ids:
            self.fulfillment.schedule(order_id)

        self._changed(View.CART, View.ORDERS, View.ACTIVITY)
        return order_ids

    def _require_order_vendor(self, order_id) -> Order:
        """The order, provided the active user operates the vendor it belongs to."""
        user = self._require_user()
        order = current_domain.repository_for(Order).fetch(order_id)
        vendor = current_domain.repository_for(Vendor).find_by_user(user.id) if user.is_vendor else None
        if vendor is None or str(vendor.id) != str(order.vendor_id):
            raise ForbiddenActionError({"order_id": [f"Only the vendor of order {order.short_id} can change it"]})
        return order

    def accept_order(self, order_id):
        self._require_order_vendor(order_id)
        current_domain.process(AcceptOrder(order_id=order_id, accepted_at=self.clock.now()), asynchronous=False)
        self._notify_status_change(order_id, CancellationActor.VENDOR.value)
        self._changed(View.ORDERS, View.ACTIVITY)

    def complete_order(self, order_id):
        self._require_order_vendor(order_id)
        current_domain.process(CompleteOrder(order_id=order_id, completed_at=self.clock.now()), asynchronous=False)
        self._notify_status_change(order_id, CancellationActor.VENDOR.value)
        self._changed(View.ORDERS, View.ACTIVITY)

    def cancel_order(self, order_id, reason=None, cancelled_by=None):
        if cancelled_by is None:
            user = self.active_user()
            cancelled_by = (
                CancellationActor.VENDOR.value if user is not None and user.is_vendor else CancellationActor.CUSTOMER.value
            )

        current_domain.process(
            CancelOrder(
                order_id=order_id,
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=self.clock.now(),
            ),
            asynchronous=False,
        )
        self.fulfillment.unschedule(order_id)
        self._notify_status_change(order_id, cancelled_by)
        self._changed(View.ORDERS, View.ACTIVITY)

    def _notify_status_change(self, order_id, actor):
        """Tell the other side of the order about its new status."""
        order = current_domain.repository_for(Order).find(order_id)
        if order is None:
            return

        if actor == CancellationActor.CUSTOMER.value:
            vendor = current_domain.repository_for(Vendor).find(order.vendor_id)
            recipient_id = vendor.user_id if vendor else None
        else:
            recipient_id = order.customer_id

        self.notifier.notify(
            recipient_id=recipient_id,
            kind=NotificationKind.ORDER_STATUS.value,
            title=f"Order {order.short_id} {order.status}",
            body=order.cancellation_reason,
            duration_ms=4000,
        )

    def my_orders(self) -> list[dict]:
        user = self._require_user()
        orders = current_domain.repository_for(Order)
        if user.is_vendor:
            vendor = current_domain.repository_for(Vendor).find_by_user(user.id)
            found = orders.for_vendor(vendor.id) if vendor else []
        else:
            found = orders.for_customer(user.id)
        return [self.order_view(order) for order in found]

    def order_view(self, order: Order) -> dict:
        """Order details for display; vanished vendors and products show as None."""
        vendor = current_domain.repository_for(Vendor).find(order.vendor_id)
        products = current_domain.repository_for(Product)
        items = []
        for item in order.ordered_items():
            product = products.find(item.product_id)
            items.append(
                {
                    "product_id": str(item.product_id),
                    "name": product.name if product else None,
                    "unit_price": product.price if product else None,
                    "quantity": item.quantity,
                }
            )
        return {
            "order_id": str(order.id),
            "customer_id": str(order.customer_id),
            "vendor_id": str(order.vendor_id),
            "vendor_name": vendor.name if vendor else None,
            "items": items,
            "status": order.status,
            "scheduled_for": _iso(order.scheduled_for),
            "created_at": _iso(order.created_at),
            "processed_at": _iso(order.processed_at),
            "contact_name": order.contact_name,
            "contact_phone": order.contact_phone,
            "cancellation_reason": order.cancellation_reason,
            "cancelled_by": order.cancelled_by,
        }

    # -------------------------------------------------------------------
    # Favorites
    # -------------------------------------------------------------------
    def toggle_favorite(self, vendor_id) -> bool:
        saved = current_domain.process(
            ToggleFavorite(user_id=self.active_user_id, vendor_id=vendor_id),
            asynchronous=False,
        )
        self._changed(View.FAVORITES, View.ACTIVITY)
        return saved

    def remove_favorite(self, vendor_id) -> bool:
        removed = current_domain.process(
            RemoveFavorite(user_id=self.active_user_id, vendor_id=vendor_id),
            asynchronous=False,
        )
        self._changed(View.FAVORITES, View.ACTIVITY)
        return removed

    def favorites(self) -> list[dict]:
        user = self._require_user()
        favorites = current_domain.repository_for(FavoriteList).for_user(user.id)
        if favorites is None:
            return []

        vendors = current_domain.repository_for(Vendor)
        result = []
        for vendor_id in favorites.vendors:
            vendor = vendors.find(vendor_id)
            if vendor is None:
                continue
            result.append(
                {
                    "vendor_id": str(vendor.id),
                    "name": vendor.name,
                    "category": vendor.category,
                    "active": bool(vendor.active),
                }
            )
        return result

    # -------------------------------------------------------------------
    # Settings and activity
    # -------------------------------------------------------------------
    def update_settings(self, **changes) -> MarketSettings:
        """Validate and apply new settings. Invalid values raise ``ValidationError``."""
        try:
            updated = self.settings.merged(changes)
        except ValueError as exc:
            raise ValidationError({"settings": [str(exc)]}) from None

        self._apply_settings(updated)
        self._changed(View.VENDORS)
        return self.settings

    def _apply_settings(self, settings: MarketSettings):
        previous = self.settings
        self.settings = settings
        self.notifier.set_mode(settings.notification_mode)
        self.fulfillment.grace = timedelta(milliseconds=settings.schedule_grace_ms)
        self.proximity.radius_km = settings.proximity_radius_km
        self.proximity.cooldown_seconds = settings.cooldown_seconds

        if self.proximity.running and settings.scan_interval_seconds != previous.scan_interval_seconds:
            self.proximity.start(self.timers, settings.scan_interval_seconds)
        logger.info("Settings updated", **settings.user_preferences())

    def my_notifications(self, limit: int = 20) -> list[dict]:
        """The active user's most recent notices, newest first."""
        user = self._require_user()
        found = current_domain.repository_for(Notification).for_recipient(user.id, limit)
        return [
            {
                "notification_id": str(n.id),
                "kind": n.kind,
                "title": n.title,
                "body": n.body,
                "channel": n.channel,
                "status": n.status,
                "created_at": _iso(n.created_at),
            }
            for n in found
        ]

    def recent_activity(self) -> list[dict]:
        return [
            {"text": entry.text, "occurred_at": _iso(entry.occurred_at), "line": entry.render()}
            for entry in recent(self.settings.activity_limit)
        ]

