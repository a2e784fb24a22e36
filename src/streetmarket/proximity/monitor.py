"""Proximity monitor — tells the active customer about nearby vendors.

A repeating timer (first run immediately) compares the customer's position
with every active vendor that has a location. A vendor within the radius is
announced at most once per cooldown window for each (customer, vendor)
pair; the window must have fully elapsed (strictly greater) before the same
pair is announced again.
"""

from collections.abc import Callable

import structlog
from protean.utils.globals import current_domain

from streetmarket.activity.feed import record_activity
from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.notifications.notification import NotificationKind
from streetmarket.proximity.location_port import LocationPort
from streetmarket.shared.geo import distance_km

logger = structlog.get_logger(__name__)

DEFAULT_RADIUS_KM = 1.0
DEFAULT_SCAN_INTERVAL_SECONDS = 12
DEFAULT_COOLDOWN_SECONDS = 120


class ProximityMonitor:
    def __init__(
        self,
        clock,
        notifier,
        locations: LocationPort,
        active_user: Callable[[], str | None],
        radius_km: float = DEFAULT_RADIUS_KM,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
    ):
        self.clock = clock
        self.notifier = notifier
        self.locations = locations
        self.active_user = active_user
        self.radius_km = radius_km
        self.cooldown_seconds = cooldown_seconds
        self._last_notified = {}
        self._timer_id = None
        self._timers = None

    # -------------------------------------------------------------------
    # Timer wiring
    # -------------------------------------------------------------------
    def start(self, timers, interval_seconds: float = DEFAULT_SCAN_INTERVAL_SECONDS):
        """Scan now and then every ``interval_seconds``. Restarting replaces the timer."""
        self.stop()
        self._timers = timers
        self._timer_id = timers.call_every(interval_seconds, self.run_scheduled_scan, first_in=0, name="proximity-scan")
        logger.info("Proximity monitor started", interval_seconds=interval_seconds, radius_km=self.radius_km)

    def stop(self):
        if self._timers is not None:
            self._timers.cancel(self._timer_id)
        self._timer_id = None

    @property
    def running(self) -> bool:
        return self._timers is not None and self._timers.is_scheduled(self._timer_id)

    def reset_cooldowns(self):
        self._last_notified.clear()

    def run_scheduled_scan(self):
        try:
            self.scan_once()
        except Exception as exc:
            logger.exception("Proximity scan failed", error=str(exc))

    # -------------------------------------------------------------------
    # Scan
    # -------------------------------------------------------------------
    def scan_once(self) -> list[str]:
        """Returns the ids of the vendors announced by this scan."""
        user_id = self.active_user()
        if not user_id:
            return []

        user = current_domain.repository_for(User).find(user_id)
        if user is None or not user.is_customer:
            return []

        location = self.locations.current_location(user_id)
        if location is None:
            return []

        now = self.clock.now()
        announced = []
        for vendor in current_domain.repository_for(Vendor).visible():
            distance = distance_km(location.pair, vendor.location.pair)
            if distance > self.radius_km:
                continue

            key = (str(user_id), str(vendor.id))
            last = self._last_notified.get(key)
            if last is not None and (now - last).total_seconds() <= self.cooldown_seconds:
                continue

            self._last_notified[key] = now
            self.notifier.notify(
                recipient_id=user_id,
                kind=NotificationKind.PROXIMITY.value,
                title=f"{vendor.name} is nearby ({distance:.2f} km)",
                body=vendor.blurb(),
                duration_ms=5000,
            )
            record_activity(f"Proximity: {vendor.name} within {distance:.2f} km", now)
            announced.append(str(vendor.id))

        if announced:
            logger.info("Nearby vendors announced", customer_id=str(user_id), vendor_ids=announced)
        return announced
