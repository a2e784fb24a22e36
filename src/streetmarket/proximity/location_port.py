"""Location port — where the proximity monitor gets a customer's position."""

from abc import ABC, abstractmethod

from protean.utils.globals import current_domain

from streetmarket.catalogue.user import User
from streetmarket.shared.geo_point import GeoPoint


class LocationPort(ABC):
    """Polled for the latest known coordinate of a user."""

    @abstractmethod
    def current_location(self, user_id) -> GeoPoint | None: ...


class UserLocationProvider(LocationPort):
    """Reads the user's manual override, falling back to their last fix."""

    def current_location(self, user_id) -> GeoPoint | None:
        user = current_domain.repository_for(User).find(user_id)
        if user is None:
            return None
        return user.current_location


class FixedLocationProvider(LocationPort):
    """Locations set directly by tests or a device simulator."""

    def __init__(self):
        self.locations: dict[str, GeoPoint] = {}

    def place(self, user_id, latitude, longitude):
        self.locations[str(user_id)] = GeoPoint(latitude=latitude, longitude=longitude)

    def forget(self, user_id):
        self.locations.pop(str(user_id), None)

    def current_location(self, user_id) -> GeoPoint | None:
        return self.locations.get(str(user_id))
