"""User aggregate — a phone-identified customer or vendor operator.

Anyone can self-register with a phone number; logging in again with the same
phone returns the existing account. Customers carry up to two locations: a
manual override typed in by the user and the last fix reported by their
device. The override wins when both are present.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, ValueObject

from streetmarket.catalogue.events import UserLocationUpdated, UserRegistered
from streetmarket.domain import streetmarket
from streetmarket.shared.geo_point import GeoPoint


class Role(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"


@streetmarket.aggregate(limit=-1)
class User:
    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=64, unique=True)
    role = String(choices=Role, default=Role.CUSTOMER.value)
    category = String(max_length=50)
    manual_location = ValueObject(GeoPoint)
    last_known_location = ValueObject(GeoPoint)
    registered_at = DateTime()

    @classmethod
    def register(cls, name, phone, role=Role.CUSTOMER.value, category=None, user_id=None):
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name or not phone:
            raise ValidationError({"user": ["Name and phone are required"]})

        try:
            role = Role(role).value
        except ValueError:
            raise ValidationError({"role": [f"Unknown role: {role}"]}) from None

        now = datetime.now(UTC)
        kwargs = {"id": user_id} if user_id else {}
        user = cls(
            name=name,
            phone=phone,
            role=role,
            category=category,
            registered_at=now,
            **kwargs,
        )
        user.raise_(
            UserRegistered(
                user_id=str(user.id),
                name=user.name,
                phone=user.phone,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER.value

    @property
    def is_vendor(self) -> bool:
        return self.role == Role.VENDOR.value

    @property
    def current_location(self) -> GeoPoint | None:
        return self.manual_location or self.last_known_location

    def set_manual_location(self, point: GeoPoint):
        self.manual_location = point
        self._location_updated(point, manual=True)

    def record_fix(self, point: GeoPoint):
        self.last_known_location = point
        self._location_updated(point, manual=False)

    def clear_manual_location(self):
        self.manual_location = None

    def _location_updated(self, point, manual):
        self.raise_(
            UserLocationUpdated(
                user_id=str(self.id),
                latitude=point.latitude,
                longitude=point.longitude,
                manual=manual,
            )
        )
