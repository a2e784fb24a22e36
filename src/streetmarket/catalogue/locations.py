"""Location updates for customers and vendors."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier
from protean.utils.globals import current_domain

from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.shared.geo_point import GeoPoint

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="User")
class SetUserLocation:
    """Store a customer's manual override or their device's latest fix."""

    user_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    manual = Boolean(default=True)


@streetmarket.command(part_of="Vendor")
class SetVendorLocation:
    """Place a vendor user's stall on the map, creating the profile if missing."""

    user_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)


@streetmarket.command_handler(part_of=User)
class UserLocationHandler:
    @handle(SetUserLocation)
    def set_user_location(self, command):
        repo = current_domain.repository_for(User)
        user = repo.fetch(command.user_id)
        point = GeoPoint(latitude=command.latitude, longitude=command.longitude)

        if command.manual:
            user.set_manual_location(point)
        else:
            user.record_fix(point)
        repo.add(user)


@streetmarket.command_handler(part_of=Vendor)
class VendorLocationHandler:
    @handle(SetVendorLocation)
    def set_vendor_location(self, command):
        user = current_domain.repository_for(User).fetch(command.user_id)
        if not user.is_vendor:
            raise ValidationError({"user_id": ["Only vendor accounts have a stall location"]})

        point = GeoPoint(latitude=command.latitude, longitude=command.longitude)
        repo = current_domain.repository_for(Vendor)
        vendor = repo.find_by_user(user.id)

        if vendor is None:
            vendor = Vendor.create(
                user_id=str(user.id),
                name=user.name,
                category=user.category,
                location=point,
                active=True,
            )
            logger.info("Vendor profile created from location update", vendor_id=str(vendor.id))
        else:
            vendor.relocate(point)

        repo.add(vendor)
        return str(vendor.id)
