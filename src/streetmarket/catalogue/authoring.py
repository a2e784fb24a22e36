"""Vendor and product authoring — commands and handlers."""

from uuid import uuid4

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from streetmarket.catalogue.product import Product
from streetmarket.catalogue.user import Role, User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.shared.geo_point import GeoPoint

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="Vendor")
class CreateVendor:
    """Create a vendor profile together with the vendor user that owns it."""

    name = String(required=True, max_length=100)
    category = String(max_length=50)
    latitude = Float()
    longitude = Float()
    active = Boolean(default=False)
    meta = Text()


@streetmarket.command(part_of="Vendor")
class SetVendorActive:
    vendor_id = Identifier(required=True)
    active = Boolean(required=True)


@streetmarket.command(part_of="Product")
class AddProduct:
    vendor_id = Identifier(required=True)
    name = String(required=True, max_length=150)
    price = Float(required=True, min_value=0.0)
    description = Text()
    image_url = String(max_length=500)


def point_or_none(latitude, longitude) -> GeoPoint | None:
    """A GeoPoint when both coordinates are given, else None."""
    if latitude is None and longitude is None:
        return None
    return GeoPoint(latitude=latitude, longitude=longitude)


def provision_vendor_user(name, category=None) -> User:
    """A vendor-role user with a synthetic, unique phone number."""
    user_id = str(uuid4())
    return User.register(
        name=name,
        phone=f"vendor-{user_id}",
        role=Role.VENDOR.value,
        category=category,
        user_id=user_id,
    )


@streetmarket.command_handler(part_of=Vendor)
class VendorAuthoringHandler:
    @handle(CreateVendor)
    def create_vendor(self, command):
        location = point_or_none(command.latitude, command.longitude)

        user = provision_vendor_user(command.name, command.category)
        vendor = Vendor.create(
            user_id=str(user.id),
            name=command.name,
            category=command.category,
            location=location,
            active=command.active,
            meta=command.meta,
        )

        current_domain.repository_for(User).add(user)
        current_domain.repository_for(Vendor).add(vendor)
        logger.info("Vendor created", vendor_id=str(vendor.id), user_id=str(user.id))
        return str(vendor.id)

    @handle(SetVendorActive)
    def set_vendor_active(self, command):
        repo = current_domain.repository_for(Vendor)
        vendor = repo.fetch(command.vendor_id)
        vendor.set_active(command.active)
        repo.add(vendor)


@streetmarket.command_handler(part_of=Product)
class ProductAuthoringHandler:
    @handle(AddProduct)
    def add_product(self, command):
        vendor_repo = current_domain.repository_for(Vendor)
        vendor = vendor_repo.fetch(command.vendor_id)

        product = Product.create(
            vendor_id=str(vendor.id),
            vendor_name=vendor.name,
            name=command.name,
            price=command.price,
            description=command.description,
            image_url=command.image_url,
        )
        vendor.list_product(product.id)

        current_domain.repository_for(Product).add(product)
        vendor_repo.add(vendor)
        return str(product.id)
