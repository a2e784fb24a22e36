"""Domain events for the catalogue: users, vendors and products."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from streetmarket.domain import streetmarket


@streetmarket.event(part_of="User")
class UserRegistered:
    """A new phone number signed up as a customer or vendor."""

    __version__ = 1

    user_id = Identifier(required=True)
    name = String(required=True)
    phone = String(required=True)
    role = String(required=True)
    registered_at = DateTime(required=True)


@streetmarket.event(part_of="User")
class UserLocationUpdated:
    """A customer saved a manual location or reported a new fix."""

    __version__ = 1

    user_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    manual = Boolean(default=False)


@streetmarket.event(part_of="Vendor")
class VendorCreated:
    __version__ = 1

    vendor_id = Identifier(required=True)
    user_id = Identifier(required=True)
    name = String(required=True)
    category = String()
    active = Boolean(default=False)
    created_at = DateTime(required=True)


@streetmarket.event(part_of="Vendor")
class VendorRelocated:
    """The vendor moved; relocating also puts the vendor on the map."""

    __version__ = 1

    vendor_id = Identifier(required=True)
    name = String(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)


@streetmarket.event(part_of="Vendor")
class VendorActivationChanged:
    __version__ = 1

    vendor_id = Identifier(required=True)
    name = String(required=True)
    active = Boolean(required=True)


@streetmarket.event(part_of="Product")
class ProductAdded:
    __version__ = 1

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    name = String(required=True)
    price = Float(required=True)
