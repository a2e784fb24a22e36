"""Vendor listings for the browse screen."""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from streetmarket.catalogue.product import Product
from streetmarket.catalogue.vendor import Vendor
from streetmarket.shared.geo import distance_km


@dataclass
class VendorListing:
    vendor: Vendor
    products: list[Product] = field(default_factory=list)
    distance_km: float | None = None

    def to_dict(self) -> dict:
        vendor = self.vendor
        return {
            "vendor_id": str(vendor.id),
            "name": vendor.name,
            "category": vendor.category,
            "meta": vendor.meta,
            "active": bool(vendor.active),
            "location": vendor.location.to_json() if vendor.location else None,
            "distance_km": round(self.distance_km, 3) if self.distance_km is not None else None,
            "products": [
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "price": product.price,
                    "description": product.description,
                    "image_url": product.image_url,
                }
                for product in self.products
            ],
        }


def browse_vendors(category=None, search=None, origin=None, radius_km=None) -> list[VendorListing]:
    """Vendors sorted by name, filtered by category, search term and radius.

    ``origin`` is a ``(lat, lng)`` pair. Vendors without a location are never
    dropped by the radius filter; they are listed without a distance.
    """
    products = current_domain.repository_for(Product)
    term = (search or "").strip().lower()
    listings = []

    for vendor in current_domain.repository_for(Vendor).list_all():
        if category and vendor.category != category:
            continue

        catalogue = products.for_vendor(vendor)
        if term and not (vendor.matches(term) or any(product.matches(term) for product in catalogue)):
            continue

        distance = None
        if origin is not None and vendor.location is not None:
            distance = distance_km(origin, vendor.location.pair)
            if radius_km and distance > radius_km:
                continue

        listings.append(VendorListing(vendor=vendor, products=catalogue, distance_km=distance))

    return listings
