"""Repositories for the catalogue aggregates.

The base repository provides ``add``/``get``; the helpers here add the
lookups the marketplace needs and turn unknown ids into ``NotFoundError``.
"""

from protean.exceptions import ObjectNotFoundError

from streetmarket.catalogue.product import Product
from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.shared.errors import not_found


@streetmarket.repository(part_of=User)
class UserRepository:
    def fetch(self, user_id) -> User:
        try:
            return self.get(str(user_id))
        except ObjectNotFoundError:
            raise not_found("user", user_id) from None

    def find(self, user_id) -> User | None:
        try:
            return self.get(str(user_id))
        except ObjectNotFoundError:
            return None

    def find_by_phone(self, phone: str) -> User | None:
        """First user registered with ``phone``, if any."""
        matches = self._dao.query.filter(phone=phone.strip()).all().items
        return matches[0] if matches else None

    def list_all(self) -> list[User]:
        return self._dao.query.all().items


@streetmarket.repository(part_of=Vendor)
class VendorRepository:
    def fetch(self, vendor_id) -> Vendor:
        try:
            return self.get(str(vendor_id))
        except ObjectNotFoundError:
            raise not_found("vendor", vendor_id) from None

    def find(self, vendor_id) -> Vendor | None:
        try:
            return self.get(str(vendor_id))
        except ObjectNotFoundError:
            return None

    def find_by_user(self, user_id) -> Vendor | None:
        matches = self._dao.query.filter(user_id=str(user_id)).all().items
        return matches[0] if matches else None

    def list_all(self) -> list[Vendor]:
        return sorted(self._dao.query.all().items, key=lambda v: v.name.lower())

    def visible(self) -> list[Vendor]:
        """Vendors that are active and have a location."""
        return [vendor for vendor in self._dao.query.filter(active=True).all().items if vendor.location is not None]


@streetmarket.repository(part_of=Product)
class ProductRepository:
    def fetch(self, product_id) -> Product:
        try:
            return self.get(str(product_id))
        except ObjectNotFoundError:
            raise not_found("product", product_id) from None

    def find(self, product_id) -> Product | None:
        try:
            return self.get(str(product_id))
        except ObjectNotFoundError:
            return None

    def for_vendor(self, vendor: Vendor) -> list[Product]:
        """The vendor's products in catalogue order, skipping dangling ids."""
        return [product for product in (self.find(pid) for pid in vendor.products) if product is not None]

    def list_all(self) -> list[Product]:
        return self._dao.query.all().items
