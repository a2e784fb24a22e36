"""Removing products and vendors.

Removing a vendor cascades: its products are deleted, its open orders are
cancelled on behalf of the system and it is dropped from every favorites
list. The vendor's user account stays. Completed and cancelled orders keep
their references to the vanished vendor and products.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from streetmarket.activity.feed import record_activity
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.ordering.order import CancellationActor, Order

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="Product")
class RemoveProduct:
    product_id = Identifier(required=True)
    removed_at = DateTime()


@streetmarket.command(part_of="Vendor")
class RemoveVendor:
    vendor_id = Identifier(required=True)
    removed_at = DateTime()


@streetmarket.command_handler(part_of=Product)
class ProductRemovalHandler:
    @handle(RemoveProduct)
    def remove_product(self, command):
        product_repo = current_domain.repository_for(Product)
        product = product_repo.fetch(command.product_id)

        vendor_repo = current_domain.repository_for(Vendor)
        vendor = vendor_repo.find(product.vendor_id)
        if vendor is not None:
            vendor.delist_product(product.id)
            vendor_repo.add(vendor)

        product_repo._dao.delete(product)
        record_activity(f"Removed product {product.name}", command.removed_at)
        logger.info("Product removed", product_id=str(product.id), vendor_id=str(product.vendor_id))


@streetmarket.command_handler(part_of=Vendor)
class VendorRemovalHandler:
    @handle(RemoveVendor)
    def remove_vendor(self, command):
        """Returns the ids of the orders cancelled by the removal."""
        vendor_repo = current_domain.repository_for(Vendor)
        vendor = vendor_repo.fetch(command.vendor_id)

        product_repo = current_domain.repository_for(Product)
        products = product_repo._dao.query.filter(vendor_id=str(vendor.id)).all().items
        for product in products:
            product_repo._dao.delete(product)

        order_repo = current_domain.repository_for(Order)
        cancelled = []
        for order in order_repo.open_for_vendor(vendor.id):
            order.cancel(
                reason=f"Vendor {vendor.name} was removed",
                cancelled_by=CancellationActor.SYSTEM.value,
                cancelled_at=command.removed_at,
            )
            order_repo.add(order)
            cancelled.append(str(order.id))

        favorites_repo = current_domain.repository_for(FavoriteList)
        for favorites in favorites_repo.holding(vendor.id):
            favorites.remove(vendor.id, vendor_name=vendor.name)
            favorites_repo.add(favorites)

        vendor_repo._dao.delete(vendor)
        record_activity(f"Removed vendor {vendor.name}", command.removed_at)
        logger.info(
            "Vendor removed",
            vendor_id=str(vendor.id),
            products_deleted=len(products),
            orders_cancelled=len(cancelled),
        )
        return cancelled
