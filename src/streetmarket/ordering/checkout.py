"""Checkout — split a multi-vendor cart into one order per vendor.

All checks run before anything is written, and the orders, the vendors'
order references and the emptied cart are committed in the same unit of
work. A failed checkout leaves no orders behind and the cart untouched.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from streetmarket.cart.cart import Cart
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.ordering.order import Order
from streetmarket.scheduling.clock import as_utc
from streetmarket.shared.errors import EmptyCartError, NotLoggedInError

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="Order")
class PlaceOrder:
    cart_id = Identifier(required=True)
    customer_id = Identifier()  # Checked by the handler so a missing session is reported as such
    scheduled_for = DateTime()
    contact_name = String(max_length=100)
    contact_phone = String(max_length=64)
    placed_at = DateTime()


@streetmarket.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        if not command.customer_id:
            raise NotLoggedInError({"customer": ["Customer not logged in"]})

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.get(command.cart_id)
        if cart.is_empty:
            raise EmptyCartError({"cart": ["Cart is empty"]})

        current_domain.repository_for(User).fetch(command.customer_id)

        # Group lines by vendor, vendors in order of first appearance
        products = current_domain.repository_for(Product)
        by_vendor: dict[str, list[tuple[str, int]]] = {}
        for line in cart.ordered_lines():
            product = products.fetch(line.product_id)
            if str(product.vendor_id) != str(line.vendor_id):
                raise ValidationError({"cart": [f"Product {product.name} is no longer sold by this vendor"]})
            by_vendor.setdefault(str(line.vendor_id), []).append((str(product.id), line.quantity))

        vendor_repo = current_domain.repository_for(Vendor)
        vendors = [vendor_repo.fetch(vendor_id) for vendor_id in by_vendor]

        placed_at = as_utc(command.placed_at)
        scheduled_for = as_utc(command.scheduled_for)
        orders = []
        for vendor in vendors:
            order = Order.place(
                customer_id=command.customer_id,
                vendor_id=str(vendor.id),
                vendor_name=vendor.name,
                lines=by_vendor[str(vendor.id)],
                placed_at=placed_at,
                scheduled_for=scheduled_for,
                contact_name=command.contact_name,
                contact_phone=command.contact_phone,
            )
            vendor.attach_order(order.id)
            orders.append(order)

        order_ids = [str(order.id) for order in orders]
        cart.check_out(order_ids)

        order_repo = current_domain.repository_for(Order)
        for order in orders:
            order_repo.add(order)
        for vendor in vendors:
            vendor_repo.add(vendor)
        cart_repo.add(cart)

        logger.info(
            "Checkout completed",
            customer_id=str(command.customer_id),
            order_ids=order_ids,
            scheduled_for=str(scheduled_for) if scheduled_for else None,
        )
        return order_ids
