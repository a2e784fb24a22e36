"""Cart management — commands, handler and the cart summary."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from streetmarket.cart.cart import Cart
from streetmarket.catalogue.product import Product
from streetmarket.domain import streetmarket

logger = structlog.get_logger(__name__)


@streetmarket.command(part_of="Cart")
class CreateCart:
    customer_id = Identifier()


@streetmarket.command(part_of="Cart")
class AddToCart:
    """Add ``quantity`` of a product. Unknown products leave the cart untouched."""

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@streetmarket.command(part_of="Cart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@streetmarket.command(part_of="Cart")
class ClearCart:
    cart_id = Identifier(required=True)


@streetmarket.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(customer_id=command.customer_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).find(command.product_id)
        if product is None:
            logger.info("Ignoring unknown product", product_id=str(command.product_id))
            return False

        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.add_line(
            product_id=str(product.id),
            vendor_id=str(product.vendor_id),
            quantity=command.quantity or 1,
            product_name=product.name,
        )
        repo.add(cart)
        return True

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        removed = cart.remove_line(command.product_id)
        if removed:
            repo.add(cart)
        return removed

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)


def summarize(cart: Cart) -> dict:
    """Subtotal and item count over lines whose product still exists.

    Lines pointing at deleted products are left out of the totals and listed
    under ``missing_product_ids`` so the caller can tell the customer.
    """
    products = current_domain.repository_for(Product)
    subtotal = 0.0
    count = 0
    missing = []
    lines = []

    for line in cart.ordered_lines():
        product = products.find(line.product_id)
        if product is None:
            missing.append(str(line.product_id))
            continue
        line_total = product.price * line.quantity
        subtotal += line_total
        count += line.quantity
        lines.append(
            {
                "product_id": str(product.id),
                "vendor_id": str(line.vendor_id),
                "name": product.name,
                "unit_price": product.price,
                "quantity": line.quantity,
                "line_total": line_total,
            }
        )

    if missing:
        logger.warning("Cart refers to products that no longer exist", cart_id=str(cart.id), product_ids=missing)

    return {
        "subtotal": subtotal,
        "count": count,
        "missing_product_ids": missing,
        "lines": lines,
    }
