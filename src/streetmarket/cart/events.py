"""Domain events raised by the Cart aggregate."""

from protean.fields import Identifier, Integer, String, Text

from streetmarket.domain import streetmarket


@streetmarket.event(part_of="Cart")
class CartLineAdded:
    """A product was added, or its line's quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    product_name = String()
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@streetmarket.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@streetmarket.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    line_count = Integer(default=0)


@streetmarket.event(part_of="Cart")
class CartCheckedOut:
    """The cart's lines were turned into orders and the cart emptied."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier()
    order_ids = Text(required=True)  # JSON array of order ids
