"""Cart aggregate — the customer's in-progress basket.

The cart lives only as long as the process; it is never written to the
snapshot. Lines are keyed by product: adding a product that is already in
the cart sums the quantities. ``position`` keeps lines in the order they
were first added, which is also the order vendors appear in at checkout.
"""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, HasMany, Identifier, Integer

from streetmarket.cart.events import CartCheckedOut, CartCleared, CartLineAdded, CartLineRemoved
from streetmarket.domain import streetmarket


@streetmarket.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    position = Integer(default=0)


@streetmarket.aggregate(limit=-1)
class Cart:
    customer_id = Identifier()
    lines = HasMany(CartLine)
    next_position = Integer(default=0)
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id=None):
        return cls(customer_id=customer_id, next_position=0, updated_at=datetime.now(UTC))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.lines

    def ordered_lines(self) -> list[CartLine]:
        return sorted(self.lines, key=lambda line: line.position)

    def line_for(self, product_id) -> CartLine | None:
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def vendor_ids(self) -> list[str]:
        """Vendors in the order their first line was added."""
        seen = []
        for line in self.ordered_lines():
            if str(line.vendor_id) not in seen:
                seen.append(str(line.vendor_id))
        return seen

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_line(self, product_id, vendor_id, quantity=1, product_name=None):
        existing = self.line_for(product_id)
        if existing is not None:
            existing.quantity += quantity
            line_quantity = existing.quantity
        else:
            self.add_lines(
                CartLine(
                    product_id=str(product_id),
                    vendor_id=str(vendor_id),
                    quantity=quantity,
                    position=self.next_position,
                )
            )
            self.next_position += 1
            line_quantity = quantity

        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                vendor_id=str(vendor_id),
                product_name=product_name,
                quantity=quantity,
                line_quantity=line_quantity,
            )
        )

    def remove_line(self, product_id) -> bool:
        line = self.line_for(product_id)
        if line is None:
            return False

        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartLineRemoved(cart_id=str(self.id), product_id=str(product_id)))
        return True

    def clear(self):
        line_count = self._drop_all_lines()
        self.raise_(CartCleared(cart_id=str(self.id), line_count=line_count))

    def check_out(self, order_ids):
        self._drop_all_lines()
        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                customer_id=str(self.customer_id) if self.customer_id else None,
                order_ids=json.dumps([str(oid) for oid in order_ids]),
            )
        )

    def _drop_all_lines(self) -> int:
        lines = list(self.lines)
        for line in lines:
            self.remove_lines(line)
        self.next_position = 0
        self.updated_at = datetime.now(UTC)
        return len(lines)
