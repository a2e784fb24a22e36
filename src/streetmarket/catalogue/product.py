"""Product aggregate — one item a vendor sells.

Products always belong to exactly one vendor. Prices are non-negative, finite
amounts in the marketplace's single currency.
"""

import math
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from streetmarket.catalogue.events import ProductAdded
from streetmarket.domain import streetmarket


@streetmarket.aggregate(limit=-1)
class Product:
    vendor_id = Identifier(required=True)
    name = String(required=True, max_length=150)
    price = Float(required=True, min_value=0.0)
    description = Text()
    image_url = String(max_length=500)
    created_at = DateTime()

    @invariant.post
    def price_must_be_finite(self):
        if self.price is not None and not math.isfinite(self.price):
            raise ValidationError({"price": ["Price must be a finite amount"]})

    @classmethod
    def create(cls, vendor_id, name, price, description=None, image_url=None, vendor_name=None):
        if isinstance(price, float) and not math.isfinite(price):
            raise ValidationError({"price": ["Price must be a finite amount"]})

        product = cls(
            vendor_id=vendor_id,
            name=(name or "").strip(),
            price=price,
            description=description,
            image_url=image_url or None,
            created_at=datetime.now(UTC),
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                vendor_id=str(vendor_id),
                vendor_name=vendor_name,
                name=product.name,
                price=product.price,
            )
        )
        return product

    def matches(self, term: str) -> bool:
        term = term.lower()
        return term in self.name.lower() or term in (self.description or "").lower()
