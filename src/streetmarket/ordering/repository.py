from protean.exceptions import ObjectNotFoundError

from streetmarket.domain import streetmarket
from streetmarket.ordering.order import Order, OrderStatus
from streetmarket.shared.errors import not_found


@streetmarket.repository(part_of=Order)
class OrderRepository:
    def fetch(self, order_id) -> Order:
        try:
            return self.get(str(order_id))
        except ObjectNotFoundError:
            raise not_found("order", order_id) from None

    def find(self, order_id) -> Order | None:
        try:
            return self.get(str(order_id))
        except ObjectNotFoundError:
            return None

    def list_all(self) -> list[Order]:
        return sorted(self._dao.query.all().items, key=lambda o: o.created_at, reverse=True)

    def for_customer(self, customer_id) -> list[Order]:
        """Newest first."""
        orders = self._dao.query.filter(customer_id=str(customer_id)).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def for_vendor(self, vendor_id) -> list[Order]:
        orders = self._dao.query.filter(vendor_id=str(vendor_id)).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def open_for_vendor(self, vendor_id) -> list[Order]:
        return [order for order in self.for_vendor(vendor_id) if not order.is_terminal]

    def awaiting_processing(self) -> list[Order]:
        """Pending orders whose vendor has not been told about them yet."""
        pending = self._dao.query.filter(status=OrderStatus.PENDING.value).all().items
        return sorted(
            (order for order in pending if order.processed_at is None),
            key=lambda o: o.created_at,
        )
