"""Tests for product and vendor removal, including the vendor cascade."""

import pytest
from protean import current_domain

from streetmarket.cart.cart import Cart
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.ordering.order import CancellationActor, Order, OrderStatus
from streetmarket.shared.errors import NotFoundError


def _stall(marketplace, name="Fresh Samosas"):
    vendor_id = marketplace.create_vendor(name, category="food", latitude=12.307, longitude=76.652, active=True)
    samosa = marketplace.add_product(vendor_id, "Samosa", 20.0)
    tea = marketplace.add_product(vendor_id, "Tea", 12.0)
    return vendor_id, samosa, tea


class TestRemoveProduct:
    def test_removes_product_and_delists_it(self, marketplace):
        vendor_id, samosa, tea = _stall(marketplace)
        marketplace.remove_product(samosa, vendor_id=vendor_id)

        assert current_domain.repository_for(Product).find(samosa) is None
        assert current_domain.repository_for(Vendor).get(vendor_id).products == [tea]

    def test_cart_reports_removed_product_as_missing(self, marketplace):
        vendor_id, samosa, tea = _stall(marketplace)
        marketplace.login("Asha", "9000000001")
        marketplace.add_to_cart(samosa, 2)
        marketplace.add_to_cart(tea)

        marketplace.remove_product(samosa)
        summary = marketplace.cart_summary()

        assert summary["missing_product_ids"] == [samosa]
        assert summary["subtotal"] == 12.0
        assert summary["count"] == 1
        # The line stays in the cart until the customer removes it
        assert len(current_domain.repository_for(Cart).get(marketplace.cart_id).lines) == 2

    def test_product_of_another_vendor_is_not_found(self, marketplace):
        _, samosa, _ = _stall(marketplace)
        other_id, _, _ = _stall(marketplace, name="Other Stall")

        with pytest.raises(NotFoundError):
            marketplace.remove_product(samosa, vendor_id=other_id)
        assert current_domain.repository_for(Product).find(samosa) is not None

    def test_records_activity(self, marketplace, clock):
        _, samosa, _ = _stall(marketplace)
        clock.advance(minutes=3)
        marketplace.remove_product(samosa)

        [entry] = marketplace.recent_activity()[:1]
        assert entry["text"] == "Removed product Samosa"
        assert entry["occurred_at"] == clock.now().isoformat()


class TestRemoveVendor:
    def test_cascade(self, marketplace, presenter, clock):
        vendor_id, samosa, tea = _stall(marketplace)
        vendor_user_id = current_domain.repository_for(Vendor).get(vendor_id).user_id

        customer = marketplace.login("Asha", "9000000001")
        marketplace.toggle_favorite(vendor_id)
        marketplace.add_to_cart(samosa)
        [order_id] = marketplace.place_order(scheduled_for=clock.now().replace(hour=18))
        assert marketplace.fulfillment.is_scheduled(order_id)
        presenter.drain_toasts()

        clock.advance(minutes=5)
        cancelled = marketplace.remove_vendor(vendor_id)

        assert cancelled == [order_id]
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.updated_at == clock.now()
        assert order.cancelled_by == CancellationActor.SYSTEM.value
        assert order.cancellation_reason == "Vendor Fresh Samosas was removed"
        assert not marketplace.fulfillment.is_scheduled(order_id)

        assert current_domain.repository_for(Vendor).find(vendor_id) is None
        assert current_domain.repository_for(Product).find(samosa) is None
        assert current_domain.repository_for(Product).find(tea) is None
        assert current_domain.repository_for(FavoriteList).for_user(customer.id).vendors == []
        assert current_domain.repository_for(User).find(vendor_user_id) is not None

        toasts = [toast["text"] for toast in presenter.toasts]
        assert f"Order {order_id[:8]} cancelled: Vendor Fresh Samosas was removed" in toasts

    def test_terminal_orders_keep_dangling_references(self, marketplace):
        vendor_id, samosa, _ = _stall(marketplace)
        marketplace.login("Asha", "9000000001")
        marketplace.add_to_cart(samosa)
        [order_id] = marketplace.place_order()
        vendor_user_id = current_domain.repository_for(Vendor).get(vendor_id).user_id
        marketplace.login("Fresh Samosas", f"vendor-{vendor_user_id}")
        marketplace.accept_order(order_id)
        marketplace.complete_order(order_id)
        marketplace.login("Asha", "9000000001")

        assert marketplace.remove_vendor(vendor_id) == []

        [view] = marketplace.my_orders()
        assert view["order_id"] == order_id
        assert view["status"] == OrderStatus.COMPLETED.value
        assert view["vendor_name"] is None
        assert view["items"][0]["name"] is None
        assert view["items"][0]["quantity"] == 1

    def test_unknown_vendor(self, marketplace):
        with pytest.raises(NotFoundError):
            marketplace.remove_vendor("missing")
