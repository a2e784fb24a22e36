"""Application tests for checkout: splitting a cart into per-vendor orders."""

import pytest
from protean import current_domain

from streetmarket.cart.cart import Cart
from streetmarket.cart.management import AddToCart, CreateCart
from streetmarket.catalogue.authoring import AddProduct, CreateVendor
from streetmarket.catalogue.product import Product
from streetmarket.catalogue.registration import RegisterOrFindUser
from streetmarket.catalogue.vendor import Vendor
from streetmarket.ordering.checkout import PlaceOrder
from streetmarket.ordering.order import Order, OrderStatus
from streetmarket.shared.errors import EmptyCartError, NotFoundError, NotLoggedInError


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestPlaceOrder:
    @pytest.fixture(autouse=True)
    def _market(self, run_around_tests):
        self.customer_id = _process(RegisterOrFindUser(name="Asha", phone="9000000001"))
        self.samosas = _process(CreateVendor(name="Fresh Samosas", active=True))
        self.fruits = _process(CreateVendor(name="Fruit Stall", active=True))
        self.samosa = _process(AddProduct(vendor_id=self.samosas, name="Samosa", price=20.0))
        self.tea = _process(AddProduct(vendor_id=self.samosas, name="Tea", price=12.0))
        self.juice = _process(AddProduct(vendor_id=self.fruits, name="Orange Juice", price=40.0))
        self.cart_id = _process(CreateCart(customer_id=self.customer_id))

    def _add(self, product_id, quantity=1):
        _process(AddToCart(cart_id=self.cart_id, product_id=product_id, quantity=quantity))

    def _checkout(self, **kwargs):
        kwargs.setdefault("customer_id", self.customer_id)
        return _process(PlaceOrder(cart_id=self.cart_id, contact_name="Asha", contact_phone="9000000001", **kwargs))

    def test_two_vendor_cart_gives_two_orders(self):
        self._add(self.juice)
        self._add(self.samosa, 2)
        self._add(self.tea)

        order_ids = self._checkout()

        assert len(order_ids) == 2
        orders = [current_domain.repository_for(Order).get(order_id) for order_id in order_ids]

        # Vendors in order of first appearance in the cart
        assert [order.vendor_id for order in orders] == [self.fruits, self.samosas]
        products = current_domain.repository_for(Vendor).get(self.samosas).products
        assert all(item.product_id in products for item in orders[1].items)
        assert [(i.product_id, i.quantity) for i in orders[1].ordered_items()] == [(self.samosa, 2), (self.tea, 1)]
        assert all(order.status == OrderStatus.PENDING.value for order in orders)
        assert all(order.contact_name == "Asha" for order in orders)

        assert current_domain.repository_for(Cart).get(self.cart_id).is_empty

    def test_vendors_reference_their_orders(self):
        self._add(self.samosa)
        [order_id] = self._checkout()
        assert current_domain.repository_for(Vendor).get(self.samosas).orders == [order_id]

    def test_empty_cart_raises_and_creates_nothing(self):
        with pytest.raises(EmptyCartError):
            self._checkout()
        assert current_domain.repository_for(Order).list_all() == []

    def test_requires_customer(self):
        self._add(self.samosa)
        with pytest.raises(NotLoggedInError):
            self._checkout(customer_id=None)

        assert current_domain.repository_for(Order).list_all() == []
        assert not current_domain.repository_for(Cart).get(self.cart_id).is_empty

    def test_missing_product_fails_without_side_effects(self):
        self._add(self.juice)
        self._add(self.samosa)
        product_repo = current_domain.repository_for(Product)
        product_repo._dao.delete(product_repo.get(self.samosa))

        with pytest.raises(NotFoundError):
            self._checkout()

        assert current_domain.repository_for(Order).list_all() == []
        assert len(current_domain.repository_for(Cart).get(self.cart_id).lines) == 2
        assert current_domain.repository_for(Vendor).get(self.fruits).orders == []
