"""Tests for the recent-activity feed."""

from datetime import UTC, datetime

from protean import current_domain

from streetmarket.activity.feed import ACTIVITY_LIMIT, clear_activity, recent, record_activity
from streetmarket.catalogue.vendor import Vendor


class TestRecordActivity:
    def test_newest_first(self):
        record_activity("first")
        record_activity("second")
        assert [entry.text for entry in recent()] == ["second", "first"]

    def test_capped_at_limit(self):
        for i in range(ACTIVITY_LIMIT + 5):
            record_activity(f"entry {i}")

        entries = recent(100)
        assert len(entries) == ACTIVITY_LIMIT
        assert entries[0].text == f"entry {ACTIVITY_LIMIT + 4}"
        assert entries[-1].text == "entry 5"

    def test_render(self):
        entry = record_activity("Loaded demo data", datetime(2024, 1, 1, 9, 30, 5, tzinfo=UTC))
        assert entry.render() == "2024-01-01 09:30:05: Loaded demo data"

    def test_clear(self):
        record_activity("something")
        clear_activity()
        assert recent() == []


class TestActivityProjector:
    def test_catalogue_and_cart_events(self, marketplace):
        vendor_id = marketplace.create_vendor("Fresh Samosas")
        product_id = marketplace.add_product(vendor_id, "Samosa", 20.0)
        marketplace.set_vendor_active(vendor_id, True)
        marketplace.add_to_cart(product_id)

        texts = [entry["text"] for entry in marketplace.recent_activity()]
        assert texts[:4] == [
            "Added to cart: Samosa",
            "Fresh Samosas is now active",
            "Added product Samosa for Fresh Samosas",
            "Created vendor profile for Fresh Samosas",
        ]

    def test_order_events(self, marketplace):
        vendor_id = marketplace.create_vendor("Fresh Samosas", active=True)
        product_id = marketplace.add_product(vendor_id, "Samosa", 20.0)
        marketplace.login("Asha", "9000000001")
        marketplace.add_to_cart(product_id)
        [order_id] = marketplace.place_order()
        vendor_user = current_domain.repository_for(Vendor).get(vendor_id).user_id
        marketplace.login("Fresh Samosas", f"vendor-{vendor_user}")
        marketplace.accept_order(order_id)

        texts = [entry["text"] for entry in marketplace.recent_activity()]
        short = order_id[:8]
        assert texts[:4] == [
            f"Order {short} marked accepted",
            "Logged in as Fresh Samosas (vendor)",
            f"Order #{short} ready for vendor Fresh Samosas",
            f"Order placed (#{short}) for vendor Fresh Samosas",
        ]

    def test_display_limit_follows_settings(self, marketplace):
        for i in range(10):
            record_activity(f"entry {i}")
        marketplace.settings.activity_limit = 3
        assert len(marketplace.recent_activity()) == 3
