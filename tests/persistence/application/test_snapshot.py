"""Tests for snapshot capture/restore, legacy migration and the stores."""

import json
from datetime import timedelta

import pytest
from protean import current_domain

from streetmarket.catalogue.product import Product
from streetmarket.catalogue.registration import RegisterOrFindUser
from streetmarket.catalogue.user import User
from streetmarket.catalogue.vendor import Vendor
from streetmarket.config import MarketSettings
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.marketplace import Marketplace
from streetmarket.ordering.order import Order
from streetmarket.persistence import snapshot
from streetmarket.persistence.store import JsonFileStore, MemoryStore
from streetmarket.shared.errors import PersistenceError

LEGACY_SNAPSHOT = {
    "users": {
        "u1": {"id": "u1", "name": "Demo Customer", "phone": "9999999999", "role": "customer"},
        "u2": {"id": "u2", "name": "Fresh Samosas", "phone": "vendor-u2", "role": "vendor", "category": "food"},
    },
    "vendors": {
        "v1": {
            "id": "v1",
            "userId": "u2",
            "name": "Fresh Samosas",
            "category": "food",
            "location": {"lat": 12.307, "lng": 76.652},
            "active": True,
            "products": ["p1"],
            "orders": ["o1"],
            "meta": "Samosa vendor serving hot snacks",
        }
    },
    "products": {
        "p1": {"id": "p1", "vendorId": "v1", "name": "Samosa", "price": 20, "desc": "Crispy potato samosa", "img": ""}
    },
    "orders": {
        "o1": {
            "id": "o1",
            "customerId": "u1",
            "vendorId": "v1",
            "items": [{"productId": "p1", "qty": 2}],
            "schedule": None,
            "status": "accepted",
            "createdAt": "2024-01-01T08:00:00+00:00",
            "contactName": "Demo Customer",
            "contactPhone": "9999999999",
        }
    },
    "favorites": {"u1": {}},
    "recentActivity": ["Loaded demo data"],
    "settings": {"proximityRadiusKm": 2.5, "notificationMode": "browser"},
    "currentUserId": "u1",
}


def _restart():
    for _, provider in current_domain.providers.items():
        provider._data_reset()


def _populate(marketplace, clock):
    vendor_id = marketplace.create_vendor(
        "Fresh Samosas",
        category="food",
        latitude=12.307,
        longitude=76.652,
        active=True,
        meta="Samosa vendor serving hot snacks",
    )
    samosa = marketplace.add_product(vendor_id, "Samosa", 20.0, description="Crispy potato samosa")
    marketplace.login("Asha", "9000000001")
    marketplace.set_my_location(12.3071, 76.6521)
    marketplace.toggle_favorite(vendor_id)
    marketplace.add_to_cart(samosa, 2)
    [order_id] = marketplace.place_order(scheduled_for=clock.now() + timedelta(hours=2))
    return vendor_id, samosa, order_id


class TestCaptureRestore:
    def test_round_trip(self, marketplace, store, clock):
        vendor_id, samosa, order_id = _populate(marketplace, clock)
        captured = snapshot.capture(marketplace.settings.user_preferences(), marketplace.active_user_id)
        assert captured["version"] == snapshot.SNAPSHOT_VERSION
        # Carts are never written
        assert "carts" not in captured

        _restart()
        state = snapshot.restore(json.loads(json.dumps(captured)))

        assert state.active_user_id == marketplace.active_user_id
        assert state.counts["orders"] == 1

        vendor = current_domain.repository_for(Vendor).get(vendor_id)
        assert vendor.location.pair == (12.307, 76.652)
        assert vendor.products == [samosa]
        assert vendor.orders == [order_id]
        assert vendor.meta == "Samosa vendor serving hot snacks"

        order = current_domain.repository_for(Order).get(order_id)
        assert order.scheduled_for == clock.now() + timedelta(hours=2)
        assert [(item.product_id, item.quantity) for item in order.ordered_items()] == [(samosa, 2)]

        user = current_domain.repository_for(User).get(marketplace.active_user_id)
        assert user.manual_location.pair == (12.3071, 76.6521)

        favorites = current_domain.repository_for(FavoriteList).for_user(user.id)
        assert favorites.vendors == [vendor_id]

    def test_restore_does_not_repeat_activity(self, marketplace, clock):
        _populate(marketplace, clock)
        captured = snapshot.capture()
        before = [entry["text"] for entry in captured["recent_activity"]]

        _restart()
        snapshot.restore(captured)
        assert [entry["text"] for entry in snapshot.capture()["recent_activity"]] == before

    def test_missing_sections_default_to_empty(self):
        state = snapshot.restore({"version": 2, "users": [{"id": "u1", "name": "Asha", "phone": "1"}]})
        assert state.counts["users"] == 1
        assert state.counts["vendors"] == 0
        assert state.settings == {}
        assert state.active_user_id is None

    def test_unknown_keys_are_ignored(self):
        state = snapshot.restore({"version": 2, "theme": "dark", "users": []})
        assert state.counts["users"] == 0

    def test_invalid_records_are_skipped(self):
        data = {
            "version": 2,
            "products": [
                {"id": "p1", "vendor_id": "v1", "name": "Samosa", "price": 20},
                {"id": "p2", "vendor_id": "v1", "name": "Broken", "price": "free"},
                {"id": "p3", "vendor_id": "v1", "name": "Negative", "price": -4},
            ],
            "orders": [{"id": "o1", "customer_id": "u1", "vendor_id": "v1", "items": [], "created_at": "2024-01-01"}],
        }
        state = snapshot.restore(data)

        assert state.counts["products"] == 1
        assert state.counts["orders"] == 0
        assert [p.id for p in current_domain.repository_for(Product).list_all()] == ["p1"]

    def test_newer_version_is_refused(self):
        state = snapshot.restore({"version": 99, "users": [{"id": "u1", "name": "Asha", "phone": "1"}]})
        assert state.counts == {}
        assert current_domain.repository_for(User).list_all() == []

    def test_nothing_saved(self):
        assert snapshot.restore(None).counts == {}

    def test_more_than_a_hundred_records(self, marketplace):
        vendor_id = marketplace.create_vendor("Fresh Samosas")
        for n in range(120):
            marketplace.add_product(vendor_id, f"Snack {n}", 10.0)
            current_domain.process(RegisterOrFindUser(name=f"Customer {n}", phone=f"9100{n:06d}"), asynchronous=False)

        captured = snapshot.capture()
        assert len(captured["products"]) == 120
        # One more user operates the vendor
        assert len(captured["users"]) == 121

        _restart()
        state = snapshot.restore(captured)

        assert state.counts["products"] == 120
        assert len(current_domain.repository_for(User).list_all()) == 121
        assert len(current_domain.repository_for(Product).list_all()) == 120


class TestLegacyMigration:
    def test_migrates_camel_case_layout(self):
        migrated = snapshot.migrate_legacy(LEGACY_SNAPSHOT)

        assert migrated["version"] == snapshot.SNAPSHOT_VERSION
        assert migrated["vendors"][0]["user_id"] == "u2"
        assert migrated["products"][0]["description"] == "Crispy potato samosa"
        assert migrated["products"][0]["image_url"] is None
        assert migrated["orders"][0]["items"] == [{"product_id": "p1", "quantity": 2}]
        assert migrated["settings"] == {"proximity_radius_km": 2.5, "notification_mode": "browser"}
        assert migrated["active_user_id"] == "u1"
        # A saved Set came through as {} and carries nothing
        assert migrated["favorites"] == {}

    def test_restore_legacy(self):
        state = snapshot.restore(LEGACY_SNAPSHOT)

        assert state.active_user_id == "u1"
        assert state.settings["notification_mode"] == "browser"
        order = current_domain.repository_for(Order).get("o1")
        assert order.status == "accepted"
        assert order.contact_name == "Demo Customer"
        assert current_domain.repository_for(Vendor).get("v1").location.pair == (12.307, 76.652)

    def test_marketplace_applies_legacy_settings(self, presenter, clock):
        market = Marketplace(
            store=MemoryStore(LEGACY_SNAPSHOT),
            presenter=presenter,
            clock=clock,
            settings=MarketSettings(),
        )
        market.start()

        assert market.settings.proximity_radius_km == 2.5
        assert market.notifier.mode == "browser"
        assert market.active_user().name == "Demo Customer"
        market.shutdown()


class TestStores:
    def test_json_file_store_round_trip(self, tmp_path):
        store = JsonFileStore(tmp_path / "market.json")
        assert store.load() is None

        store.save({"version": 2, "users": []})
        assert store.load() == {"version": 2, "users": []}
        assert [p.name for p in tmp_path.iterdir()] == ["market.json"]

    def test_json_file_store_replaces_previous_snapshot(self, tmp_path):
        store = JsonFileStore(tmp_path / "market.json")
        store.save({"version": 2, "users": [{"id": "a"}]})
        store.save({"version": 2, "users": []})
        assert store.load()["users"] == []

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "market.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonFileStore(path).load()

    def test_unserializable_snapshot_leaves_no_temp_file(self, tmp_path):
        store = JsonFileStore(tmp_path / "market.json")
        with pytest.raises(PersistenceError):
            store.save({"bad": object()})
        assert list(tmp_path.iterdir()) == []

    def test_memory_store_failures(self):
        store = MemoryStore()
        store.configure(fail_saves=True)
        with pytest.raises(PersistenceError):
            store.save({})
        store.configure(fail_loads=True)
        with pytest.raises(PersistenceError):
            store.load()


class TestPersistenceFailures:
    def test_save_failure_is_not_fatal(self, marketplace, store, presenter):
        store.configure(fail_saves=True)

        vendor_id = marketplace.create_vendor("Fresh Samosas")

        assert current_domain.repository_for(Vendor).get(vendor_id).name == "Fresh Samosas"
        assert presenter.toasts[-1]["text"] == "Could not save your changes"

    def test_load_failure_starts_empty(self, presenter, clock):
        store = MemoryStore({"version": 2})
        store.configure(fail_loads=True)
        market = Marketplace(store=store, presenter=presenter, clock=clock, settings=MarketSettings())
        market.start()

        assert market.started
        assert presenter.toasts[0]["text"] == "Saved data could not be loaded"
        market.shutdown()

    def test_every_change_is_saved(self, marketplace, store):
        saves = store.saves
        marketplace.create_vendor("Fresh Samosas")
        assert store.saves == saves + 1
        assert store.snapshot["vendors"][0]["name"] == "Fresh Samosas"
