"""Tests for saving and unsaving favorite vendors."""

import pytest
from protean import current_domain

from streetmarket.catalogue.authoring import CreateVendor
from streetmarket.catalogue.registration import RegisterOrFindUser
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.favorites.management import RemoveFavorite, ToggleFavorite
from streetmarket.shared.errors import NotFoundError, NotLoggedInError


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestFavoriteList:
    def test_toggle(self):
        favorites = FavoriteList.create("user-001")
        assert favorites.toggle("v1") is True
        assert favorites.toggle("v2") is True
        assert favorites.vendors == ["v1", "v2"]

        assert favorites.toggle("v1") is False
        assert favorites.vendors == ["v2"]

    def test_add_is_idempotent(self):
        favorites = FavoriteList.create("user-001")
        assert favorites.add("v1") is True
        assert favorites.add("v1") is False
        assert favorites.vendors == ["v1"]


class TestFavoriteCommands:
    @pytest.fixture(autouse=True)
    def _users(self, run_around_tests):
        self.user_id = _process(RegisterOrFindUser(name="Asha", phone="9000000001"))
        self.vendor_id = _process(CreateVendor(name="Fresh Samosas"))

    def test_toggle_saves_then_removes(self):
        assert _process(ToggleFavorite(user_id=self.user_id, vendor_id=self.vendor_id)) is True
        favorites = current_domain.repository_for(FavoriteList).for_user(self.user_id)
        assert favorites.vendors == [self.vendor_id]

        assert _process(ToggleFavorite(user_id=self.user_id, vendor_id=self.vendor_id)) is False
        favorites = current_domain.repository_for(FavoriteList).for_user(self.user_id)
        assert favorites.vendors == []

    def test_unknown_vendor(self):
        with pytest.raises(NotFoundError):
            _process(ToggleFavorite(user_id=self.user_id, vendor_id="missing"))

    def test_requires_login(self):
        with pytest.raises(NotLoggedInError):
            _process(ToggleFavorite(vendor_id=self.vendor_id))

    def test_remove_is_idempotent(self):
        assert _process(RemoveFavorite(user_id=self.user_id, vendor_id=self.vendor_id)) is False

        _process(ToggleFavorite(user_id=self.user_id, vendor_id=self.vendor_id))
        assert _process(RemoveFavorite(user_id=self.user_id, vendor_id=self.vendor_id)) is True
        assert _process(RemoveFavorite(user_id=self.user_id, vendor_id=self.vendor_id)) is False


class TestFavoritesView:
    def test_lists_saved_vendors(self, marketplace):
        vendor_id = marketplace.create_vendor("Fresh Samosas", category="food", active=True)
        marketplace.login("Asha", "9000000001")

        assert marketplace.toggle_favorite(vendor_id) is True
        assert marketplace.favorites() == [
            {"vendor_id": vendor_id, "name": "Fresh Samosas", "category": "food", "active": True}
        ]
        assert marketplace.recent_activity()[0]["text"] == "Saved favorite: Fresh Samosas"

    def test_toggle_without_login_is_reported(self, marketplace, presenter):
        vendor_id = marketplace.create_vendor("Fresh Samosas")
        result = marketplace.run_intent(marketplace.toggle_favorite, vendor_id)

        assert result.ok is False
        assert presenter.toasts[-1]["text"] == "Log in to manage favorites"
