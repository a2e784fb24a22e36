"""Saving and unsaving favorite vendors."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from streetmarket.catalogue.vendor import Vendor
from streetmarket.domain import streetmarket
from streetmarket.favorites.favorite_list import FavoriteList
from streetmarket.shared.errors import NotLoggedInError


@streetmarket.command(part_of="FavoriteList")
class ToggleFavorite:
    user_id = Identifier()
    vendor_id = Identifier(required=True)


@streetmarket.command(part_of="FavoriteList")
class RemoveFavorite:
    """Unsave a vendor. Removing a vendor that is not saved is a no-op."""

    user_id = Identifier()
    vendor_id = Identifier(required=True)


def _require_user(user_id):
    if not user_id:
        raise NotLoggedInError({"user": ["Log in to manage favorites"]})


@streetmarket.command_handler(part_of=FavoriteList)
class FavoritesHandler:
    @handle(ToggleFavorite)
    def toggle_favorite(self, command):
        _require_user(command.user_id)
        vendor = current_domain.repository_for(Vendor).fetch(command.vendor_id)

        repo = current_domain.repository_for(FavoriteList)
        favorites = repo.for_user(command.user_id) or FavoriteList.create(command.user_id)
        saved = favorites.toggle(vendor.id, vendor_name=vendor.name)
        repo.add(favorites)
        return saved

    @handle(RemoveFavorite)
    def remove_favorite(self, command):
        _require_user(command.user_id)

        repo = current_domain.repository_for(FavoriteList)
        favorites = repo.for_user(command.user_id)
        if favorites is None:
            return False

        vendor = current_domain.repository_for(Vendor).find(command.vendor_id)
        removed = favorites.remove(command.vendor_id, vendor_name=vendor.name if vendor else None)
        if removed:
            repo.add(favorites)
        return removed
