from streetmarket.domain import streetmarket
from streetmarket.favorites.favorite_list import FavoriteList


@streetmarket.repository(part_of=FavoriteList)
class FavoriteListRepository:
    def for_user(self, user_id) -> FavoriteList | None:
        matches = self._dao.query.filter(user_id=str(user_id)).all().items
        return matches[0] if matches else None

    def holding(self, vendor_id) -> list[FavoriteList]:
        """Every list that currently saves ``vendor_id``."""
        return [fav for fav in self._dao.query.all().items if fav.contains(vendor_id)]

    def list_all(self) -> list[FavoriteList]:
        return self._dao.query.all().items
