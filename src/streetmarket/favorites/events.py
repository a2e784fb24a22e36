from protean.fields import Identifier, String

from streetmarket.domain import streetmarket


@streetmarket.event(part_of="FavoriteList")
class FavoriteAdded:
    __version__ = 1

    user_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()


@streetmarket.event(part_of="FavoriteList")
class FavoriteRemoved:
    __version__ = 1

    user_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
