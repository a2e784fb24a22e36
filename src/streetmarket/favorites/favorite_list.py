"""FavoriteList aggregate — the vendors a user has saved.

References are non-owning: removing a vendor takes it off every list, and
readers skip ids that no longer resolve.
"""

import json

from protean.fields import Identifier, Text

from streetmarket.domain import streetmarket
from streetmarket.favorites.events import FavoriteAdded, FavoriteRemoved


@streetmarket.aggregate(limit=-1)
class FavoriteList:
    user_id = Identifier(required=True, unique=True)
    vendor_ids = Text()  # JSON array, in the order vendors were saved

    @classmethod
    def create(cls, user_id):
        return cls(user_id=str(user_id), vendor_ids=json.dumps([]))

    @property
    def vendors(self) -> list[str]:
        return json.loads(self.vendor_ids) if self.vendor_ids else []

    def contains(self, vendor_id) -> bool:
        return str(vendor_id) in self.vendors

    def add(self, vendor_id, vendor_name=None) -> bool:
        vendors = self.vendors
        if str(vendor_id) in vendors:
            return False
        vendors.append(str(vendor_id))
        self.vendor_ids = json.dumps(vendors)
        self.raise_(FavoriteAdded(user_id=str(self.user_id), vendor_id=str(vendor_id), vendor_name=vendor_name))
        return True

    def remove(self, vendor_id, vendor_name=None) -> bool:
        vendors = self.vendors
        if str(vendor_id) not in vendors:
            return False
        vendors.remove(str(vendor_id))
        self.vendor_ids = json.dumps(vendors)
        self.raise_(FavoriteRemoved(user_id=str(self.user_id), vendor_id=str(vendor_id), vendor_name=vendor_name))
        return True

    def toggle(self, vendor_id, vendor_name=None) -> bool:
        """Save or unsave ``vendor_id``. Returns True when it is now saved."""
        if self.contains(vendor_id):
            self.remove(vendor_id, vendor_name)
            return False
        self.add(vendor_id, vendor_name)
        return True
