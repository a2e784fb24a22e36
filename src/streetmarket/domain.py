"""StreetMarket domain — catalogue, cart, ordering, favorites and proximity.

All bounded-context packages below this directory register their elements
with the single ``streetmarket`` domain. ``streetmarket.init()`` traverses
the package and wires everything together.
"""

import structlog
from protean.domain import Domain

streetmarket = Domain(name="streetmarket")

logger = structlog.get_logger(__name__)
