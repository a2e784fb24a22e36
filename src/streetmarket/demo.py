"""Demo data — three vendors around one customer in Mysuru."""

import structlog
from protean.utils.globals import current_domain

from streetmarket.activity.feed import record_activity
from streetmarket.catalogue.user import User

logger = structlog.get_logger(__name__)

DEMO_CUSTOMER = {"name": "Demo Customer", "phone": "9999999999"}

DEMO_VENDORS = [
    {
        "name": "Fresh Samosas",
        "category": "food",
        "latitude": 12.307,
        "longitude": 76.652,
        "active": True,
        "meta": "Samosa vendor serving hot snacks",
        "products": [
            {"name": "Samosa", "price": 20, "description": "Crispy potato samosa"},
            {"name": "Tea", "price": 12, "description": "Hot masala tea"},
        ],
    },
    {
        "name": "Fruit Stall",
        "category": "fruits",
        "latitude": 12.309,
        "longitude": 76.655,
        "active": True,
        "meta": "Seasonal fruits & juices",
        "products": [
            {"name": "Banana (dozen)", "price": 60, "description": "Fresh bananas"},
            {"name": "Orange Juice", "price": 40, "description": "Freshly squeezed"},
        ],
    },
    {
        "name": "Cloth Corner",
        "category": "clothes",
        "latitude": 12.303,
        "longitude": 76.648,
        "active": False,
        "meta": "Handmade clothing",
        "products": [
            {"name": "T-Shirt", "price": 299, "description": "Cotton t-shirt, medium"},
        ],
    },
]


def load_demo_data(marketplace) -> bool:
    """Seed the demo and log the demo customer in.

    Does nothing, returning False, when any user already exists.
    """
    if current_domain.repository_for(User).list_all():
        logger.info("Demo already loaded")
        return False

    for stall in DEMO_VENDORS:
        vendor_id = marketplace.create_vendor(
            name=stall["name"],
            category=stall["category"],
            latitude=stall["latitude"],
            longitude=stall["longitude"],
            active=stall["active"],
            meta=stall["meta"],
        )
        for product in stall["products"]:
            marketplace.add_product(vendor_id, **product)

    marketplace.login(**DEMO_CUSTOMER)
    record_activity("Loaded demo data", marketplace.clock.now())
    marketplace.save()
    logger.info("Demo data loaded", vendors=len(DEMO_VENDORS))
    return True
