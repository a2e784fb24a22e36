"""StreetMarket HTTP API package."""

from streetmarket.api.routes import (
    activity_router,
    cart_router,
    favorite_router,
    order_router,
    session_router,
    settings_router,
    vendor_router,
)

__all__ = [
    "session_router",
    "vendor_router",
    "cart_router",
    "order_router",
    "favorite_router",
    "settings_router",
    "activity_router",
]
