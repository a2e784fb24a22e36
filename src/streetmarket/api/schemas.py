"""Pydantic request/response schemas for the StreetMarket API.

These are external contracts, kept separate from the Protean commands.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
class LoginRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=64)
    role: Literal["customer", "vendor"] = "customer"
    category: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Demo Customer",
                    "phone": "9999999999",
                    "role": "customer",
                }
            ]
        }
    }


class SessionResponse(BaseModel):
    user_id: str | None = None
    name: str | None = None
    role: str | None = None
    location: dict | None = None


class LocationRequest(BaseModel):
    latitude: float
    longitude: float
    manual: bool = True


class LocationResponse(BaseModel):
    vendor_id: str | None = None


class NoticesResponse(BaseModel):
    toasts: list[dict] = Field(default_factory=list)
    platform_notifications: list[dict] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Vendors and products
# ---------------------------------------------------------------------------
class CreateVendorRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    active: bool = False
    meta: str | None = None


class VendorIdResponse(BaseModel):
    vendor_id: str


class AddProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    price: float = Field(ge=0, allow_inf_nan=False)
    description: str | None = None
    image_url: str | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class SetActiveRequest(BaseModel):
    active: bool


class RemoveVendorResponse(BaseModel):
    cancelled_order_ids: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class AddToCartResponse(BaseModel):
    added: bool


class RemoveFromCartResponse(BaseModel):
    removed: bool


class CartSummaryResponse(BaseModel):
    subtotal: float
    count: int
    missing_product_ids: list[str] = Field(default_factory=list)
    lines: list[dict] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    scheduled_for: datetime | None = None
    contact_name: str | None = None
    contact_phone: str | None = None


class OrderIdsResponse(BaseModel):
    order_ids: list[str]


class CancelOrderRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Favorites, settings, activity
# ---------------------------------------------------------------------------
class ToggleFavoriteResponse(BaseModel):
    saved: bool


class SettingsRequest(BaseModel):
    proximity_radius_km: float | None = None
    notification_mode: Literal["popup", "browser"] | None = None


class SettingsResponse(BaseModel):
    proximity_radius_km: float
    notification_mode: str
    scan_interval_seconds: float
    cooldown_seconds: float
    schedule_grace_ms: int
    activity_limit: int
