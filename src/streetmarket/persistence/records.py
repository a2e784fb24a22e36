"""Pydantic records describing the on-disk snapshot layout (version 2)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PointRecord(_Record):
    lat: float
    lng: float


class UserRecord(_Record):
    id: str
    name: str
    phone: str
    role: str = "customer"
    category: str | None = None
    manual_location: PointRecord | None = None
    last_known_location: PointRecord | None = None
    registered_at: datetime | None = None


class VendorRecord(_Record):
    id: str
    user_id: str
    name: str
    category: str | None = None
    location: PointRecord | None = None
    active: bool = False
    product_ids: list[str] = Field(default_factory=list)
    order_ids: list[str] = Field(default_factory=list)
    meta: str | None = None
    created_at: datetime | None = None


class ProductRecord(_Record):
    id: str
    vendor_id: str
    name: str
    price: float
    description: str | None = None
    image_url: str | None = None
    created_at: datetime | None = None


class OrderItemRecord(_Record):
    product_id: str
    quantity: int = Field(ge=1)


class OrderRecord(_Record):
    id: str
    customer_id: str
    vendor_id: str
    items: list[OrderItemRecord] = Field(min_length=1)
    scheduled_for: datetime | None = None
    status: str = "pending"
    created_at: datetime
    contact_name: str | None = None
    contact_phone: str | None = None
    processed_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    updated_at: datetime | None = None


class ActivityRecord(_Record):
    text: str
    occurred_at: datetime
