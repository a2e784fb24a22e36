"""FastAPI endpoints — each one is a user intent on the Marketplace."""

from fastapi import APIRouter, Depends, Request

from streetmarket.api.schemas import (
    AddProductRequest,
    AddToCartRequest,
    AddToCartResponse,
    CancelOrderRequest,
    CartSummaryResponse,
    CreateVendorRequest,
    LocationRequest,
    LocationResponse,
    LoginRequest,
    NoticesResponse,
    OrderIdsResponse,
    PlaceOrderRequest,
    ProductIdResponse,
    RemoveFromCartResponse,
    RemoveVendorResponse,
    SessionResponse,
    SetActiveRequest,
    SettingsRequest,
    SettingsResponse,
    StatusResponse,
    ToggleFavoriteResponse,
    VendorIdResponse,
)
from streetmarket.marketplace import Marketplace


def get_marketplace(request: Request) -> Marketplace:
    return request.app.state.marketplace


session_router = APIRouter(prefix="/session", tags=["session"])
vendor_router = APIRouter(prefix="/vendors", tags=["vendors"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
favorite_router = APIRouter(prefix="/favorites", tags=["favorites"])
settings_router = APIRouter(prefix="/settings", tags=["settings"])
activity_router = APIRouter(prefix="/activity", tags=["activity"])


def _session(market: Marketplace) -> SessionResponse:
    user = market.active_user()
    if user is None:
        return SessionResponse()
    location = market.locations.current_location(user.id)
    return SessionResponse(
        user_id=str(user.id),
        name=user.name,
        role=user.role,
        location=location.to_json() if location else None,
    )


# --- Session endpoints ---


@session_router.get("", response_model=SessionResponse)
async def current_session(market: Marketplace = Depends(get_marketplace)) -> SessionResponse:
    return _session(market)


@session_router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, market: Marketplace = Depends(get_marketplace)) -> SessionResponse:
    market.login(name=body.name, phone=body.phone, role=body.role, category=body.category)
    return _session(market)


@session_router.post("/logout", response_model=StatusResponse)
async def logout(market: Marketplace = Depends(get_marketplace)) -> StatusResponse:
    market.logout()
    return StatusResponse()


@session_router.put("/location", response_model=LocationResponse)
async def set_location(body: LocationRequest, market: Marketplace = Depends(get_marketplace)) -> LocationResponse:
    vendor_id = market.set_my_location(body.latitude, body.longitude, manual=body.manual)
    return LocationResponse(vendor_id=vendor_id)


@session_router.get("/notices", response_model=NoticesResponse)
async def notices(market: Marketplace = Depends(get_marketplace)) -> NoticesResponse:
    """Toasts and platform notifications shown since the last call."""
    presenter = market.presenter
    platform = list(presenter.platform_notifications)
    presenter.platform_notifications.clear()
    return NoticesResponse(toasts=presenter.drain_toasts(), platform_notifications=platform)


@session_router.get("/notifications")
async def my_notifications(limit: int = 20, market: Marketplace = Depends(get_marketplace)) -> list[dict]:
    """Notices logged for the active user, newest first."""
    return market.my_notifications(limit=limit)


# --- Vendor endpoints ---


@vendor_router.get("")
async def browse(
    category: str | None = None,
    search: str | None = None,
    radius_km: float | None = None,
    market: Marketplace = Depends(get_marketplace),
) -> list[dict]:
    return market.browse(category=category, search=search, radius_km=radius_km)


@vendor_router.post("", status_code=201, response_model=VendorIdResponse)
async def create_vendor(body: CreateVendorRequest, market: Marketplace = Depends(get_marketplace)) -> VendorIdResponse:
    vendor_id = market.create_vendor(
        name=body.name,
        category=body.category,
        latitude=body.latitude,
        longitude=body.longitude,
        active=body.active,
        meta=body.meta,
    )
    return VendorIdResponse(vendor_id=vendor_id)


@vendor_router.post("/{vendor_id}/products", status_code=201, response_model=ProductIdResponse)
async def add_product(
    vendor_id: str, body: AddProductRequest, market: Marketplace = Depends(get_marketplace)
) -> ProductIdResponse:
    product_id = market.add_product(
        vendor_id,
        name=body.name,
        price=body.price,
        description=body.description,
        image_url=body.image_url,
    )
    return ProductIdResponse(product_id=product_id)


@vendor_router.delete("/{vendor_id}/products/{product_id}", response_model=StatusResponse)
async def remove_product(vendor_id: str, product_id: str, market: Marketplace = Depends(get_marketplace)):
    market.remove_product(product_id, vendor_id=vendor_id)
    return StatusResponse()


@vendor_router.put("/{vendor_id}/active", response_model=StatusResponse)
async def set_active(
    vendor_id: str, body: SetActiveRequest, market: Marketplace = Depends(get_marketplace)
) -> StatusResponse:
    market.set_vendor_active(vendor_id, body.active)
    return StatusResponse()


@vendor_router.delete("/{vendor_id}", response_model=RemoveVendorResponse)
async def remove_vendor(vendor_id: str, market: Marketplace = Depends(get_marketplace)) -> RemoveVendorResponse:
    return RemoveVendorResponse(cancelled_order_ids=market.remove_vendor(vendor_id))


# --- Cart endpoints ---


@cart_router.get("", response_model=CartSummaryResponse)
async def cart_summary(market: Marketplace = Depends(get_marketplace)) -> CartSummaryResponse:
    return CartSummaryResponse(**market.cart_summary())


@cart_router.post("/items", response_model=AddToCartResponse)
async def add_to_cart(body: AddToCartRequest, market: Marketplace = Depends(get_marketplace)) -> AddToCartResponse:
    return AddToCartResponse(added=market.add_to_cart(body.product_id, body.quantity))


@cart_router.delete("/items/{product_id}", response_model=RemoveFromCartResponse)
async def remove_from_cart(product_id: str, market: Marketplace = Depends(get_marketplace)) -> RemoveFromCartResponse:
    return RemoveFromCartResponse(removed=market.remove_from_cart(product_id))


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(market: Marketplace = Depends(get_marketplace)) -> StatusResponse:
    market.clear_cart()
    return StatusResponse()


# --- Order endpoints ---


@order_router.post("", status_code=201, response_model=OrderIdsResponse)
async def place_order(body: PlaceOrderRequest, market: Marketplace = Depends(get_marketplace)) -> OrderIdsResponse:
    order_ids = market.place_order(
        scheduled_for=body.scheduled_for,
        contact_name=body.contact_name,
        contact_phone=body.contact_phone,
    )
    return OrderIdsResponse(order_ids=order_ids)


@order_router.get("")
async def my_orders(market: Marketplace = Depends(get_marketplace)) -> list[dict]:
    return market.my_orders()


@order_router.put("/{order_id}/accept", response_model=StatusResponse)
async def accept_order(order_id: str, market: Marketplace = Depends(get_marketplace)) -> StatusResponse:
    market.accept_order(order_id)
    return StatusResponse()


@order_router.put("/{order_id}/complete", response_model=StatusResponse)
async def complete_order(order_id: str, market: Marketplace = Depends(get_marketplace)) -> StatusResponse:
    market.complete_order(order_id)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, market: Marketplace = Depends(get_marketplace)
) -> StatusResponse:
    market.cancel_order(order_id, reason=body.reason)
    return StatusResponse()


# --- Favorites endpoints ---


@favorite_router.get("")
async def favorites(market: Marketplace = Depends(get_marketplace)) -> list[dict]:
    return market.favorites()


@favorite_router.post("/{vendor_id}", response_model=ToggleFavoriteResponse)
async def toggle_favorite(vendor_id: str, market: Marketplace = Depends(get_marketplace)) -> ToggleFavoriteResponse:
    return ToggleFavoriteResponse(saved=market.toggle_favorite(vendor_id))


@favorite_router.delete("/{vendor_id}", response_model=StatusResponse)
async def remove_favorite(vendor_id: str, market: Marketplace = Depends(get_marketplace)) -> StatusResponse:
    market.remove_favorite(vendor_id)
    return StatusResponse()


# --- Settings and activity endpoints ---


@settings_router.get("", response_model=SettingsResponse)
async def get_settings(market: Marketplace = Depends(get_marketplace)) -> SettingsResponse:
    return SettingsResponse(**market.settings.model_dump())


@settings_router.put("", response_model=SettingsResponse)
async def update_settings(body: SettingsRequest, market: Marketplace = Depends(get_marketplace)) -> SettingsResponse:
    updated = market.update_settings(**body.model_dump(exclude_none=True))
    return SettingsResponse(**updated.model_dump())


@activity_router.get("")
async def recent_activity(market: Marketplace = Depends(get_marketplace)) -> list[dict]:
    return market.recent_activity()
