"""StreetMarket FastAPI application.

The app wraps one ``Marketplace``. Every request runs inside the domain
context, and the lifespan starts the marketplace together with the timer
loop that drives deferred order processing and proximity scans.

Usage:
    streetmarket --demo                     # via streetmarket.server
"""

import asyncio
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from streetmarket.api import (
    activity_router,
    cart_router,
    favorite_router,
    order_router,
    session_router,
    settings_router,
    vendor_router,
)
from streetmarket.marketplace import Marketplace
from streetmarket.scheduling.loop import run_timer_loop
from streetmarket.shared.errors import (
    EmptyCartError,
    ForbiddenActionError,
    InvalidTransitionError,
    LocationUnavailableError,
    NotFoundError,
    NotLoggedInError,
    describe,
)

logger = structlog.get_logger(__name__)

# Domain error → HTTP status
_ERROR_STATUS = {
    NotLoggedInError: 401,
    EmptyCartError: 400,
    NotFoundError: 404,
    ForbiddenActionError: 403,
    InvalidTransitionError: 409,
    LocationUnavailableError: 422,
}


def _register_domain_error_handlers(app: FastAPI):
    def handler_for(status_code):
        async def handle(request: Request, exc: Exception) -> JSONResponse:
            message = describe(exc)
            request.app.state.marketplace.presenter.toast(message, 4000)
            logger.info("Request rejected", path=request.url.path, status=status_code, reason=message)
            return JSONResponse(status_code=status_code, content={"error": exc.messages})

        return handle

    for error_cls, status_code in _ERROR_STATUS.items():
        app.add_exception_handler(error_cls, handler_for(status_code))


def create_app(marketplace: Marketplace | None = None, run_timers: bool = True) -> FastAPI:
    marketplace = marketplace or Marketplace()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with marketplace.domain.domain_context():
            if not marketplace.started:
                marketplace.start()

        timer_task = asyncio.create_task(run_timer_loop(marketplace)) if run_timers else None
        try:
            yield
        finally:
            if timer_task is not None:
                timer_task.cancel()
                with suppress(asyncio.CancelledError):
                    await timer_task
            with marketplace.domain.domain_context():
                marketplace.shutdown()

    app = FastAPI(
        title="StreetMarket API",
        description="Local marketplace simulator — vendors, carts, orders and proximity alerts",
        lifespan=lifespan,
    )
    app.state.marketplace = marketplace

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Protean domain context for each request."""
        with marketplace.domain.domain_context():
            response = await call_next(request)
        return response

    register_exception_handlers(app)
    _register_domain_error_handlers(app)

    for router in (
        session_router,
        vendor_router,
        cart_router,
        order_router,
        favorite_router,
        settings_router,
        activity_router,
    ):
        app.include_router(router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domain": marketplace.domain.name,
                "started": marketplace.started,
                "timers": len(marketplace.timers),
                "proximity_scan": marketplace.proximity.running,
            }
        )

    return app
