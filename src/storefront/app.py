"""Storefront FastAPI application.

Processes commands synchronously over HTTP. Each request runs inside the
storefront domain context.

Usage:
    uvicorn storefront.app:create_app --factory --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.errors import register_exception_handlers
from storefront.api.routes import cart_router, order_router, payment_router
from storefront.domain import storefront
from storefront.ordering.lifecycle import OrderLifecycleManager
from storefront.settings import Settings
from storefront.utils.logging import configure_logging


def create_app(
    settings: Settings | None = None,
    lifecycle: OrderLifecycleManager | None = None,
    bootstrap: bool = True,
) -> FastAPI:
    """Build the application.

    ``bootstrap`` configures logging and initialises the domain. Callers
    that have already done both (the test suite) pass ``False``.
    """
    settings = settings or Settings.from_env()
    if bootstrap:
        configure_logging()
        storefront.init()

    app = FastAPI(
        title="Storefront API",
        description="Carts, orders, stock and Webpay payments",
    )
    app.state.settings = settings
    app.state.lifecycle = lifecycle or OrderLifecycleManager.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the storefront domain context for each request."""
        with storefront.domain_context():
            return await call_next(request)

    register_exception_handlers(app)

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(payment_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": storefront.name})

    return app
