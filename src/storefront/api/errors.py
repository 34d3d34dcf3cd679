"""Exception handlers mapping domain failures to HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.errors import (
    ConfigurationError,
    GatewayError,
    InsufficientStockError,
    PermissionDeniedError,
)

logger = structlog.get_logger(__name__)


def _messages(exc: Exception):
    return getattr(exc, "messages", None) or str(exc)


async def _insufficient_stock(request: Request, exc: InsufficientStockError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": _messages(exc),
            "product_id": exc.product_id,
            "available": exc.available,
            "requested": exc.requested,
        },
    )


async def _validation(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": _messages(exc)})


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": _messages(exc)})


async def _permission_denied(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": exc.message})


async def _gateway(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": GatewayError.public_message})


async def _configuration(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Missing configuration", setting=exc.setting, path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Service is not configured correctly"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InsufficientStockError, _insufficient_stock)
    app.add_exception_handler(ValidationError, _validation)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(PermissionDeniedError, _permission_denied)
    app.add_exception_handler(GatewayError, _gateway)
    app.add_exception_handler(ConfigurationError, _configuration)
