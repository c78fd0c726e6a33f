"""
FastAPI application factory.

* Registers routes for rides, notifications and admin.
* Opens / closes the Web Push gateway's HTTP session via lifespan events.
* Maps lifecycle errors to HTTP responses (``{"detail", "code"}``).
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rideshare.api.middleware import limiter
from rideshare.api.routes import admin, notifications, rides
from rideshare.config import settings
from rideshare.domain.exceptions import (
    Forbidden,
    InvalidRideState,
    RideConflict,
    RideError,
    RideNotFound,
    StoreFailure,
    UserNotFound,
)
from rideshare.infrastructure.push_gateway import WebPushGateway

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    RideNotFound: 404,
    UserNotFound: 404,
    Forbidden: 403,
    InvalidRideState: 409,
    RideConflict: 409,
    StoreFailure: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the push gateway on startup; close it on shutdown."""
    app.state.push_gateway = WebPushGateway(
        vapid_private_key=settings.vapid_private_key,
        vapid_subject=settings.vapid_subject,
        timeout_seconds=settings.push_timeout_seconds,
        ttl_seconds=settings.push_ttl_seconds,
    )
    yield
    await app.state.push_gateway.aclose()


async def ride_error_handler(request: Request, exc: RideError) -> JSONResponse:
    status = ERROR_STATUS.get(type(exc), 400)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status, content={"detail": str(exc), "code": exc.code}
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rideshare Lifecycle API",
        description=(
            "Ride lifecycle transitions (accept, cancel, finish, edit) with "
            "optimistic concurrency, plus in-app and push notifications for "
            "every transition."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Lifecycle errors
    app.add_exception_handler(RideError, ride_error_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(notifications.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
