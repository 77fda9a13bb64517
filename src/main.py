"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.middleware.error_handler import error_handler_middleware, request_validation_handler
from src.api.middleware.latency_logging import REQUEST_ID_HEADER, latency_logging_middleware
from src.api.middleware.request_size import request_size_limit_middleware
from src.api.routes import (
    auth,
    cart,
    catalog,
    checkout,
    health,
    listings,
    orders,
    reviews,
    webhooks,
    worker_auth,
)
from src.core.config import Settings, get_settings
from src.core.rate_limiter import init_rate_limiter, shutdown_rate_limiter
from src.core.stripe import configure_stripe

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_ROUTERS = (auth, worker_auth, catalog, listings, cart, orders, checkout, webhooks, reviews)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure Stripe and run the rate limiter cleanup for the app's lifetime."""
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    configure_stripe()
    await init_rate_limiter()

    try:
        yield
    finally:
        await shutdown_rate_limiter()
        logger.info("Shutting down %s", settings.app_name)


def _install_middleware(app: FastAPI, settings: Settings) -> None:
    # Last added runs first: latency logging sees every request, including
    # oversized bodies rejected before they reach the error handler.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Health checks are mounted at the root; everything else lives under ``/api``.
    """
    settings = get_settings()

    app = FastAPI(
        title="LocalConnect API",
        description="Local services marketplace backend: bookings, event tickets, checkout and reviews",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    _install_middleware(app, settings)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(health.router)

    api_router = APIRouter(prefix="/api")
    for module in API_ROUTERS:
        api_router.include_router(module.router)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("src.main:app", host=settings.host, port=settings.port, reload=settings.debug)
