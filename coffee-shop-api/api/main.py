"""
Coffee Shop Sales API - Main Application.

FastAPI application with CORS enabled for the point-of-sale frontend.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.errors import register_error_handlers
from api.routers import customers, products, sales
from repositories.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Tests pass their own Settings."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Coffee Shop Sales API",
        description="REST API for the coffee shop catalog, customers and sales",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        # credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, expose_internal_errors=settings.is_development)

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "coffee-shop-sales-api",
        }

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "Coffee Shop Sales API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
    app.include_router(products.router, prefix="/api/v1", tags=["Products"])
    app.include_router(customers.router, prefix="/api/v1", tags=["Customers"])

    return app


app = create_app()
