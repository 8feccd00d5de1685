"""
FastAPI application factory for the Universal Agent Gateway.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings
from .database import DatabaseManager
from .tools import ShopifyClient
from .analytics import InteractionRecorder, AnalyticsService, analytics_router, webhooks_router
from .discovery import proxy_router
from .mcp import RpcDispatcher, mcp_router
from .merchants import ProfileService, merchants_router

logger = logging.getLogger(__name__)

SERVICE_NAME = "Universal Agent Gateway"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {SERVICE_NAME}")
    app.state.db_manager.create_tables()
    logger.info("✅ Database tables ready")
    yield
    logger.info(f"Shutting down {SERVICE_NAME}")
    app.state.db_manager.dispose()


def create_application(
    settings: Optional[Settings] = None,
    db_manager: Optional[DatabaseManager] = None,
    shopify_client: Optional[ShopifyClient] = None,
) -> FastAPI:
    """
    Create FastAPI application with all components.

    Args:
        settings: Defaults to Settings.from_env()
        db_manager: Defaults to a DatabaseManager for settings.database_url
        shopify_client: Defaults to a client for the configured API version
    """
    settings = settings or Settings.from_env()
    db_manager = db_manager or DatabaseManager(settings.database_url, echo=settings.sql_echo)
    shopify_client = shopify_client or ShopifyClient(
        api_version=settings.shopify_api_version,
        timeout=settings.http_timeout,
    )

    app = FastAPI(
        title=SERVICE_NAME,
        description="Multi-tenant MCP gateway exposing Shopify stores to AI shopping agents",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    recorder = InteractionRecorder(db_manager)
    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.shopify_client = shopify_client
    app.state.recorder = recorder
    app.state.dispatcher = RpcDispatcher(
        db_manager, shopify_client, recorder=recorder, app_url=settings.app_url
    )
    app.state.profile_service = ProfileService(db_manager)
    app.state.analytics_service = AnalyticsService(db_manager)

    app.include_router(mcp_router)
    app.include_router(proxy_router)
    app.include_router(webhooks_router)
    app.include_router(analytics_router)
    app.include_router(merchants_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"{SERVICE_NAME} is running"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": SERVICE_NAME, "version": __version__}

    return app
