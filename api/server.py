"""
KROCS API Server - REST API over the notification log and settings.

Run with:
    python -m cli.main serve
"""

import logging
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.notifications_router import notifications_router
from api.response_models import HealthResponse
from api.settings_router import settings_router
from krocs import config as config_module
from krocs.context import AppContext, open_context
from krocs.observability import CorrelationIdMiddleware

logger = logging.getLogger(__name__)


def create_app(ctx: AppContext | None = None, app_config: dict | None = None) -> FastAPI:
    """
    Build the FastAPI application around one AppContext.

    Tests pass their own context; the CLI opens the configured database.
    """
    app_config = app_config or config_module.load_config()

    app = FastAPI(
        title="KROCS API",
        description="Personal planning assistant: notifications and settings",
        version=config_module.STORAGE_VERSION,
    )
    app.state.ctx = ctx or open_context()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config_module.get(app_config, "api.cors_origins", ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(notifications_router)
    app.include_router(settings_router)

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> dict:
        return {
            "status": "healthy",
            "version": config_module.STORAGE_VERSION,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app


def serve(ctx: AppContext | None = None, app_config: dict | None = None) -> None:
    app_config = app_config or config_module.load_config()
    host = config_module.get(app_config, "api.host", "127.0.0.1")
    port = config_module.get(app_config, "api.port", 8420)
    logger.info("Starting API on %s:%s", host, port)
    uvicorn.run(create_app(ctx, app_config), host=host, port=port, log_config=None)
