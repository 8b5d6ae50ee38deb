"""FastAPI application configuration module."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Environment must be loaded before any other config reads os.environ
from ..config.environment import IS_PRODUCTION_ENVIRONMENT
from ..config.cors import CORS_CONFIG
from ..config.security import AuthConfig, CronConfig
from ..db import Database
from .. import __version__
from .errors import register_exception_handlers
from .routes import (
    cron,
    dj_bookings,
    events,
    health,
    run_of_show
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    try:
        app.state.database.ensure_tables_exist()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    yield
    # Shutdown
    app.state.database.dispose()


def create_application(
    database: Optional[Database] = None,
    auth_config: Optional[AuthConfig] = None,
    cron_config: Optional[CronConfig] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Database to serve from (configured from environment when omitted)
        auth_config: Session token settings (from environment when omitted)
        cron_config: Cron trigger settings (from environment when omitted)
    """
    app = FastAPI(
        title="Deckly API",
        description="Run of show scheduling and Ticketmaster event import for nightlife venues",
        version=__version__,
        docs_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/docs',
        redoc_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/redoc',
        lifespan=lifespan
    )

    app.state.database = database or Database()
    app.state.auth_config = auth_config or AuthConfig()
    app.state.cron_config = cron_config or CronConfig()

    # Configure CORS
    app.add_middleware(CORSMiddleware, **CORS_CONFIG)
    register_exception_handlers(app)

    # Include health check router without prefix
    app.include_router(health.router)

    # Include routers with prefix
    app.include_router(cron.router, prefix="/api")
    app.include_router(events.router, prefix="/api")
    app.include_router(run_of_show.router, prefix="/api")
    app.include_router(dj_bookings.router, prefix="/api")

    return app
