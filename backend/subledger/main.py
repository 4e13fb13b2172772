"""Subledger API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SubledgerError to structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized and tables created on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_all on startup instead of migrations: single table, no migration engine
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import subledger.infrastructure.database as database
from subledger.api.error_handlers import register_error_handlers
from subledger.api.routes import health, subscriptions
from subledger.config import get_settings
from subledger.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = database.init_db(
        settings.sqlalchemy_url(),
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await manager.create_tables()
    logger.info("Subledger API started")
    yield
    logger.info("Subledger API shutting down")
    await manager.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Subledger API",
        description="User subscription records with a date-bounded cost summary",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Routes: explicit registration
    app.include_router(health.router)
    app.include_router(subscriptions.router)
    register_error_handlers(app)
    return app


app = create_app()
