"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (one per bounded context)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Ledger database engine and notification channel

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.infrastructure.brokerage.database import (
    build_engine,
    build_session_factory,
    init_db,
)
from app.infrastructure.brokerage.notifier import build_notifier
from app.infrastructure.brokerage.unit_of_work import SqlAlchemyUnitOfWork
from app.interfaces.brokerage.router import router as brokerage_router
from app.interfaces.health import router as health_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.security.headers import SecurityHeadersMiddleware
from app.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: ensure tables on startup, release the pool on shutdown."""
    if settings.create_tables_on_startup:
        init_db(app.state.engine)
    logger.info("%s %s started", settings.project_name, settings.version)

    yield

    app.state.engine.dispose()


def create_app(database_url: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Args:
        database_url: Overrides ``settings.database_url`` (used by tests).

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level, sql_echo=settings.database_echo)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Ledger store ---
    engine = build_engine(database_url or settings.database_url, echo=settings.database_echo)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.notifier = build_notifier(
        settings.notification_webhook_url,
        timeout=settings.notification_timeout_seconds,
        uow_factory=(
            partial(SqlAlchemyUnitOfWork, app.state.session_factory)
            if settings.notification_inbox_enabled
            else None
        ),
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(brokerage_router, prefix="/api/v1")

    return app


app = create_app()
