"""
Consentry FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (startup/shutdown)
- CORS configuration
- Rate limiting and error handling middleware
- Router registration
- Metrics endpoint

This is the production entry point for the Consentry backend.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from consentry import __version__
from consentry.api.middleware import ErrorHandlerMiddleware, RateLimitConfig, RateLimitMiddleware
from consentry.api.v1.router import api_router
from consentry.config import Settings, get_settings
from consentry.config.logging_config import configure_logging, get_logger
from consentry.infrastructure.database import DatabaseManager
from consentry.infrastructure.database.repositories import (
    ConsentRecordRepository,
    PreferenceRepository,
    SubscriptionRepository,
    WidgetRepository,
)
from consentry.infrastructure.metrics import metrics_router, update_system_info
from consentry.infrastructure.monitoring import init_sentry
from consentry.services.recording import ConsentEngine, build_consent_engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the consent engine over PostgreSQL stores unless one was
    injected when the application was created.
    """
    settings: Settings = app.state.settings
    db: Optional[DatabaseManager] = None

    logger.info(
        "Starting Consentry application",
        env=settings.env,
        version=__version__,
    )

    init_sentry(
        settings.sentry.dsn,
        environment=settings.env,
        release=f"consentry@{__version__}",
        traces_sample_rate=settings.sentry.traces_sample_rate,
    )
    update_system_info(settings.env, __version__)

    try:
        if app.state.consent_engine is None:
            db = DatabaseManager(settings)
            await db.initialize()
            app.state.db = db

            app.state.consent_engine = build_consent_engine(
                settings,
                records=ConsentRecordRepository(db),
                preferences=PreferenceRepository(db),
                widgets=WidgetRepository(db),
                subscriptions=SubscriptionRepository(db),
            )
            logger.info("Consent engine initialized")

        yield

    finally:
        logger.info("Shutting down Consentry application")

        if db is not None:
            await db.close()

        logger.info("Consentry application shutdown complete")


def create_application(
    settings: Optional[Settings] = None,
    consent_engine: Optional[ConsentEngine] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings override (defaults to environment settings)
        consent_engine: Pre-built engine; skips database wiring at startup

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Consentry API",
        description="Consent record reconciliation engine - Backend API",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.consent_engine = consent_engine
    app.state.db = None

    # Last added runs outermost: errors, rate limit, CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "Cache-Control"],
        max_age=86400,
    )
    app.add_middleware(
        RateLimitMiddleware,
        config=RateLimitConfig.from_settings(settings.rate_limit),
        enabled=settings.rate_limit.enabled,
    )
    app.add_middleware(ErrorHandlerMiddleware)

    # Register API routers
    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )
    app.include_router(metrics_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "Consentry API",
            "version": __version__,
            "status": "operational",
        }

    return app


def _build_default_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)
    return create_application(settings)


# Create application instance
app = _build_default_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "consentry.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.env == "development",
        log_level=_settings.log_level.lower(),
    )
