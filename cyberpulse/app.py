"""CyberPulse: FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from cyberpulse.config import Settings, get_settings
from cyberpulse.middleware import (
    configure_cors,
    configure_error_handlers,
    configure_rate_limiting,
    configure_request_logging,
    lifespan,
)
from cyberpulse.routers import health, metrics, reports, scores
from cyberpulse.services.integrations import Integrations, build_default_integrations
from cyberpulse.services.widget_catalog import seed_default_widgets
from cyberpulse.store import data_store


def create_app(settings: Settings | None = None, integrations: Integrations | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()
    if integrations is None:
        integrations = build_default_integrations(settings, data_store)

    app = FastAPI(
        title="CyberPulse",
        description="Security maturity scoring and quarterly cyber risk reports",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.integrations = integrations
    app.state.scheduler = None

    seed_default_widgets(data_store)

    # Middleware
    configure_cors(app, settings)
    configure_rate_limiting(app, settings)
    configure_request_logging(app)
    configure_error_handlers(app)

    # Routers
    app.include_router(health.router)
    app.include_router(scores.router, prefix=settings.api_prefix)
    app.include_router(reports.router, prefix=settings.api_prefix)
    app.include_router(metrics.router, prefix=settings.api_prefix)

    return app


# Default app instance for uvicorn
app = create_app()
