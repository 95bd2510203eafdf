"""Application middleware: rate limiting, CORS, logging, errors, shutdown."""

from __future__ import annotations

import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from cyberpulse.config import Settings
from cyberpulse.errors import (
    AuthorizationError,
    DistributionError,
    FetchError,
    NotFoundError,
    PreconditionError,
)
from cyberpulse.services.scheduler import Scheduler
from cyberpulse.store import data_store

logger = structlog.get_logger()


def get_limiter(settings: Settings) -> Limiter:
    """Create a rate limiter instance."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
    )


def configure_cors(app: FastAPI, settings: Settings) -> None:
    """Add CORS middleware to the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-RateLimit-Remaining"],
    )


def configure_rate_limiting(app: FastAPI, settings: Settings) -> None:
    """Apply the default rate limit to every route."""
    limiter = get_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)


async def logging_middleware(request: Request, call_next) -> Response:
    """Structured logging middleware: logs every request."""
    start_time = time.monotonic()
    response = await call_next(request)
    duration_ms = round((time.monotonic() - start_time) * 1000, 2)

    logger.info(
        "http_request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        client_ip=request.client.host if request.client else "unknown",
    )

    return response


def configure_request_logging(app: FastAPI) -> None:
    app.middleware("http")(logging_middleware)


def _error_handler(status_code: int, event: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.warning(event, path=request.url.path, error=str(exc))
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


async def _distribution_error_handler(request: Request, exc: DistributionError) -> JSONResponse:
    logger.warning("distribution_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "outcomes": jsonable_outcomes(exc.outcomes)},
    )


def jsonable_outcomes(outcomes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {**o, "sent_at": o["sent_at"].isoformat() if o.get("sent_at") else None}
        for o in outcomes
    ]


def configure_error_handlers(app: FastAPI) -> None:
    """Map engine errors to HTTP responses."""
    app.add_exception_handler(NotFoundError, _error_handler(404, "not_found"))
    app.add_exception_handler(AuthorizationError, _error_handler(403, "authorization_denied"))
    app.add_exception_handler(PreconditionError, _error_handler(409, "precondition_failed"))
    app.add_exception_handler(FetchError, _error_handler(502, "upstream_fetch_failed"))
    app.add_exception_handler(DistributionError, _distribution_error_handler)


def configure_structured_logging(settings: Settings) -> None:
    """Configure structlog for JSON or console output."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


_shutdown_requested = False


def is_shutdown_requested() -> bool:
    """Check if graceful shutdown has been requested."""
    return _shutdown_requested


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: logging, scheduler, signal handlers."""
    global _shutdown_requested

    settings = app.state.settings
    configure_structured_logging(settings)

    logger.info("application_starting", version=settings.app_version, environment=settings.environment)

    scheduler: Scheduler | None = None
    if settings.scheduler_enabled:
        scheduler = Scheduler(data_store, app.state.integrations, settings)
        scheduler.start()
    app.state.scheduler = scheduler

    def _handle_signal(signum, frame):
        global _shutdown_requested
        _shutdown_requested = True
        if scheduler is not None:
            scheduler.cancel.set()
        logger.info("shutdown_signal_received", signal=signum)

    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_signal)
        signal.signal(signal.SIGINT, _handle_signal)

    yield

    logger.info("application_shutting_down")
    _shutdown_requested = True
    if scheduler is not None:
        await scheduler.stop()
