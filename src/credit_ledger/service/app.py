"""FastAPI application factory for the ledger service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from .config import LedgerConfig
from .core import LedgerService
from .logging import get_logger
from .metrics import LedgerMetrics, MetricsMiddleware, add_metrics_endpoint
from .middleware import CorrelationIdMiddleware, get_correlation_id
from .models import ErrorResponse
from .router import build_router

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup/shutdown."""
    service: LedgerService = app.state.ledger_service
    logger.info(
        "ledger_starting",
        accounts=len(service.store),
        history_limit=service.store.history_limit,
    )
    yield
    logger.info("ledger_stopped", transactions=service.store.transaction_count())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ErrorResponse bodies."""
    body = ErrorResponse(
        detail=str(exc.detail),
        reason=getattr(exc, "reason", None),
        correlation_id=get_correlation_id(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


def create_ledger_app(
    config: LedgerConfig,
    **service_kwargs,
) -> FastAPI:
    """Create and configure the ledger FastAPI application.

    Args:
        config: LedgerConfig instance
        **service_kwargs: Additional kwargs passed to LedgerService

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Credit Ledger",
        description="In-memory account ledger with overdraft limits",
        version=__version__,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_middleware(CorrelationIdMiddleware)

    metrics = service_kwargs.pop("metrics", None) or LedgerMetrics()
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    add_metrics_endpoint(app, metrics)

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    ledger_service = LedgerService(config, metrics=metrics, **service_kwargs)
    app.include_router(build_router(ledger_service))

    app.state.ledger_service = ledger_service
    app.state.config = config

    @app.get("/healthz")
    def healthz() -> dict:
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "credit-ledger",
            "version": __version__,
            "checks": {"ledger": ledger_service.health()},
        }

    @app.get("/ready")
    def ready() -> dict:
        """Readiness probe - the ledger is ready once seeded."""
        return {
            "ready": len(ledger_service.store) > 0,
            "service": "credit-ledger",
        }

    return app


def create_app_from_env() -> FastAPI:
    """Create app using environment variable configuration."""
    return create_ledger_app(LedgerConfig.from_env())


__all__ = ["create_ledger_app", "create_app_from_env"]
