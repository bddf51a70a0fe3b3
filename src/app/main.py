"""FastAPI application factory for the archive reconciliation service.

Run with ``uvicorn src.app.main:app --port 3080`` or ``python -m src.app.main``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from src.app.api.exception_handlers import register_exception_handlers
from src.app.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.app.api.v1.router import router as v1_router
from src.app.config import Settings, get_settings
from src.app.core.monitoring import MetricsMiddleware, get_metrics_response


def _warn_on_incomplete_crm_config(settings: Settings) -> None:
    """Startup is allowed without CRM settings; /process fails until they are set."""
    log = structlog.get_logger(__name__)
    if not settings.CRM_API_KEY:
        log.warning("startup.crm_api_key_missing")
    if not settings.CRM_URL_FIELD or not settings.CRM_STAGE_FIELD:
        log.warning(
            "startup.crm_fields_missing",
            url_field=settings.CRM_URL_FIELD,
            stage_field=settings.CRM_STAGE_FIELD,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_structlog()
    settings = get_settings()
    log = structlog.get_logger(__name__)

    _warn_on_incomplete_crm_config(settings)
    log.info("startup.complete", environment=settings.ENVIRONMENT.value, port=settings.PORT)
    yield
    log.info("shutdown.complete")


def create_app() -> FastAPI:
    """Build the app: CORS, request logging, metrics, error handlers, and the v1 routes."""
    settings = get_settings()

    app = FastAPI(
        title="Project Stage Reconciler",
        version="0.1.0",
        description="Reconciles CRM lead stages against uploaded XML project records",
        lifespan=lifespan,
    )

    # Last added runs first: metrics wraps logging, which wraps CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)
    app.include_router(v1_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return get_metrics_response()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
