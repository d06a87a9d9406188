"""
Records Service: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn records_service.main:app) or `records-service`.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌─────────┐  │
    │  │  Req ID  │→│ Logging  │→│ Metrics  │→│GZip/CORS│  │
    │  └──────────┘ └──────────┘ └──────────┘ └─────────┘  │
    │                                                      │
    │  Routes:                                             │
    │  ┌────────────────┐ ┌─────────┐ ┌──────────────────┐ │
    │  │ /api/v1/records│ │ /health │ │ /metrics /swagger│ │
    │  └────────────────┘ └─────────┘ └──────────────────┘ │
    │                                                      │
    │  Exception Handlers:                                 │
    │  ┌────────────────────────────────────────────────┐  │
    │  │ GET: store failures → 404                      │  │
    │  │ writes: Decode → 400 │ Store/Connection → 500  │  │
    │  └────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate MongoDB settings (abort startup when missing)
    3. Build the connection provider and record store
    4. Start the standalone metrics listener, if configured

    Shutdown:
    1. Log shutdown (connections are per-operation; nothing is pooled)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import sentry_sdk
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from records_service import __version__
from records_service.config import settings
from records_service.database import ConnectionProvider
from records_service.exceptions import (
    DecodeError,
    NotFoundError,
    RecordsServiceError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)
from records_service.middleware.logging import RequestLoggingMiddleware
from records_service.middleware.metrics import MetricsMiddleware, RequestMetrics
from records_service.middleware.request_id import RequestIDMiddleware, request_id_var
from records_service.routes import examples, health, metrics, records
from records_service.services.record_store import RecordStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging & Error Reporting
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure root logging to stdout at the configured level."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _before_send(event: dict, hint: dict) -> Optional[dict]:
    request = event.get("request") or {}
    if request.get("url"):
        logger.info("Sentry event for %s %s", request.get("method", ""), request["url"])
    return event


def setup_error_reporting() -> bool:
    """
    Initialise Sentry when a DSN is configured.

    Returns False (and changes nothing) when SENTRY_DSN is empty; the
    sentry_sdk calls elsewhere are then no-ops.
    """
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        release=f"records-service@{__version__}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=_before_send,
    )
    return True


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Records Service starting up...")

    try:
        store_config = settings.store_config()
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        logger.error("Fix the configuration and restart the server.")
        raise

    provider = ConnectionProvider(store_config)
    app.state.connection_provider = provider
    app.state.record_store = RecordStore(provider)
    logger.info(
        "Document store: %s (database=%s, collection=%s, timeout=%gs)",
        store_config.redacted_uri,
        store_config.database,
        store_config.collection,
        store_config.timeout,
    )

    if settings.metrics_port:
        app.state.metrics.serve(settings.metrics_port, settings.backend_host)
        logger.info("Metrics listener on port %d", settings.metrics_port)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/swagger", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Records Service shutting down...")
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _is_read(request: Request) -> bool:
    return request.method in ("GET", "HEAD")


def _error_response(
    status_code: int, error: str, exc: RecordsServiceError
) -> JSONResponse:
    content = {
        "error": error,
        "message": exc.message,
        "request_id": request_id_var.get(""),
    }
    if exc.context:
        content["details"] = jsonable_encoder(exc.context)
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        NotFoundError           → 404
        DecodeError             → 404 on GET, else 400
        StoreConnectionError    → 404 on GET, else 500
        StoreTimeoutError       → 404 on GET, else 500
        StoreError              → 404 on GET, else 500
        RequestValidationError  → 400 (malformed body)
        Exception (fallback)    → 500

    Messages are passed through verbatim; no retry, no partial success.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc)

    @app.exception_handler(DecodeError)
    async def handle_decode_error(request: Request, exc: DecodeError):
        logger.warning("[%s] Decode error: %s", request_id_var.get(""), exc.message)
        return _error_response(404 if _is_read(request) else 400, "decode_error", exc)

    @app.exception_handler(StoreConnectionError)
    async def handle_connection_error(request: Request, exc: StoreConnectionError):
        logger.error(
            "[%s] Store connection error (%s): %s",
            request_id_var.get(""), exc.stage, exc.message,
        )
        return _error_response(404 if _is_read(request) else 500, "store_unavailable", exc)

    @app.exception_handler(StoreTimeoutError)
    async def handle_timeout_error(request: Request, exc: StoreTimeoutError):
        logger.error("[%s] Store timeout: %s", request_id_var.get(""), exc.message)
        return _error_response(404 if _is_read(request) else 500, "store_timeout", exc)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error(
            "[%s] Store error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(404 if _is_read(request) else 500, "store_error", exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Malformed request: %s", rid, exc.errors())
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Request body is not a valid record",
                "details": {"errors": jsonable_encoder(exc.errors())},
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        # Served by ServerErrorMiddleware, outside RequestIDMiddleware
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, handlers and routes into a FastAPI instance."""
    setup_error_reporting()

    app = FastAPI(
        title="Records API",
        description="Create, read and update titled text records stored in MongoDB.",
        version=__version__,
        docs_url="/swagger",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        terms_of_service="http://swagger.io/terms/",
        contact={
            "name": "API Support",
            "url": "http://www.swagger.io/support",
            "email": "support@swagger.io",
        },
        license_info={
            "name": "Apache 2.0",
            "url": "http://www.apache.org/licenses/LICENSE-2.0.html",
        },
        lifespan=lifespan,
    )

    app.state.metrics = RequestMetrics(
        buckets=settings.metrics_buckets_list,
        slow_time=settings.metrics_slow_time,
        metrics_path=settings.metrics_path,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → Metrics → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(MetricsMiddleware, metrics=app.state.metrics)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(records.router)
    app.include_router(health.router)
    app.include_router(examples.router)
    app.include_router(metrics.build_router(settings.metrics_path))
    if settings.debug_routes:
        app.include_router(examples.debug_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "records_service.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
