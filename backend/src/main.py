"""
FastAPI application entry point for the Artsy favorites API.

This module provides the main FastAPI application with:
- Artsy proxy, authentication and favorites routers
- Health and readiness endpoints
- Request logging with correlation IDs
- Prometheus metrics
- CORS and security headers
- Translation of domain errors into JSON responses
- MongoDB client and upstream HTTP client lifecycle
"""

import time
import uuid
import structlog
import httpx
import uvicorn
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from pymongo import AsyncMongoClient

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

from shared.logging import bind_context, clear_context, configure_logging
from backend.src.config import get_settings, Settings
from backend.src.errors import AppError, FieldValidationError, InternalError, UpstreamError
from backend.src.repositories.favorite_repo import FAVORITES_COLLECTION, FavoriteRepository
from backend.src.repositories.user_repo import USERS_COLLECTION, UserRepository
from backend.src.routers import artsy, auth, favorites
from backend.src.services.artsy_client import ArtsyGateway, CredentialBroker
from backend.src.services.token_cache import TokenCache

logger = structlog.get_logger(__name__)

# ============================================================================
# Prometheus Metrics
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"]
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method"]
)

# ============================================================================
# Lifespan Management
# ============================================================================


def build_lifespan(settings: Settings):
    """Create the lifespan handler that owns the database and HTTP clients."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager for startup and shutdown events.

        Handles:
        - MongoDB client creation and index setup
        - Upstream HTTP client, token broker and gateway construction
        - Graceful shutdown and resource cleanup
        """
        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        mongo_client: Optional[AsyncMongoClient] = None
        http_client: Optional[httpx.AsyncClient] = None

        try:
            logger.info("initializing_database", database=settings.mongodb_database)
            mongo_client = AsyncMongoClient(
                settings.mongodb_uri,
                serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
                tz_aware=True,
            )
            database = mongo_client[settings.mongodb_database]

            await UserRepository(database[USERS_COLLECTION]).ensure_indexes()
            await FavoriteRepository(database[FAVORITES_COLLECTION]).ensure_indexes()
            logger.info("database_indexes_ensured")

            http_client = httpx.AsyncClient(timeout=settings.artsy_timeout)
            broker = CredentialBroker(http_client, TokenCache(), settings)

            app.state.mongo_client = mongo_client
            app.state.database = database
            app.state.http_client = http_client
            app.state.artsy_gateway = ArtsyGateway(http_client, broker, settings=settings)

            logger.info("application_started", port=settings.port)

            yield

        except Exception as e:
            logger.error("application_startup_failed", error=str(e), exc_info=True)
            raise

        finally:
            logger.info("application_shutting_down")
            if http_client is not None:
                await http_client.aclose()
            if mongo_client is not None:
                await mongo_client.close()
            logger.info("application_shutdown_complete")

    return lifespan


# ============================================================================
# Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, metrics and correlation IDs."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        method = request.method
        path = request.url.path

        clear_context()
        bind_context(correlation_id=correlation_id)

        http_requests_in_progress.labels(method=method).inc()
        start_time = time.time()

        logger.info("request_started", method=method, path=path)

        try:
            response = await call_next(request)
            duration = time.time() - start_time
            endpoint = self._endpoint_label(request)

            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s"
            )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            http_requests_in_progress.labels(method=method).dec()

    @staticmethod
    def _endpoint_label(request: Request) -> str:
        """Route template (e.g. /api/favorites/{artist_id}) to bound label cardinality."""
        route = request.scope.get("route")
        return getattr(route, "path", None) or "unmatched"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ============================================================================
# Exception Handlers
# ============================================================================


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``{param, msg}`` pairs."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        msg = str(error.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.append({"param": loc[-1] if loc else "body", "msg": msg})
    return errors


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain errors raised by services and dependencies."""
    if isinstance(exc, UpstreamError):
        logger.error("upstream_error", path=request.url.path, error=str(exc))
    elif exc.status_code >= 500:
        logger.error("application_error", path=request.url.path, error=str(exc))
    else:
        logger.warning(
            "request_rejected",
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.message
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as 400 field errors."""
    error = FieldValidationError(_validation_errors(exc))
    logger.warning("validation_error", path=request.url.path, errors=error.errors)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (unknown routes, wrong methods)."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking details."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=exc
    )
    error = InternalError()
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_response()
    )


# ============================================================================
# FastAPI Application
# ============================================================================


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name="artsy-favorites",
        environment=settings.environment,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Backend for browsing the Artsy catalog and bookmarking artists. "
            "Proxies the Artsy API and manages user accounts and favorites."
        ),
        lifespan=build_lifespan(settings),
        debug=settings.debug,
    )

    # Cross-origin cookies are only needed for the local dev frontend
    if not settings.is_production:
        logger.info("configuring_cors", origins=settings.cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )

    if settings.security_headers_enabled:
        app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(artsy.router, prefix=settings.api_prefix)
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(favorites.router, prefix=settings.api_prefix)

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, Any]:
        """Basic liveness without touching dependencies."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request) -> JSONResponse:
        """Readiness: verifies MongoDB answers a ping."""
        checks = {"database": "unknown"}

        mongo_client = getattr(request.app.state, "mongo_client", None)
        try:
            if mongo_client is None:
                raise RuntimeError("database client not initialized")
            await mongo_client.admin.command("ping")
            checks["database"] = "healthy"
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            checks["database"] = "unhealthy"

        all_healthy = all(state == "healthy" for state in checks.values())
        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if all_healthy else "not_ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "checks": checks
            }
        )

    if settings.metrics_enabled:
        @app.get(settings.metrics_endpoint, tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics() -> Response:
            """Prometheus metrics in text exposition format."""
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


def run() -> None:
    """Run the application with Uvicorn; serves until terminated."""
    settings = get_settings()
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
    uvicorn.run(
        "backend.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
