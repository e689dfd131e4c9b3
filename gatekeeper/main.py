"""Webhook Gatekeeper - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gatekeeper.api import auth_router, health_router, webhook_router
from gatekeeper.core import settings
from gatekeeper.core.lifespan import shutdown, startup
from gatekeeper.core.logging import get_logger
from gatekeeper.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from gatekeeper.services.errors import GeneratorExhaustionError

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version} on port {settings.port}")
    tasks = await startup(logger)

    yield

    logger.info("Shutting down...")
    await shutdown(logger, tasks)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": ...}`` bodies."""
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        content: dict = {"error": "Endpoint not found"}
    elif isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed JSON bodies are client errors, reported without echoing input."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


async def generator_exhaustion_handler(
    request: Request, exc: GeneratorExhaustionError
) -> JSONResponse:
    logger.critical(f"Token generation unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Token-guarded relay for a private webhook endpoint",
        version=settings.app_version,
        lifespan=lifespan,
        # The API schema is only exposed outside production
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(GeneratorExhaustionError, generator_exhaustion_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        RateLimitMiddleware,
        trusted_proxies=settings.trusted_proxy_ip_set,
    )

    app.add_middleware(
        SecurityHeadersMiddleware,
        trusted_proxies=settings.trusted_proxy_ip_set,
    )

    # Logs every request, including ones the rate limiter rejects
    app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on ALL responses, including 401s and 429s.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    if settings.enable_metrics:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator(
            excluded_handlers=["/health", "/metrics"],
        ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(webhook_router)

    return app


# Application instance
app = create_app()
