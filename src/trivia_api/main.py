# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Trivia Questions API - Main Application Module."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from beartype import beartype
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import router as api_router
from .api.middleware import SecurityHeadersMiddleware
from .api.response_patterns import (
    GENERIC_ERROR_MESSAGE,
    APIResponseHandler,
    error_content,
)
from .bootstrap import AppServices, build_services
from .core.config import Settings, get_settings
from .core.errors import FatalConfigError, TriviaError
from .core.logging_utils import configure_logging
from .core.rate_limiter import RateLimitingMiddleware, RateLimitRule
from .schemas.responses import APIInfo

logger = logging.getLogger(__name__)


@beartype
def create_app(
    settings: Settings | None = None, services: AppServices | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted.
        services: Prebuilt service graph; built from ``settings`` at startup
            when omitted.

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or (services.settings if services else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Start the service graph before serving and stop it on shutdown."""
        configure_logging(
            level=logging.WARNING if settings.is_production else logging.INFO
        )
        logger.info(f"Starting {settings.app_name} in {settings.api_env} mode...")

        app_services = services or build_services(settings)
        try:
            await app_services.start()
        except FatalConfigError as e:
            logger.critical(f"Refusing to start: {e.message}")
            raise
        app.state.services = app_services
        logger.info(f"{settings.app_name} listening on port {settings.port}")

        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.app_name}...")
            await app_services.stop()

    app = FastAPI(
        title=settings.app_name,
        description="Random trivia questions served from PostgreSQL",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitingMiddleware,
        rule=RateLimitRule(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window,
        ),
        enabled=settings.rate_limit_enabled,
    )
    # Outermost, so rejected and failed responses still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization", "X-Api-Key"],
        max_age=86400,
    )

    register_exception_handlers(app, settings)
    app.include_router(api_router)

    @app.get("/")
    async def root() -> APIInfo:
        """Root endpoint returning API information."""
        return APIInfo(
            name=settings.app_name,
            version=__version__,
            status="operational",
            environment=settings.api_env,
        )

    return app


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Render every failure with the ``{"status": "error"}`` envelope."""

    @app.exception_handler(TriviaError)
    async def trivia_error_handler(request: Request, exc: TriviaError) -> JSONResponse:
        return APIResponseHandler.error_response(
            exc, is_production=settings.is_production
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400, content=error_content("Invalid request parameters")
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_content(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        message = "Internal server error" if settings.is_production else str(exc)
        return JSONResponse(
            status_code=500, content=error_content(message or GENERIC_ERROR_MESSAGE)
        )


# Create the application instance
app = create_app()


@beartype
def main() -> None:
    """Run the main application entry point."""
    settings = get_settings()

    uvicorn.run(
        "trivia_api.main:app",
        host=settings.api_host,
        port=settings.port,
        reload=settings.is_development,
        log_level="info" if not settings.is_production else "error",
    )


if __name__ == "__main__":
    main()
