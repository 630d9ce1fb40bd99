"""FastAPI application factory.

Creates the FastAPI app with lifespan management (export container and
background worker), exception handlers, and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from session_export.core.config import get_settings
from session_export.core.container import dispose_container, init_container
from session_export.core.errors import AuthorizationError, ConfigurationError, ValidationError
from session_export.core.logging import setup_logging
from session_export.schemas.common import ErrorResponse


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: wire the pipeline and start the worker on startup."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    container = init_container(settings)
    container.worker.start()

    yield

    await dispose_container()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Session Export API",
        description="Tenant gameplay-session exports with signed downloads and webhook delivery",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Register exception handlers
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(detail=exc.message, errors=exc.details or None).model_dump(),
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error(f"Configuration error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Export service is misconfigured"})

    from session_export.api.router import create_router

    app.include_router(create_router(settings))

    return app
