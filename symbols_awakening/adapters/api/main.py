# symbols_awakening\adapters\api\main.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from symbols_awakening import __version__
from symbols_awakening.adapters.api.responses import (
    describe_validation_errors,
    error_response,
    kind_for_status,
)
from symbols_awakening.adapters.api.routers import categories, health, symbol_sets, symbols
from symbols_awakening.core.domain.exceptions import ErrorKind
from symbols_awakening.shared.config import AppEnv
from symbols_awakening.shared.container import Container, build_container

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manages the application lifecycle.
    1. Startup: connects the repository held by the container (Fail Fast).
    2. Shutdown: releases it.
    """
    container: Container = app.state.container
    settings = container.settings()
    repository = container.symbol_repository()

    logger.info("app_startup", env=settings.APP_ENV.value, backend=settings.STORAGE_BACKEND.value)
    result = await repository.connect()
    if not result.success:
        logger.error("repository_connect_failed", error=result.error.message)
        raise RuntimeError(f"Could not connect to the data store: {result.error.message}")

    try:
        yield
    finally:
        # 3. Shutdown / Cleanup
        await repository.disconnect()
        logger.info("app_shutdown")


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Factory function to create the FastAPI application."""
    container = container or build_container()
    settings = container.settings()

    # Routers resolve the repository through `Provide[...]` markers.
    container.wire(modules=["symbols_awakening.adapters.api.dependencies"])

    app = FastAPI(
        title=settings.APP_NAME,
        version=__version__,
        description="Symbols ontology REST API",
        lifespan=lifespan,
        docs_url="/docs" if settings.APP_ENV != AppEnv.PRODUCTION else None,
        redoc_url=None,
    )
    app.state.container = container

    # Global Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global Exception Handlers
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies, paths and query strings are InvalidInput (400)."""
        return error_response(
            ErrorKind.INVALID_INPUT,
            describe_validation_errors(exc.errors()),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(kind_for_status(exc.status_code), str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catches unhandled exceptions so stack traces never reach the client."""
        logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
        return error_response(
            ErrorKind.BACKEND_FAILURE,
            str(exc) if settings.DEBUG else "Internal Server Error",
        )

    # Register Routers
    app.include_router(health.router)
    app.include_router(symbols.router, prefix=settings.API_PREFIX)
    app.include_router(symbol_sets.router, prefix=settings.API_PREFIX)
    app.include_router(categories.router, prefix=settings.API_PREFIX)

    return app
