"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vectorqa.errors import VectorQAError
from .deps import ServiceContainer
from .routes import router
from .schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error_type: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(type=error_type, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_vectorqa_error(request: Request, exc: VectorQAError) -> JSONResponse:
    logger.error(
        f"{request.method} {request.url.path} failed with {exc.error_type}: {exc}",
        exc_info=exc,
    )
    return _error_response(exc.status_code, exc.error_type, str(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly")
    return _error_response(500, "internal_error", "Internal server error")


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        services: Pre-built services. When omitted they are created from
            config.toml at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            app.state.services = ServiceContainer.from_config_path()
            logger.info(f"Loaded configuration from {app.state.services.config_path}")
        yield
        logger.info("Application shutdown")

    app = FastAPI(
        title="vectorqa",
        description="Question answering over documents indexed in a vector database",
        version="0.1.0",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.add_exception_handler(VectorQAError, handle_vectorqa_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)

    return app
