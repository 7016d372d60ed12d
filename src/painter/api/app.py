"""FastAPI application factory for the painting archive API."""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from painter.api import routes
from painter.exceptions import (
    ExternalApiError,
    OperationTimeoutError,
    PainterError,
    ValidationError,
)
from painter.logging import get_logger

logger = get_logger(__name__)


def status_for(error: PainterError) -> int:
    """HTTP status for an error kind."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, OperationTimeoutError):
        return 504
    if isinstance(error, ExternalApiError):
        return 502
    return 500


async def painter_error_handler(request: Request, exc: PainterError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("api_request_failed", path=request.url.path, kind=exc.kind, error=exc.message)
    return JSONResponse(
        status_code=status, content={"error": exc.kind, "message": exc.message}
    )


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to wire components onto app.state.

    Returns:
        Configured FastAPI application with the archive and cron routes.
    """
    app = FastAPI(
        title="Market Mood Painter",
        lifespan=lifespan,
    )
    app.add_exception_handler(PainterError, painter_error_handler)
    app.include_router(routes.router, prefix="/api")
    return app
