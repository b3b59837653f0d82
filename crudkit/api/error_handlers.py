"""Error Handlers — global exception handlers for crudkit applications.

Invariants:
    - CrudError reaching the app was not anticipated by its operation -> 500
      (kind logged, never shown to the client)
    - RequestValidationError -> 400 with field-level error details
    - Exception (catch-all) -> 500, never leaks internal details
    - Every error body carries "error" and "message", like ResponseEnvelope

Design Decisions:
    - Three-layer handler: unanticipated failure (CrudError), validation
      (Pydantic), catch-all (Exception)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from crudkit.core.errors import CrudError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = {
    "error": "INTERNAL_ERROR",
    "message": "An unexpected error occurred",
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_unhandled_failure_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_unhandled_failure_handler(app: FastAPI) -> None:
    """Register handler for CrudErrors no operation claimed."""

    @app.exception_handler(CrudError)
    async def unhandled_failure_handler(request: Request, exc: CrudError):
        logger.error(
            f"Unhandled CrudError on {request.url.path}: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=dict(INTERNAL_ERROR_BODY),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=dict(INTERNAL_ERROR_BODY),
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": "VALIDATION_ERROR",
        "message": "Invalid request data",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ],
    }
