"""Error Handlers — global exception handlers for the Subledger API.

Invariants:
    - SubledgerError renders as structured JSON with error code, message, severity
    - RequestValidationError renders as an InvalidInputError (400) envelope
      with field-level error details
    - Exception (catch-all) renders as 500 and never leaks internal details

Design Decisions:
    - Three-layer handler: domain (SubledgerError), validation (Pydantic), catch-all (Exception)
    - Client errors (< 500) logged at WARNING, store failures at ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from subledger.core.errors import ErrorSeverity, InvalidInputError, SubledgerError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_subledger_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_subledger_error_handler(app: FastAPI) -> None:
    """Register domain/store error handler."""

    @app.exception_handler(SubledgerError)
    async def subledger_error_handler(request: Request, exc: SubledgerError):
        """Handle all Subledger domain/store errors."""
        level = logging.WARNING if exc.http_status < 500 else logging.ERROR
        logger.log(
            level,
            f"SubledgerError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "subscription_id": exc.context.subscription_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors as InvalidInputError envelopes."""
        error = to_invalid_input(exc)
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": error.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=error.http_status,
            content=_build_validation_error_response(error, exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all; never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc)


def to_invalid_input(exc: RequestValidationError) -> InvalidInputError:
    """Collapse FastAPI's validation errors into one InvalidInputError."""
    errors = exc.errors()
    field = _field_path(errors[0]["loc"]) if errors else ""
    return InvalidInputError("Invalid request data", field=field)


def _build_validation_error_response(
    error: InvalidInputError, exc: RequestValidationError,
) -> dict:
    """Build structured validation error response with field-level details."""
    response = error.to_response()
    response["error"]["details"] = [
        {
            "field": _field_path(e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    return response
