"""Error Handlers — global exception handlers for the domain settings API.

Invariants:
    - SettingsRegistryError → its own to_response() envelope and http_status
    - AuthenticationError → 401 with a Basic WWW-Authenticate challenge
    - RequestValidationError → 400 with one detail per offending settings field
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Log level follows the error's severity, not its HTTP status class
    - Validation detail fields drop the leading "body" location so they read as settings key paths
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from domain_settings.core.errors import (
    AuthenticationError,
    ErrorCategory,
    ErrorSeverity,
    SettingsRegistryError,
)

logger = logging.getLogger(__name__)

BASIC_AUTH_CHALLENGE = {"WWW-Authenticate": 'Basic realm="domain-settings"'}

_LOG_LEVEL_BY_SEVERITY = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_settings_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_settings_error_handler(app: FastAPI) -> None:
    """Register the settings registry error handler."""

    @app.exception_handler(SettingsRegistryError)
    async def settings_error_handler(request: Request, exc: SettingsRegistryError):
        """Handle settings registry errors; challenge the client on missing credentials."""
        logger.log(
            _LOG_LEVEL_BY_SEVERITY.get(exc.severity, logging.ERROR),
            f"SettingsRegistryError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        headers = BASIC_AUTH_CHALLENGE if isinstance(exc, AuthenticationError) else None
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers,
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register the request validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Reject malformed settings requests (e.g. a non-object update body)."""
        logger.warning(
            f"Invalid settings request on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_settings_validation_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register the catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "The settings server failed to handle the request",
                    "category": ErrorCategory.INTERNAL.value,
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _field_path(location: tuple) -> str:
    """Dotted field path without the request-part prefix ("body", "query")."""
    parts = [str(part) for part in location]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts) or "body"


def _settings_validation_response(exc: RequestValidationError) -> dict:
    """Build the 400 envelope for a malformed settings request."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid settings request",
            "category": ErrorCategory.VALIDATION.value,
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": _field_path(e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
