"""
Error handling middleware with security-compliant error sanitization.

Domain errors (core.exceptions) map to their own status and code; anything
else becomes a generic 500. Underlying causes are only exposed in debug.
"""

import logging
import traceback
from typing import Any, Callable, Optional
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
import re

from core.config import settings
from core.exceptions import TrackerError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: BaseException, include_traceback: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to describe
        include_traceback: Whether to include the formatted traceback

    Returns:
        Dictionary with type and sanitized message
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_traceback:
        details["traceback"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return details


def tracker_error_details(exc: TrackerError, debug: bool) -> Optional[dict[str, Any]]:
    """
    Client-facing details of a domain error.

    Storage failures only carry their underlying cause in debug mode.
    """
    if exc.status_code >= 500:
        if not debug:
            return None
        details: dict[str, Any] = dict(exc.details)
        if exc.__cause__ is not None:
            details["cause"] = get_safe_error_details(exc.__cause__)
        return details or None
    return exc.details or None


def error_body(
    code: str,
    message: str,
    path: str,
    method: str,
    details: Any = None,
    request_id: Optional[str] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    if request_id:
        body["error"]["request_id"] = request_id
    return body


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format request validation errors into a user-friendly structure.

    Args:
        exc: The validation exception

    Returns:
        List of formatted validation errors
    """
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }

        # Include input value only if it's a simple, non-sensitive value
        input_value = error.get("input")
        if isinstance(input_value, (str, int, float, bool)):
            if not any(pattern.search(str(input_value)) for pattern in SENSITIVE_PATTERNS):
                error_dict["input"] = input_value

        errors.append(error_dict)
    return errors


def _log_tracker_error(exc: TrackerError, method: str, path: str) -> None:
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {method} {path} - {exc.message}",
            exc_info=exc,
        )
    else:
        logger.warning(
            f"{type(exc).__name__}: {method} {path} - "
            f"{sanitize_error_message(exc.message)}"
        )


class ErrorHandlingMiddleware:
    """
    Last-resort error handling for anything that escapes the route handlers.

    Features:
    - Sanitizes error messages to prevent sensitive data leakage
    - Maps domain errors to their status code and error code
    - Logs errors with appropriate severity
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = await self._handle_exception(exc, scope)
            await response(scope, receive, send)

    async def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        """
        Handle different types of exceptions and return appropriate responses.

        Args:
            exc: The exception to handle
            scope: ASGI scope for context

        Returns:
            JSONResponse with error details
        """
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        error_code = "INTERNAL_SERVER_ERROR"
        message = "An unexpected error occurred"
        details = None

        if isinstance(exc, TrackerError):
            status_code = exc.status_code
            error_code = exc.code
            message = sanitize_error_message(exc.message)
            details = tracker_error_details(exc, self.debug)
            _log_tracker_error(exc, request_method, request_path)

        elif isinstance(exc, StarletteHTTPException):
            status_code = exc.status_code
            error_code = "HTTP_EXCEPTION"
            message = sanitize_error_message(exc.detail)
            logger.warning(
                f"HTTP exception: {request_method} {request_path} - "
                f"Status: {status_code}, Message: {message}"
            )

        elif isinstance(exc, RequestValidationError):
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
            error_code = "VALIDATION_ERROR"
            message = "Request validation failed"
            details = format_validation_errors(exc)
            logger.warning(
                f"Validation error: {request_method} {request_path} - "
                f"Errors: {details}"
            )

        elif isinstance(exc, IntegrityError):
            status_code = status.HTTP_409_CONFLICT
            error_code = "INTEGRITY_ERROR"
            message = "Database integrity constraint violated"
            if self.debug:
                details = get_safe_error_details(exc, include_traceback=True)
            logger.error(
                f"Database integrity error: {request_method} {request_path}",
                exc_info=not self.debug
            )

        elif isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            error_code = "DATABASE_ERROR"
            message = "Database service temporarily unavailable"
            logger.error(
                f"Database operational error: {request_method} {request_path}",
                exc_info=True
            )

        elif isinstance(exc, SQLAlchemyError):
            error_code = "DATABASE_ERROR"
            message = "A database error occurred"
            if self.debug:
                details = get_safe_error_details(exc, include_traceback=True)
            logger.error(
                f"SQLAlchemy error: {request_method} {request_path}",
                exc_info=not self.debug
            )

        elif isinstance(exc, TimeoutError):
            status_code = status.HTTP_504_GATEWAY_TIMEOUT
            error_code = "TIMEOUT"
            message = "The request timed out"
            logger.error(f"Timeout error: {request_method} {request_path}")

        else:
            if self.debug:
                details = get_safe_error_details(exc, include_traceback=True)
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
                exc_info=True
            )

        request_id = None
        if "headers" in scope:
            raw = dict(scope["headers"]).get(b"x-request-id")
            if raw:
                request_id = raw.decode()

        return JSONResponse(
            status_code=status_code,
            content=error_body(
                error_code, message, request_path, request_method, details, request_id
            ),
        )


def setup_error_handlers(app, debug: Optional[bool] = None):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Surface underlying causes of storage errors, defaults to
            settings.debug
    """
    if debug is None:
        debug = settings.debug

    @app.exception_handler(TrackerError)
    async def tracker_exception_handler(request: Request, exc: TrackerError):
        """Handle domain errors raised by the service layer."""
        _log_tracker_error(exc, request.method, request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                exc.code,
                sanitize_error_message(exc.message),
                str(request.url.path),
                request.method,
                tracker_error_details(exc, debug),
                request.headers.get("x-request-id"),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                "HTTP_EXCEPTION",
                sanitize_error_message(exc.detail),
                str(request.url.path),
                request.method,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                str(request.url.path),
                request.method,
                format_validation_errors(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                "INTERNAL_SERVER_ERROR",
                "An unexpected error occurred",
                str(request.url.path),
                request.method,
            ),
        )
