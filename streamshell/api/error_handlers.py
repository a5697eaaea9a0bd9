"""Error Handlers — global error wiring for the streamshell API.

Invariants:
    - Every exception that escapes a route reaches ExceptionHandlingMiddleware
    - RequestValidationError is re-raised as InvalidArgumentError (→ 400)
    - HTTPException (404/405 from routing) → plain-text status-code page,
      its headers (e.g. Allow) preserved

Design Decisions:
    - Extracted from main.py: one place to see how failures are handled
    - Validation errors are re-raised rather than answered here so the
      normalizer stays the single writer of error documents
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from streamshell.api.middleware import ExceptionHandlingMiddleware, status_code_page
from streamshell.core.errors import InvalidArgumentError
from streamshell.services.exception_normalizer import GlobalExceptionHandler

logger = logging.getLogger(__name__)


def register_error_handlers(
    app: FastAPI, handler: GlobalExceptionHandler | None = None,
) -> None:
    """Register all global error handling on the FastAPI app."""
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    app.add_middleware(ExceptionHandlingMiddleware, handler=handler)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Hand validation failures to the normalizer as invalid arguments."""
        logger.debug(f"Validation error on {request.url.path}: {exc.errors()}")
        raise InvalidArgumentError(describe_validation_errors(exc.errors())) from exc


def _register_http_error_handler(app: FastAPI) -> None:
    """Register the status-code page handler for routing errors."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Answer 404/405 and friends with the plain-text status page."""
        return PlainTextResponse(
            status_code_page(exc.status_code),
            status_code=exc.status_code,
            headers=exc.headers,
        )


def describe_validation_errors(errors) -> str:
    """One-line summary of FastAPI validation errors."""
    parts = [
        f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
        for e in errors
    ]
    return "; ".join(parts) or "Invalid request data"
