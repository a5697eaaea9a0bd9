"""Request Middleware — request logging and terminal exception handling.

Invariants:
    - RequestLoggingMiddleware assigns scope["state"]["request_id"] before the app runs
    - Exactly one summary line per request, level chosen by request_log_level
    - ExceptionHandlingMiddleware hands every escaped exception to the normalizer
    - Declined + response not started → plain-text status-code page
    - Declined + response started → exception re-raised so the server aborts
      the half-sent response

Design Decisions:
    - Pure ASGI middleware over BaseHTTPMiddleware: streaming bodies pass
      through untouched and the `send` wrapper observes the real start message
    - The normalizer is built once per app and shared; it holds no request state
"""

import logging
import time
from http import HTTPStatus

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from streamshell.core.response_protocols import RequestContext
from streamshell.core.trace_context import parse_trace_id, resolve_request_id
from streamshell.infrastructure.asgi_response import AsgiResponseSink
from streamshell.infrastructure.observability import request_log_level
from streamshell.infrastructure.problem_details import ProblemDetailsWriter
from streamshell.services.exception_normalizer import GlobalExceptionHandler

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


def request_id_of(scope: Scope) -> str:
    """Request id assigned by RequestLoggingMiddleware, or a fresh one."""
    state = scope.setdefault("state", {})
    if "request_id" not in state:
        state["request_id"] = resolve_request_id(
            Headers(scope=scope).get(REQUEST_ID_HEADER),
        )
    return state["request_id"]


def _display_path(scope: Scope) -> str:
    path = scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


class RequestLoggingMiddleware:
    """Logs one line per HTTP request with status and elapsed time."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = request_id_of(scope)
        status_code = 500
        started = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        failed = False
        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            failed = True
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            method = scope.get("method", "")
            path = _display_path(scope)
            logger.log(
                request_log_level(status_code, failed),
                "HTTP %s %s responded %d in %.1f ms",
                method, path, status_code, elapsed_ms,
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "elapsed_ms": elapsed_ms,
                },
            )


class ExceptionHandlingMiddleware:
    """Routes every exception that escapes the app through the normalizer."""

    def __init__(self, app: ASGIApp, handler: GlobalExceptionHandler | None = None):
        self.app = app
        self.handler = handler or GlobalExceptionHandler(ProblemDetailsWriter())

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        sink = AsgiResponseSink(send)
        try:
            await self.app(scope, receive, sink.relay)
        except Exception as exc:
            context = self._build_context(scope, sink)
            if await self.handler.try_handle(exc, context):
                return
            if sink.has_started:
                raise
            await write_status_code_page(sink)

    @staticmethod
    def _build_context(scope: Scope, sink: AsgiResponseSink) -> RequestContext:
        headers = Headers(scope=scope)
        return RequestContext(
            method=scope.get("method", ""),
            path=scope.get("path", ""),
            request_id=request_id_of(scope),
            response=sink,
            trace_id=parse_trace_id(headers.get("traceparent")),
            accept=headers.get("accept"),
        )


def status_code_page(status: int) -> str:
    """Plain-text body for an error status that carries no document."""
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        phrase = ""
    return f"Status Code: {status}; {phrase}"


async def write_status_code_page(sink: AsgiResponseSink) -> None:
    """Fallback body when no error document could be written."""
    status = sink.status_code if sink.status_code >= 400 else 500
    body = status_code_page(status).encode("utf-8")
    sink.status_code = status
    sink.headers["Content-Type"] = "text/plain; charset=utf-8"
    sink.headers["Content-Length"] = str(len(body))
    await sink.write(body)
    await sink.complete()
