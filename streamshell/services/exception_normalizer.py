"""Exception Normalizer — turns any unhandled failure into one ErrorDocument.

Invariants:
    - Absent failure or context → declined, no side effects
    - Response already started → warning logged, declined, nothing written
    - Invalid-argument failures → 400, everything else → 500
    - At most one write attempt per failure; the result is the writer's verdict
    - try_handle never raises

Design Decisions:
    - Writer injected as a Protocol: the normalizer decides, the writer
      serializes (content negotiation, extension fields, transport)
    - Log event ids mirror the two outcomes worth alerting on (1 = unhandled,
      2 = response already started)
"""

import logging
from typing import Protocol

from streamshell.core.errors import (
    classify_status, failure_kind, failure_message,
)
from streamshell.core.response_protocols import RequestContext
from streamshell.schemas.error_document import ErrorDocument, ERROR_TITLE

logger = logging.getLogger(__name__)

UNHANDLED_EXCEPTION_EVENT = 1
RESPONSE_STARTED_EVENT = 2


class ErrorDocumentWriter(Protocol):
    """Writes a structured error; returns whether a body was written."""
    async def try_write(
        self,
        failure: BaseException,
        context: RequestContext,
        document: ErrorDocument,
    ) -> bool: ...


class GlobalExceptionHandler:
    """Terminal handler for failures no route handled."""

    def __init__(
        self,
        writer: ErrorDocumentWriter,
        log: logging.Logger | None = None,
    ):
        self._writer = writer
        self._log = log or logger

    async def try_handle(
        self,
        failure: BaseException | None,
        context: RequestContext | None,
    ) -> bool:
        if failure is None or context is None:
            return False

        if context.response.has_started:
            self._log.warning(
                "The response has already started. Unable to handle the exception.",
                extra={
                    "event_id": RESPONSE_STARTED_EVENT,
                    "request_id": context.request_id,
                },
            )
            return False

        message = failure_message(failure)
        kind = failure_kind(failure)
        self._log.error(
            "Unhandled exception %s", message,
            exc_info=failure,
            extra={
                "event_id": UNHANDLED_EXCEPTION_EVENT,
                "error_code": kind.value,
                "request_id": context.request_id,
            },
        )

        status = classify_status(kind)
        context.response.status_code = status

        document = ErrorDocument(
            status=status,
            title=ERROR_TITLE,
            type=kind.value,
            detail=message,
        )
        return await self._writer.try_write(failure, context, document)
