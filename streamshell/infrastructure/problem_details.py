"""Problem Details Writer — serializes an ErrorDocument onto the response.

Invariants:
    - Extension fields (instance, requestId, traceId) filled only where empty
    - Writes only when the client accepts JSON; otherwise returns False untouched
    - Any failure while writing is logged and reported as False, never raised
    - A True result means a complete body was written and the response closed

Design Decisions:
    - Content negotiation lives here, not in the normalizer: the normalizer
      decides what went wrong, the writer decides whether it can say so
"""

import logging

from streamshell.core.response_protocols import RequestContext
from streamshell.schemas.error_document import ErrorDocument, PROBLEM_MEDIA_TYPE

logger = logging.getLogger(__name__)

_ACCEPTABLE_MEDIA_TYPES = frozenset({
    "*/*", "application/*", "application/json", PROBLEM_MEDIA_TYPE,
})


def accepts_json(accept: str | None) -> bool:
    """True when an Accept header value admits a JSON problem body."""
    if not accept or not accept.strip():
        return True
    for part in accept.split(","):
        media_type, _, params = part.strip().partition(";")
        if media_type.strip().lower() not in _ACCEPTABLE_MEDIA_TYPES:
            continue
        if not _has_zero_quality(params):
            return True
    return False


def _has_zero_quality(params: str) -> bool:
    for param in params.split(";"):
        name, _, value = param.strip().partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value) == 0.0
            except ValueError:
                return False
    return False


class ProblemDetailsWriter:
    """Writes ErrorDocuments as `application/problem+json`."""

    async def try_write(
        self,
        failure: BaseException,
        context: RequestContext,
        document: ErrorDocument,
    ) -> bool:
        if not accepts_json(context.accept):
            logger.info(
                "Client does not accept JSON; skipping error document",
                extra={"request_id": context.request_id},
            )
            return False

        document = document.with_extensions(
            instance=context.instance,
            request_id=context.request_id,
            trace_id=context.trace_id,
        )
        body = document.to_json()
        response = context.response
        response.headers["Content-Type"] = PROBLEM_MEDIA_TYPE
        response.headers["Content-Length"] = str(len(body))
        try:
            await response.write(body)
            await response.complete()
        except Exception as exc:
            logger.warning(
                "Failed to write error document: %s", exc,
                exc_info=True,
                extra={"request_id": context.request_id},
            )
            return False
        return True
