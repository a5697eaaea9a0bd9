"""Trace Context — request and trace identifiers attached to error documents.

Invariants:
    - parse_trace_id returns the 32-hex trace id of a valid W3C traceparent, else None
    - An all-zero trace id is invalid and yields None
    - resolve_request_id prefers a caller-supplied id, falls back to a fresh hex id

Design Decisions:
    - Read the traceparent header instead of wiring a tracing SDK: ids flow
      through from upstream proxies without a telemetry pipeline
"""

import re
import uuid

_TRACEPARENT = re.compile(
    r"^(?P<version>[0-9a-f]{2})-(?P<trace_id>[0-9a-f]{32})-"
    r"(?P<parent_id>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)
_MAX_REQUEST_ID_LENGTH = 128


def parse_trace_id(traceparent: str | None) -> str | None:
    """Extract the trace id from a traceparent header value."""
    if not traceparent:
        return None
    match = _TRACEPARENT.match(traceparent.strip().lower())
    if match is None or match["version"] == "ff":
        return None
    trace_id = match["trace_id"]
    if trace_id == "0" * 32 or match["parent_id"] == "0" * 16:
        return None
    return trace_id


def resolve_request_id(supplied: str | None) -> str:
    """Return the caller's request id when usable, otherwise a new one."""
    if supplied:
        supplied = supplied.strip()
        if supplied and len(supplied) <= _MAX_REQUEST_ID_LENGTH and supplied.isprintable():
            return supplied
    return uuid.uuid4().hex
