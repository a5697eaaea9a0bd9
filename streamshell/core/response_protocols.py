"""Boundary Protocols — contracts between the request pipeline and the transport.

Invariants:
    - Components receive the per-request context explicitly, never from globals
    - ResponseSink.has_started is the single source of truth for "headers sent"
    - Once has_started is True, status_code and headers are frozen on the wire

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - RequestContext is a frozen dataclass: the bundle is fixed per request,
      only the sink it points to changes state
"""

from dataclasses import dataclass
from typing import Protocol

from starlette.datastructures import MutableHeaders


class ResponseSink(Protocol):
    """Outbound half of one HTTP exchange."""
    status_code: int
    headers: MutableHeaders

    @property
    def has_started(self) -> bool: ...

    def disable_buffering(self) -> None: ...
    async def write(self, data: bytes) -> None: ...
    async def flush(self) -> None: ...
    async def complete(self) -> None: ...


@dataclass(frozen=True)
class RequestContext:
    """Everything the error pipeline needs to know about one request."""
    method: str
    path: str
    request_id: str
    response: ResponseSink
    trace_id: str | None = None
    accept: str | None = None

    @property
    def instance(self) -> str:
        return f"{self.method} {self.path}"
