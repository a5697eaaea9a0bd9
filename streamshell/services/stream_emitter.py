"""Incremental Stream Emitter — one line per item, flushed and paced.

Invariants:
    - Headers and buffering are configured before the first item is pulled
    - Each item is written as `item + "\\n"` and flushed before the next is pulled
    - A pacing sleep follows every flushed item
    - Cancellation or a transport failure stops production immediately; the
      exception propagates, no further item is pulled
    - No terminal marker: the caller completes the body after exhaustion

Design Decisions:
    - sleep is injectable so tests observe pacing without wall-clock waits
    - Every buffering layer is switched off (client cache, reverse proxy,
      server body buffer): any single one left on batches the lines
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

from streamshell.core.response_protocols import ResponseSink

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"

NO_BUFFERING_HEADERS = {
    "X-Accel-Buffering": "no",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}

Sleep = Callable[[float], Awaitable[None]]


def prepare_response(response: ResponseSink) -> None:
    """Mark the response as an unbuffered, uncached text stream."""
    response.headers["Content-Type"] = STREAM_MEDIA_TYPE
    for name, value in NO_BUFFERING_HEADERS.items():
        response.headers.append(name, value)
    response.disable_buffering()


async def emit_lines(
    items: AsyncIterator[str],
    response: ResponseSink,
    *,
    interval: float,
    sleep: Sleep = asyncio.sleep,
) -> int:
    """Stream items as lines; returns how many lines were flushed."""
    prepare_response(response)
    emitted = 0
    async for item in items:
        await response.write(f"{item}\n".encode("utf-8"))
        await response.flush()
        emitted += 1
        await sleep(interval)
    return emitted
