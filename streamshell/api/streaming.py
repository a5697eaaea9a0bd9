"""Incremental Text Response — drives the stream emitter on a live connection.

Invariants:
    - The emitter and a disconnect watcher run side by side; whichever ends first wins
    - Client disconnect cancels the emitter at its current await (relay or pacing
      sleep); lines already sent stay sent, no line is split
    - The body is completed only after the emitter exhausted its items
    - Headers set on the response object (or merged in by FastAPI) go out with
      the stream headers
    - Emitter failures propagate to the middleware (which declines once started)

Design Decisions:
    - Same shape as Starlette's StreamingResponse (listen for disconnect while
      streaming), but built on asyncio tasks and the ResponseSink protocol so
      the emitter stays transport-agnostic
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping

from fastapi.responses import Response
from starlette.types import Receive, Scope, Send

from streamshell.infrastructure.asgi_response import AsgiResponseSink
from streamshell.services.stream_emitter import STREAM_MEDIA_TYPE, emit_lines

logger = logging.getLogger(__name__)


async def wait_for_disconnect(receive: Receive) -> None:
    """Return once the client has gone away."""
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


class IncrementalTextResponse(Response):
    """Response whose lines reach the client one flush at a time."""

    media_type = STREAM_MEDIA_TYPE

    def __init__(
        self,
        items: AsyncIterator[str],
        interval: float,
        headers: Mapping[str, str] | None = None,
    ):
        self.status_code = 200
        self.background = None
        self.raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ]
        self._items = items
        self._interval = interval

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sink = AsgiResponseSink(send, status_code=self.status_code)
        for name, value in self.raw_headers:
            sink.headers.append(name.decode("latin-1"), value.decode("latin-1"))
        emitter = asyncio.create_task(
            emit_lines(self._items, sink, interval=self._interval),
        )
        watcher = asyncio.create_task(wait_for_disconnect(receive))
        try:
            done, _ = await asyncio.wait(
                {emitter, watcher}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            # Cancelled from outside (server shutdown): stop both before unwinding.
            for task in (emitter, watcher):
                if not task.done():
                    task.cancel()

        if emitter not in done:
            await _discard(emitter)
            logger.info("Client disconnected from stream")
            return

        await _discard(watcher)
        lines = emitter.result()
        await sink.complete()
        logger.debug("Stream completed", extra={"lines": lines})
        if self.background is not None:
            await self.background()


async def _discard(task: asyncio.Task) -> None:
    """Await a task we cancelled, without swallowing our own cancellation."""
    try:
        await task
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise
