"""ASGI Response Sink — ResponseSink over an ASGI `send` callable.

Invariants:
    - has_started flips on the first relayed `http.response.start`, whoever sent it
    - Headers and status are sent once, lazily, right before the first body byte
    - With buffering on, write() accumulates and flush() sends; with buffering
      off, every write() is its own body message
    - complete() is terminal; writing after it raises RuntimeError

Design Decisions:
    - relay() doubles as the `send` passed to inner apps so the middleware
      sees a start sent by any handler (one flag, no double-write race)
    - An ASGI send returns once the server accepted the message; the server
      applies backpressure there, so flush() is the awaited send itself
"""

from starlette.datastructures import MutableHeaders
from starlette.types import Message, Send


class AsgiResponseSink:
    """ResponseSink writing ASGI `http.response.*` messages."""

    def __init__(self, send: Send, status_code: int = 200):
        self._send = send
        self.status_code = status_code
        self.headers = MutableHeaders()
        self._started = False
        self._completed = False
        self._buffering = True
        self._buffer = bytearray()

    @property
    def has_started(self) -> bool:
        return self._started

    @property
    def completed(self) -> bool:
        return self._completed

    def disable_buffering(self) -> None:
        self._buffering = False

    async def relay(self, message: Message) -> None:
        """Forward a message from an inner app, tracking response state."""
        if message["type"] == "http.response.start":
            self._started = True
        elif message["type"] == "http.response.body" and not message.get("more_body", False):
            self._completed = True
        await self._send(message)

    async def write(self, data: bytes) -> None:
        if self._completed:
            raise RuntimeError("Response already completed")
        if self._buffering:
            self._buffer.extend(data)
            return
        await self._start()
        if data:
            await self._send_body(data, more_body=True)

    async def flush(self) -> None:
        await self._start()
        if self._buffer:
            data = bytes(self._buffer)
            self._buffer.clear()
            await self._send_body(data, more_body=True)

    async def complete(self) -> None:
        if self._completed:
            return
        await self._start()
        data = bytes(self._buffer)
        self._buffer.clear()
        self._completed = True
        await self._send_body(data, more_body=False)

    async def _start(self) -> None:
        if self._started:
            return
        self._started = True
        await self._send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self.headers.raw,
        })

    async def _send_body(self, data: bytes, more_body: bool) -> None:
        await self._send({
            "type": "http.response.body",
            "body": data,
            "more_body": more_body,
        })
