"""Root conftest — shared test configuration and transport fakes.

Invariants:
    - RecordingSink records every write/flush in order so tests can assert
      what reached the "wire" and when
    - Nothing here opens a socket
"""

import os

import pytest
from starlette.datastructures import MutableHeaders

os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("STREAM_INTERVAL_SECONDS", "0")


class RecordingSink:
    """In-memory ResponseSink. `delivered` holds what was flushed, in order."""

    def __init__(self, started: bool = False):
        self.status_code = 200
        self.headers = MutableHeaders()
        self.events: list[tuple] = []
        self.delivered: list[bytes] = []
        self.buffering = True
        self.completed = False
        self._pending = bytearray()
        self._started = started

    @property
    def has_started(self) -> bool:
        return self._started

    def disable_buffering(self) -> None:
        self.buffering = False
        self.events.append(("disable_buffering",))

    async def write(self, data: bytes) -> None:
        self.events.append(("write", data))
        self._pending.extend(data)

    async def flush(self) -> None:
        self._started = True
        self.events.append(("flush",))
        if self._pending:
            self.delivered.append(bytes(self._pending))
            self._pending.clear()

    async def complete(self) -> None:
        await self.flush()
        self.completed = True
        self.events.append(("complete",))

    @property
    def body(self) -> bytes:
        return b"".join(self.delivered)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def started_sink():
    return RecordingSink(started=True)
