"""Stream Emitter — tests for per-line flushing, pacing, and cancellation.

Tests cover:
    - Headers and buffering configured before the first write
    - N items → N newline-terminated lines, in order, one flush each
    - Pacing sleep after every flush, never before the next write
    - Cancellation after k flushes → exactly k lines delivered
    - Transport failure stops production
"""

import asyncio

import pytest

from streamshell.core.stream_source import iter_items
from streamshell.services.stream_emitter import emit_lines, prepare_response

ITEMS = ("Cold", "Mild", "Hot")


class _Pacer:
    """Sleep stand-in that records intervals into the sink's event log."""

    def __init__(self, sink):
        self.sink = sink
        self.intervals = []

    async def __call__(self, interval):
        self.intervals.append(interval)
        self.sink.events.append(("sleep", interval))


def test_prepare_response_disables_buffering(sink):
    prepare_response(sink)

    assert sink.headers["content-type"] == "text/plain; charset=utf-8"
    assert sink.headers["x-accel-buffering"] == "no"
    assert sink.headers["pragma"] == "no-cache"
    assert sink.headers["cache-control"] == "no-cache"
    assert sink.buffering is False


async def test_emits_one_line_per_item_in_order(sink):
    count = await emit_lines(iter_items(ITEMS), sink, interval=1, sleep=_Pacer(sink))

    assert count == 3
    assert sink.delivered == [b"Cold\n", b"Mild\n", b"Hot\n"]
    assert sink.body == b"Cold\nMild\nHot\n"


async def test_flush_and_sleep_follow_every_write(sink):
    await emit_lines(iter_items(ITEMS), sink, interval=1, sleep=_Pacer(sink))

    assert sink.events == [
        ("disable_buffering",),
        ("write", b"Cold\n"), ("flush",), ("sleep", 1),
        ("write", b"Mild\n"), ("flush",), ("sleep", 1),
        ("write", b"Hot\n"), ("flush",), ("sleep", 1),
    ]


async def test_pacing_uses_configured_interval(sink):
    pacer = _Pacer(sink)
    await emit_lines(iter_items(ITEMS), sink, interval=0.25, sleep=pacer)

    assert pacer.intervals == [0.25, 0.25, 0.25]


async def test_empty_source_writes_nothing(sink):
    count = await emit_lines(iter_items(()), sink, interval=1, sleep=_Pacer(sink))

    assert count == 0
    assert sink.delivered == []
    assert sink.headers["content-type"] == "text/plain; charset=utf-8"


async def test_emitter_does_not_complete_the_body(sink):
    await emit_lines(iter_items(ITEMS), sink, interval=0, sleep=_Pacer(sink))

    assert sink.completed is False


async def test_real_sleep_spaces_flushes(sink):
    loop = asyncio.get_running_loop()
    flushed_at = []
    original_flush = sink.flush

    async def timed_flush():
        await original_flush()
        flushed_at.append(loop.time())

    sink.flush = timed_flush
    await emit_lines(iter_items(ITEMS[:2]), sink, interval=0.05)

    assert flushed_at[1] - flushed_at[0] >= 0.04


async def test_cancel_after_k_items_delivers_exactly_k(sink):
    reached = asyncio.Event()

    async def gated_sleep(_interval):
        if len(sink.delivered) == 2:
            reached.set()
            await asyncio.Event().wait()

    task = asyncio.create_task(
        emit_lines(iter_items(ITEMS), sink, interval=1, sleep=gated_sleep),
    )
    await reached.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert sink.delivered == [b"Cold\n", b"Mild\n"]
    assert ("write", b"Hot\n") not in sink.events


async def test_transport_failure_stops_production(sink):
    async def failing_flush():
        raise ConnectionResetError("client went away")

    sink.flush = failing_flush
    pulled = []

    async def source():
        for item in ITEMS:
            pulled.append(item)
            yield item

    with pytest.raises(ConnectionResetError):
        await emit_lines(source(), sink, interval=0, sleep=_Pacer(sink))
    assert pulled == ["Cold"]
