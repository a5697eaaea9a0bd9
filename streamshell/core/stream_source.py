"""Stream Source — the immutable item sequence behind the streaming endpoint.

Invariants:
    - The shared source is a tuple; requests never mutate it
    - iter_items is lazy and single-pass; restarting means calling it again
    - select_items rejects a negative limit before any byte is streamed
"""

from collections.abc import AsyncIterator, Sequence

from streamshell.core.errors import InvalidArgumentError


def select_items(source: Sequence[str], limit: int | None = None) -> tuple[str, ...]:
    """Return the items one request will stream."""
    if limit is None:
        return tuple(source)
    if limit < 0:
        raise InvalidArgumentError(
            f"limit must be zero or greater, got {limit}", argument="limit",
        )
    return tuple(source[:limit])


async def iter_items(items: Sequence[str]) -> AsyncIterator[str]:
    """Yield items one at a time."""
    for item in items:
        yield item
