"""Stream Route — POST endpoint that streams items as flushed text lines.

Invariants:
    - Item selection (and its validation) happens before the response starts,
      so a bad limit becomes a 400 error document, never a truncated stream
    - Every request iterates the shared item tuple independently
"""

from fastapi import APIRouter, Depends, Request

from streamshell.api.streaming import IncrementalTextResponse
from streamshell.config import Settings
from streamshell.core.stream_source import iter_items, select_items

router = APIRouter(prefix="/api/v1", tags=["stream"])


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/stream", response_class=IncrementalTextResponse)
async def stream_items(
    limit: int | None = None,
    settings: Settings = Depends(get_app_settings),
):
    """Stream configured items, one line per pacing interval."""
    items = select_items(settings.stream_items, limit)
    return IncrementalTextResponse(
        iter_items(items), interval=settings.stream_interval_seconds,
    )
