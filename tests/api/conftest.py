"""API test fixtures — app built per test, httpx client over ASGI.

Invariants:
    - Every test gets a fresh app with zero pacing and a three-item source
    - Failure routes are mounted on a throwaway router, never on the real one
"""

import pytest
from fastapi import APIRouter
from fastapi.responses import Response
from httpx import ASGITransport, AsyncClient
from starlette.types import Receive, Scope, Send

from streamshell.config import Settings
from streamshell.core.errors import InvalidArgumentError
from streamshell.main import create_app

STREAM_ITEMS = ("Cold", "Mild", "Hot")


class _PartialThenFail(Response):
    """Response that sends one byte, then blows up mid-body."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"x", "more_body": True})
        raise RuntimeError("failed after first byte")


def _failure_router() -> APIRouter:
    router = APIRouter(prefix="/boom")

    @router.get("/invalid")
    async def invalid():
        raise InvalidArgumentError("bad id")

    @router.get("/runtime")
    async def runtime():
        raise RuntimeError("db down")

    @router.get("/value")
    def value():
        raise ValueError("not a number")

    @router.get("/items/{item_id}")
    async def item(item_id: int):
        return {"id": item_id}

    @router.get("/after-start")
    async def after_start():
        return _PartialThenFail()

    return router


@pytest.fixture
def settings():
    return Settings(stream_interval_seconds=0, stream_items=STREAM_ITEMS)


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.include_router(_failure_router())
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
async def lenient_client(app):
    """Client that returns whatever was sent even if the app raised."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c
