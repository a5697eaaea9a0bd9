"""streamshell API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Every unhandled failure is normalized into an ErrorDocument
    - Logging configured on startup via the lifespan context manager
    - Middleware order (outermost first): request logging → exception handling → routes

Design Decisions:
    - create_app factory plus module-level `app`: uvicorn serves `streamshell.main:app`,
      tests build isolated apps with their own settings
    - Settings stored on app.state so routes read the app's settings, not a global
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from streamshell.api.error_handlers import register_error_handlers
from streamshell.api.middleware import RequestLoggingMiddleware
from streamshell.api.routes import stream
from streamshell.config import Settings, get_settings
from streamshell.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    logger.info("%s started", settings.app_name)
    yield
    logger.info("%s shutting down", settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build a configured FastAPI application."""
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    # Routes: explicit registration
    app.include_router(stream.router)

    # Added innermost first: the last middleware added wraps all the others.
    register_error_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)
    return app


app = create_app()
