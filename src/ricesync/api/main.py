"""ricesync FastAPI application factory.

The lifespan resolves the repository before the application accepts
requests; a ConfigurationError aborts start-up.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ricesync import __version__
from ricesync.api.errors import generic_exception_handler, store_error_handler
from ricesync.api.middleware.request_id import RequestIdMiddleware
from ricesync.api.routes.health import router as health_router
from ricesync.bootstrap import open_store
from ricesync.config import StoreSettings
from ricesync.observability.tracing import configure_tracing
from ricesync.storage.errors import StoreError
from ricesync.storage.remote_api import RemoteFileApi


def create_app(
    settings: StoreSettings | None = None,
    api: RemoteFileApi | None = None,
) -> FastAPI:
    """Create and configure the ricesync FastAPI application.

    Args:
        settings: Settings to use. If None, read from the environment at start-up.
        api: Optional backend for testing. If None, a GitHubFileApi is built
            from settings and closed on shutdown.

    Returns:
        Configured FastAPI application instance. The initialized
        StoreComponents are available as app.state.store_components.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resolved = settings or StoreSettings.from_env()
        components = await open_store(resolved, api=api)
        app.state.store_components = components
        try:
            yield
        finally:
            if api is None:
                await components.api.aclose()

    app = FastAPI(
        title="ricesync",
        description="Rice record blob storage on a versioned remote repository",
        version=__version__,
        lifespan=lifespan,
    )

    configure_tracing()

    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)

    return app
