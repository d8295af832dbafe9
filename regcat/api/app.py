"""FastAPI application factory for the regcat registry catalog API."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from regcat.api.errors import register_error_handlers
from regcat.api.routers.catalog import router as catalog_router
from regcat.api.services.notifications import RepositoryNotifier
from regcat.config import Settings, get_settings
from regcat.net.http import HttpClient
from regcat.storage.enumerator import InMemoryEnumerator, RepositoryEnumerator

API_V2_PREFIX = "/v2"

log = logger.bind(module="api.app")


def build_notifier(settings: Settings, *, http: HttpClient | None = None) -> RepositoryNotifier:
    """Create the catalog notifier from settings."""

    if http is None:
        http = HttpClient(
            timeout_seconds=settings.catalog_notify_timeout_seconds,
            user_agent=f"{settings.app_name}-catalog",
            reuse_connections=True,
        )
    return RepositoryNotifier(
        endpoint=settings.catalog_callback,
        secret=settings.http_secret,
        registry=settings.http_host,
        http=http,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Release the notifier's pooled connections on shutdown."""
    log.info("Catalog API started for registry {!r}", app.state.settings.http_host)
    yield
    app.state.notifier.close()


def create_app(
    settings: Settings | None = None,
    *,
    enumerator: RepositoryEnumerator | None = None,
    notifier: RepositoryNotifier | None = None,
) -> FastAPI:
    """Create the FastAPI application instance."""

    settings = settings or get_settings()
    if enumerator is None:
        enumerator = InMemoryEnumerator(settings.catalog_repositories)
    if notifier is None:
        notifier = build_notifier(settings)

    app = FastAPI(
        title="regcat registry catalog",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.settings = settings
    app.state.enumerator = enumerator
    app.state.notifier = notifier

    register_error_handlers(app)
    app.include_router(catalog_router, prefix=API_V2_PREFIX, tags=["catalog"])
    return app
