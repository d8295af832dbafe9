"""Catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from regcat.api.errors import API_VERSION_HEADER
from regcat.api.pagination import LAST_ENTRY_PARAM, MAX_ENTRIES_PARAM, build_next_link, resolve_page_limit
from regcat.api.schemas.catalog import CatalogOut
from regcat.api.services.catalog import build_catalog_page
from regcat.api.services.notifications import RepositoryNotifier
from regcat.config import Settings
from regcat.storage.enumerator import RepositoryEnumerator

router = APIRouter()

JSON_MEDIA_TYPE = "application/json; charset=utf-8"
CALLBACK_PARAM = "callback"


def _first_param(request: Request, name: str) -> str | None:
    """Return the first value of a repeated query parameter."""
    values = request.query_params.getlist(name)
    return values[0] if values else None


def _request_target(request: Request) -> str:
    """Return the path and query of the request, without scheme or host."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


@router.get("/_catalog", response_model=CatalogOut)
def get_catalog(request: Request) -> JSONResponse:
    settings: Settings = request.app.state.settings
    enumerator: RepositoryEnumerator = request.app.state.enumerator
    notifier: RepositoryNotifier = request.app.state.notifier

    last = _first_param(request, LAST_ENTRY_PARAM) or ""
    limit = resolve_page_limit(_first_param(request, MAX_ENTRIES_PARAM), ceiling=settings.catalog_max_entries)
    page = build_catalog_page(enumerator, last=last, limit=limit)

    headers = dict(API_VERSION_HEADER)
    cursor = page.next_cursor
    if cursor is not None:
        headers["Link"] = build_next_link(_request_target(request), limit=page.limit, last=cursor)

    override = _first_param(request, CALLBACK_PARAM) if settings.catalog_callback_override else None
    notifier.notify_in_background(page.names, endpoint=override)

    body = CatalogOut(repositories=list(page.names))
    return JSONResponse(content=body.model_dump(), headers=headers, media_type=JSON_MEDIA_TYPE)
