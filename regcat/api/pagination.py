"""Pagination helpers for the catalog API."""

from __future__ import annotations

import re
from typing import Final
from urllib.parse import urlencode, urlsplit, urlunsplit

from regcat.api.errors import ErrorCode, RegistryAPIError
from regcat.config import DEFAULT_CATALOG_MAX_ENTRIES

MAX_ENTRIES_PARAM: Final[str] = "n"
LAST_ENTRY_PARAM: Final[str] = "last"

_INT_RE = re.compile(r"[+-]?[0-9]+")


def resolve_page_limit(raw: str | None, *, ceiling: int = DEFAULT_CATALOG_MAX_ENTRIES) -> int:
    """Resolve the `n` query value into the number of slots to allocate.

    Missing, unparseable and negative values fall back to `ceiling`. Values
    above `ceiling` are clamped to it. Zero is accepted.
    """

    ceiling = int(ceiling)
    if ceiling <= 0:
        ceiling = DEFAULT_CATALOG_MAX_ENTRIES
    if raw is None or not _INT_RE.fullmatch(raw):
        return ceiling
    try:
        limit = int(raw)
    except ValueError:
        # Digit strings past the interpreter's conversion limit.
        return ceiling
    if limit < 0:
        return ceiling
    return min(limit, ceiling)


def build_next_link(original_url: str, *, limit: int, last: str) -> str:
    """Return a `Link` header value pointing at the page after `last`.

    The original URL is reused with its query replaced by `last` and `n`, and
    its fragment removed.
    """

    try:
        parts = urlsplit(original_url)
        query = urlencode(sorted({LAST_ENTRY_PARAM: last, MAX_ENTRIES_PARAM: str(int(limit))}.items()))
        url = urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))
    except ValueError as exc:
        raise RegistryAPIError(ErrorCode.UNKNOWN, detail=str(exc)) from exc
    return f'<{url}>; rel="next"'
