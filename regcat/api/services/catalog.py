"""Catalog page building for the registry API."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from regcat.api.errors import ErrorCode, RegistryAPIError
from regcat.storage.enumerator import RepositoryEnumerator, WalkStatus

log = logger.bind(module="api.catalog")

_EXHAUSTED_STATUSES = frozenset(
    {WalkStatus.PATH_NOT_FOUND, WalkStatus.FINISHED_WALK, WalkStatus.END_OF_STREAM}
)


@dataclass(frozen=True, slots=True)
class CatalogPage:
    """One page of repository names."""

    names: tuple[str, ...]
    filled: int
    exhausted: bool
    limit: int

    @property
    def next_cursor(self) -> str | None:
        """Return the cursor for the following page, or None at the end."""
        if self.exhausted or not self.names:
            return None
        return self.names[-1]


def _is_exhausted(status: WalkStatus) -> bool:
    if status in _EXHAUSTED_STATUSES:
        return True
    if status is WalkStatus.OK:
        return False
    raise RegistryAPIError(ErrorCode.UNKNOWN, detail=f"unexpected walk status: {status!r}")


def build_catalog_page(enumerator: RepositoryEnumerator, *, last: str, limit: int) -> CatalogPage:
    """Ask the enumerator for up to `limit` names after `last`.

    Exhaustion is decided by the walk status alone, not by comparing the
    number of filled slots to `limit`.

    Raises:
        RegistryAPIError: When the enumerator fails; no partial page is returned.
    """

    limit = max(0, int(limit))
    slots = [""] * limit
    try:
        result = enumerator.repositories(slots, last)
    except Exception as exc:
        log.error("Repository enumeration failed after {!r}: {}", last, exc)
        raise RegistryAPIError(ErrorCode.UNKNOWN, detail=str(exc)) from exc

    filled = max(0, min(int(result.filled), limit))
    exhausted = _is_exhausted(result.status)
    if not exhausted and filled == 0:
        # Nothing to continue from.
        exhausted = True

    return CatalogPage(
        names=tuple(slots[:filled]),
        filled=filled,
        exhausted=exhausted,
        limit=limit,
    )
