"""Repository enumeration boundary.

The catalog never walks storage itself. It asks a `RepositoryEnumerator` to
fill a caller-owned list of slots with repository names, in lexicographic
order, starting strictly after a cursor. The enumerator reports how the walk
ended with a `WalkStatus` tag; hard backing-store failures are raised.
"""

from __future__ import annotations

import bisect
import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

__all__ = [
    "InMemoryEnumerator",
    "RepositoryEnumerator",
    "StorageError",
    "WalkResult",
    "WalkStatus",
]


class StorageError(RuntimeError):
    """Raised by an enumerator when the backing store cannot be walked."""


class WalkStatus(enum.Enum):
    """How an enumeration call ended."""

    OK = "ok"
    PATH_NOT_FOUND = "path_not_found"
    FINISHED_WALK = "finished_walk"
    END_OF_STREAM = "end_of_stream"


@dataclass(frozen=True, slots=True)
class WalkResult:
    filled: int
    status: WalkStatus = WalkStatus.OK


@runtime_checkable
class RepositoryEnumerator(Protocol):
    def repositories(self, slots: list[str], last: str) -> WalkResult:
        """Fill `slots` with names greater than `last` and report the outcome."""
        ...


class InMemoryEnumerator:
    """Enumerator over a fixed, in-process set of repository names.

    Names are de-duplicated and sorted once at construction. Blank names are
    dropped. The walk ends with `END_OF_STREAM` when the namespace ran out
    before the slots were filled, and with `OK` otherwise.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: tuple[str, ...] = tuple(sorted({str(n) for n in names if n}))

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def repositories(self, slots: list[str], last: str) -> WalkResult:
        start = bisect.bisect_right(self._names, last) if last else 0
        remaining = self._names[start:]
        filled = min(len(slots), len(remaining))
        slots[:filled] = remaining[:filled]
        if filled < len(remaining):
            return WalkResult(filled=filled, status=WalkStatus.OK)
        return WalkResult(filled=filled, status=WalkStatus.END_OF_STREAM)
