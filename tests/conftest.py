from __future__ import annotations

from pathlib import Path
from typing import Generator, Sequence

import sys

import pytest
from fastapi.testclient import TestClient

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from regcat.api.app import create_app
from regcat.api.services.notifications import RepositoryNotifier
from regcat.config import Settings
from regcat.storage.enumerator import InMemoryEnumerator


class RecordingNotifier(RepositoryNotifier):
    """Notifier that records dispatches instead of spawning senders."""

    def __init__(self) -> None:
        super().__init__(endpoint=None, registry="registry.test")
        self.calls: list[tuple[tuple[str, ...], str | None]] = []

    def notify_in_background(self, names: Sequence[str], *, endpoint: str | None = None) -> None:
        self.calls.append((tuple(names), endpoint))


@pytest.fixture
def settings() -> Generator[Settings, None, None]:
    """Return a fresh Settings instance for each test."""

    yield Settings(http_host="registry.test", catalog_max_entries=1024)


@pytest.fixture
def enumerator() -> InMemoryEnumerator:
    return InMemoryEnumerator(["a", "b", "c"])


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(
    settings: Settings,
    enumerator: InMemoryEnumerator,
    notifier: RecordingNotifier,
) -> Generator[TestClient, None, None]:
    app = create_app(settings, enumerator=enumerator, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client
