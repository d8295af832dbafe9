from __future__ import annotations

import threading
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

from regcat.api.app import build_notifier, create_app
from regcat.api.errors import ErrorCode
from regcat.config import Settings
from regcat.net.http import HttpClient
from regcat.storage.enumerator import InMemoryEnumerator, StorageError, WalkResult


def _next_params(link: str) -> dict[str, list[str]]:
    url = link[link.index("<") + 1 : link.index(">")]
    return parse_qs(urlsplit(url).query)


def test_first_page_has_link_header(client: TestClient, notifier) -> None:
    response = client.get("/v2/_catalog", params={"n": 2, "last": ""})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    assert response.headers["docker-distribution-api-version"] == "registry/2.0"
    assert response.json() == {"repositories": ["a", "b"]}
    assert response.headers["link"] == '</v2/_catalog?last=b&n=2>; rel="next"'
    assert notifier.calls == [(("a", "b"), None)]


def test_last_page_has_no_link_header(client: TestClient) -> None:
    response = client.get("/v2/_catalog", params={"n": 2, "last": "b"})
    assert response.status_code == 200
    assert response.json() == {"repositories": ["c"]}
    assert "link" not in response.headers


@pytest.mark.parametrize("enumerator", [InMemoryEnumerator()])
def test_empty_namespace(client: TestClient, notifier) -> None:
    response = client.get("/v2/_catalog")
    assert response.json() == {"repositories": []}
    assert "link" not in response.headers
    assert notifier.calls == [((), None)]


def test_zero_page_size_returns_empty_final_page(client: TestClient) -> None:
    response = client.get("/v2/_catalog?n=0")
    assert response.json() == {"repositories": []}
    assert "link" not in response.headers


@pytest.mark.parametrize("n", ["", "abc", "-3", "1.5", "9" * 5000])
def test_invalid_page_size_uses_ceiling(client: TestClient, n: str) -> None:
    response = client.get("/v2/_catalog", params={"n": n})
    assert response.status_code == 200
    assert response.json() == {"repositories": ["a", "b", "c"]}


def test_page_size_is_capped_by_ceiling(notifier) -> None:
    settings = Settings(catalog_max_entries=2)
    app = create_app(settings, enumerator=InMemoryEnumerator(["a", "b", "c"]), notifier=notifier)
    with TestClient(app) as client:
        response = client.get("/v2/_catalog?n=50")
    assert response.json() == {"repositories": ["a", "b"]}
    assert _next_params(response.headers["link"]) == {"last": ["b"], "n": ["2"]}


def test_following_links_walks_the_whole_namespace(notifier) -> None:
    names = [f"team-{i}/app" for i in range(11)]
    app = create_app(Settings(), enumerator=InMemoryEnumerator(names), notifier=notifier)
    seen: list[str] = []
    with TestClient(app) as client:
        url = "/v2/_catalog?n=3#ignored"
        while url:
            response = client.get(url)
            assert response.status_code == 200
            seen.extend(response.json()["repositories"])
            link = response.headers.get("link")
            url = link[link.index("<") + 1 : link.index(">")] if link else ""
            if url:
                assert "#" not in url
    assert seen == sorted(names)


def test_repeated_request_is_idempotent(client: TestClient) -> None:
    first = client.get("/v2/_catalog?n=1&last=a")
    second = client.get("/v2/_catalog?n=1&last=a")
    assert first.json() == second.json() == {"repositories": ["b"]}
    assert first.headers["link"] == second.headers["link"]


def test_callback_override_is_forwarded(client: TestClient, notifier) -> None:
    client.get("/v2/_catalog", params={"callback": "http://override.local/cb"})
    assert notifier.calls == [(("a", "b", "c"), "http://override.local/cb")]


def test_callback_override_can_be_disabled(notifier) -> None:
    settings = Settings(catalog_callback_override=False)
    app = create_app(settings, enumerator=InMemoryEnumerator(["a"]), notifier=notifier)
    with TestClient(app) as client:
        client.get("/v2/_catalog", params={"callback": "http://override.local/cb"})
    assert notifier.calls == [(("a",), None)]


class _FailingEnumerator:
    def repositories(self, slots: list[str], last: str) -> WalkResult:
        raise StorageError("backend unavailable")


@pytest.mark.parametrize("enumerator", [_FailingEnumerator()])
def test_storage_error_returns_unknown_error(client: TestClient, notifier) -> None:
    response = client.get("/v2/_catalog")
    assert response.status_code == 500
    assert response.json() == {
        "errors": [{"code": "UNKNOWN", "message": "unknown error", "detail": "backend unavailable"}]
    }
    assert "repositories" not in response.json()
    assert "link" not in response.headers
    assert notifier.calls == []


def test_unreachable_collector_does_not_affect_response() -> None:
    attempted = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        attempted.set()
        raise httpx.ConnectError("connection refused", request=request)

    settings = Settings(
        http_host="registry.test",
        http_secret="s3",
        catalog_callback="http://collector.invalid/hook",
    )
    notifier = build_notifier(settings, http=HttpClient(transport=httpx.MockTransport(handler)))
    app = create_app(settings, enumerator=InMemoryEnumerator(["a", "b"]), notifier=notifier)
    with TestClient(app) as client:
        response = client.get("/v2/_catalog")
    assert response.status_code == 200
    assert response.json() == {"repositories": ["a", "b"]}
    assert attempted.wait(timeout=5)


def test_default_enumerator_is_seeded_from_settings() -> None:
    settings = Settings(catalog_repositories=["z", "y"])
    app = create_app(settings)
    assert app.state.notifier.registry == settings.http_host
    with TestClient(app) as client:
        response = client.get("/v2/_catalog")
    assert response.json() == {"repositories": ["y", "z"]}


def test_link_header_does_not_expose_the_host(client: TestClient) -> None:
    response = client.get("/v2/_catalog?n=1#frag", headers={"Host": "internal:5000"})
    link = response.headers["link"]
    assert link == '</v2/_catalog?last=a&n=1>; rel="next"'
    assert "internal" not in link


def test_repeated_parameters_use_the_first_value(client: TestClient, notifier) -> None:
    response = client.get(
        "/v2/_catalog?last=a&last=b&n=1&n=5&callback=http://first.local/cb&callback=http://second.local/cb"
    )
    assert response.json() == {"repositories": ["b"]}
    assert _next_params(response.headers["link"]) == {"last": ["b"], "n": ["1"]}
    assert notifier.calls == [(("b",), "http://first.local/cb")]


@pytest.mark.parametrize("query", ["n=%ff", "last=%ff", "callback=", "n=1&n=x"])
def test_odd_query_strings_never_fail_validation(client: TestClient, query: str) -> None:
    response = client.get(f"/v2/_catalog?{query}")
    assert response.status_code == 200
    assert "repositories" in response.json()


def test_unknown_is_the_only_error_code() -> None:
    assert [code.code for code in ErrorCode] == ["UNKNOWN"]
