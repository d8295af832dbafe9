"""Shared HTTP helpers built on top of httpx.

This module centralizes default timeout/redirect behavior and provides a small
sync wrapper that maps httpx exceptions into regcat-friendly errors.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Mapping

import httpx

__all__ = ["HttpCallError", "HttpClient", "safe_response_text"]

_MIN_TIMEOUT_SECONDS = 0.1
_MAX_ERROR_TEXT_CHARS = 2048


class HttpCallError(RuntimeError):
    """Raised when an HTTP request fails or returns a non-success response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = str(message)
        self.status_code = int(status_code) if status_code is not None else None

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.status_code is None:
            return self.message
        return f"{self.message} (status={self.status_code})"


def _truncate(text: str, *, limit: int) -> str:
    """Return a truncated string with an ellipsis when needed."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    head = text[: max(0, limit - 3)].rstrip()
    return f"{head}..."


def safe_response_text(response: httpx.Response) -> str:
    """Best-effort extraction of response text for error messages.

    The returned value is trimmed and truncated to keep logs readable.
    """
    try:
        text = (response.text or "").strip()
    except Exception:
        try:
            text = response.content.decode("utf-8", errors="replace").strip()
        except Exception:
            text = ""
    return _truncate(text, limit=_MAX_ERROR_TEXT_CHARS)


class HttpClient:
    """Small sync HTTP client with consistent defaults and error mapping.

    Notes:
        - By default, a short-lived `httpx.Client` is created per request.
        - When `reuse_connections=True`, an internal persistent `httpx.Client` is
          used to enable connection pooling. `httpx.Client` is thread-safe, so a
          single instance may be shared by background senders. Call `close()`
          (or use this object as a context manager) to release resources.
        - Timeouts are clamped to at least `_MIN_TIMEOUT_SECONDS`.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        follow_redirects: bool = True,
        user_agent: str | None = None,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        reuse_connections: bool = False,
    ) -> None:
        self.timeout_seconds = float(timeout_seconds)
        self.follow_redirects = bool(follow_redirects)
        self.transport = transport
        self.reuse_connections = bool(reuse_connections)

        merged: dict[str, str] = dict(headers or {})
        if user_agent and "User-Agent" not in merged:
            merged["User-Agent"] = user_agent
        self.headers = merged
        self._client: httpx.Client | None = None
        self._finalizer: weakref.finalize | None = None

    def _build_client(self) -> httpx.Client:
        timeout = float(max(_MIN_TIMEOUT_SECONDS, self.timeout_seconds))
        kwargs: dict[str, object] = {
            "timeout": timeout,
            "follow_redirects": self.follow_redirects,
            "headers": self.headers,
        }
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return httpx.Client(**kwargs)  # type: ignore[arg-type]

    def open(self) -> None:
        """Open an internal persistent `httpx.Client` when reuse is enabled."""
        if not self.reuse_connections:
            return
        if self._client is not None:
            return
        self._client = self._build_client()
        # Ensure we don't leak open pools if callers forget to close explicitly.
        self._finalizer = weakref.finalize(self, self._client.close)

    def close(self) -> None:
        """Close any internal persistent `httpx.Client`."""
        if self._finalizer is not None:
            self._finalizer.detach()
            self._finalizer = None
        if self._client is None:
            return
        self._client.close()
        self._client = None

    def __enter__(self) -> "HttpClient":
        self.open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    @contextmanager
    def _client_ctx(self) -> Iterator[httpx.Client]:
        if self.reuse_connections:
            self.open()
            assert self._client is not None
            yield self._client
            return
        with self._build_client() as client:
            yield client

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send an HTTP request and return the response.

        The body is read before the underlying client is released, so callers
        may inspect `response.text` afterwards.

        Raises:
            HttpCallError: When the request fails or returns a 4xx/5xx response.
        """
        method = (method or "GET").strip().upper()
        target = (url or "").strip()
        if not target:
            raise ValueError("url must be non-empty.")

        try:
            with self._client_ctx() as client:
                response = client.request(
                    method,
                    target,
                    params=dict(params) if params else None,
                    headers=dict(headers) if headers else None,
                    content=content,
                )
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as exc:
            message = safe_response_text(exc.response) or "HTTP request failed"
            raise HttpCallError(message, status_code=int(exc.response.status_code)) from exc
        except httpx.RequestError as exc:
            raise HttpCallError(f"HTTP request failed: {exc}") from exc

    def post_json(
        self,
        url: str,
        body: bytes,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """POST an already-encoded JSON document and return the response."""
        merged_headers: dict[str, str] = {"Content-Type": "application/json; charset=utf-8"}
        if headers:
            merged_headers.update(dict(headers))
        return self.request("POST", url, params=params, headers=merged_headers, content=body)
