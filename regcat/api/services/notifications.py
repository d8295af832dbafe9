"""Best-effort catalog notifications.

Every catalog page is reported to an external collector with a single POST of
``{"registry": <host>, "repos": [...]}``. Delivery is at most once: there is no
retry, no queue and no durability. Failures are logged and dropped so they
never reach the HTTP caller.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Sequence
from typing import Any

from loguru import logger

from regcat.net.http import HttpCallError, HttpClient, safe_response_text

__all__ = ["NotificationError", "RepositoryNotifier"]

log = logger.bind(module="api.notifications")


class NotificationError(HttpCallError):
    """Raised when a catalog notification cannot be delivered."""


def _clean_endpoint(value: str | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RepositoryNotifier:
    """Posts repository listings to a collector endpoint."""

    def __init__(
        self,
        *,
        endpoint: str | None,
        secret: str = "",
        registry: str = "",
        http: HttpClient | None = None,
    ) -> None:
        self.endpoint = _clean_endpoint(endpoint)
        self.secret = secret or ""
        self.registry = registry or ""
        self._http = http or HttpClient(user_agent="regcat-catalog")

    def close(self) -> None:
        self._http.close()

    def resolve_endpoint(self, override: str | None = None) -> str | None:
        """Return the per-request override when set, else the default endpoint."""
        return _clean_endpoint(override) or self.endpoint

    def build_payload(self, names: Iterable[str]) -> dict[str, Any]:
        return {"registry": self.registry, "repos": [n for n in names if n]}

    def post_repos(self, names: Sequence[str], *, endpoint: str | None = None) -> bool:
        """Send one notification synchronously.

        Returns False without sending anything when no endpoint is configured.

        Raises:
            NotificationError: On serialization or transport failure, or when the
                collector answers with anything other than 200.
        """
        target = self.resolve_endpoint(endpoint)
        if target is None:
            return False

        payload = self.build_payload(names)
        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise NotificationError(f"post to {target}: encoding {payload!r} failed: {exc}") from exc

        params = {"secret": self.secret} if self.secret else None
        try:
            response = self._http.post_json(target, body, params=params)
        except HttpCallError as exc:
            raise NotificationError(
                f"post to {target} failed: {exc.message}",
                status_code=exc.status_code,
            ) from exc

        if response.status_code != 200:
            raise NotificationError(
                f"post to {target}: remote server returned {safe_response_text(response)!r}",
                status_code=response.status_code,
            )
        return True

    def _send(self, names: Sequence[str], endpoint: str) -> None:
        try:
            self.post_repos(names, endpoint=endpoint)
        except Exception as exc:
            log.warning("Catalog notification dropped: {}", exc)
            return
        log.debug("Catalog notification delivered to {} ({} repos)", endpoint, len(names))

    def notify_in_background(self, names: Sequence[str], *, endpoint: str | None = None) -> None:
        """Fire-and-forget `post_repos` on a daemon thread.

        The thread is not tracked; its outcome is only visible in the logs.
        """
        target = self.resolve_endpoint(endpoint)
        if target is None:
            log.debug("No catalog callback configured; skipping notification")
            return
        thread = threading.Thread(
            target=self._send,
            args=(tuple(names), target),
            name="catalog-notify",
            daemon=True,
        )
        thread.start()
