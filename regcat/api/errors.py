"""Registry API error codes and their JSON envelope.

Every failure that reaches the HTTP boundary is rendered as::

    {"errors": [{"code": "UNKNOWN", "message": "unknown error", "detail": "..."}]}

Pagination failures are not given codes of their own; they surface as
`UNKNOWN` with the underlying cause as detail.
"""

from __future__ import annotations

import enum
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

__all__ = [
    "API_VERSION_HEADER",
    "ErrorCode",
    "RegistryAPIError",
    "register_error_handlers",
]

log = logger.bind(module="api.errors")

API_VERSION_HEADER = {"Docker-Distribution-API-Version": "registry/2.0"}


class ErrorCode(enum.Enum):
    UNKNOWN = ("UNKNOWN", "unknown error", 500)

    def __init__(self, code: str, message: str, http_status: int) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status


class RegistryAPIError(Exception):
    """Error raised inside a handler and rendered as an errcode envelope."""

    def __init__(self, code: ErrorCode = ErrorCode.UNKNOWN, *, detail: Any = None) -> None:
        super().__init__(code.message if detail is None else f"{code.message}: {detail}")
        self.code = code
        self.detail = detail

    @property
    def http_status(self) -> int:
        return self.code.http_status

    def to_response(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"code": self.code.code, "message": self.code.message}
        if self.detail is not None:
            entry["detail"] = self.detail
        return {"errors": [entry]}


def register_error_handlers(app: FastAPI) -> None:
    """Register the registry error handler on the FastAPI app."""

    @app.exception_handler(RegistryAPIError)
    async def registry_error_handler(request: Request, exc: RegistryAPIError) -> JSONResponse:
        log.error("{} {} failed: {}", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(),
            headers=API_VERSION_HEADER,
        )

