"""Request and response value types used by the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ApiRequest:
    """An outgoing backend call.

    Attributes:
        method: HTTP method ("GET", "POST", ...).
        path: Path relative to the API base URL (an absolute URL is used as is).
        params: Query string parameters.
        json: JSON body.
        headers: Extra headers; the Authorization header is managed by the pipeline.
        retried: Set once the request has been replayed after a refresh.
        authenticated: False for calls that must never carry or refresh credentials.
    """

    method: str
    path: str
    params: dict[str, Any] | None = None
    json: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    retried: bool = False
    authenticated: bool = True

    @property
    def label(self) -> str:
        return f"{self.method.upper()} {self.path.lstrip('/')}"

    @property
    def bearer_token(self) -> str | None:
        """Token currently carried in the Authorization header, if any."""
        value = self.headers.get("Authorization")
        if value and value.startswith("Bearer "):
            return value[len("Bearer ") :]
        return None

    def with_headers(self, **headers: str) -> ApiRequest:
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    def without_header(self, name: str) -> ApiRequest:
        if name not in self.headers:
            return self
        return replace(self, headers={k: v for k, v in self.headers.items() if k != name})

    def mark_retried(self) -> ApiRequest:
        return replace(self, retried=True)


@dataclass(frozen=True)
class ApiResponse:
    """A backend answer with its decoded body."""

    status: int
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    request: ApiRequest | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


__all__ = ["ApiRequest", "ApiResponse"]
