"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the request pipeline and the
refresh coordinator. Only raise these inside application/network boundaries –
never surface raw aiohttp / JSON errors to callers; wrap them instead.

Classes:
  InternalError          – Base for all internal errors.
  NetworkError           – Transport failure of a business request.
  ParsingError           – Response parsing / schema validation issues.
  Unauthorized           – HTTP 401 observed for a request.
  DoubleRetryBlocked     – 401 for a request that was already replayed once.
  RefreshTransportError  – Refresh call failed at the network layer.
  RefreshRejected        – Refresh endpoint answered without a usable token.
  RefreshTimeout         – A queued caller gave up waiting for a refresh.
  SessionExpired         – Terminal refresh failure; user must log in again.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..http.models import ApiResponse


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This includes connection failures, resets and timeouts of a business
    request. The refresh call uses RefreshTransportError instead.
    """


class ParsingError(InternalError):
    """Exception raised for response parsing or schema validation errors."""


class Unauthorized(InternalError):
    """HTTP 401 observed for a request.

    Attributes:
        response: The 401 response as received from the backend.
    """

    def __init__(self, message: str, *, response: ApiResponse | None = None) -> None:
        super().__init__(message, data={"status": getattr(response, "status", None)})
        self.response = response


class DoubleRetryBlocked(Unauthorized):
    """A request already replayed after a refresh received 401 again.

    Carries the original 401 response and never re-enters the refresh flow.
    """


class RefreshTransportError(InternalError):
    """The refresh endpoint could not be reached or timed out."""


class RefreshRejected(InternalError):
    """The refresh endpoint answered but produced no usable access token."""


class RefreshTimeout(InternalError):
    """A waiter was not released before its own timeout elapsed.

    Only the caller that registered the waiter observes this error.
    """


class SessionExpired(InternalError):
    """Terminal refresh failure broadcast to the owner and every waiter."""


__all__ = [
    "InternalError",
    "NetworkError",
    "ParsingError",
    "Unauthorized",
    "DoubleRetryBlocked",
    "RefreshTransportError",
    "RefreshRejected",
    "RefreshTimeout",
    "SessionExpired",
]
