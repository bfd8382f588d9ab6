"""Error taxonomy for the session layer."""

from .internal import (  # noqa: F401
    DoubleRetryBlocked,
    InternalError,
    NetworkError,
    ParsingError,
    RefreshRejected,
    RefreshTimeout,
    RefreshTransportError,
    SessionExpired,
    Unauthorized,
)

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
