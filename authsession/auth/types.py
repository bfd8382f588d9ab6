"""Shared types for the auth package."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RefreshState(Enum):
    """Coordinator state.

    Attributes:
        IDLE: No refresh call in flight.
        REFRESHING: One owner is performing the refresh call; others queue.
    """

    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshOutcome(str, Enum):
    """Outcome of a single refresh endpoint call.

    Attributes:
        REFRESHED: A new access token was issued.
        REJECTED: The endpoint answered without a usable token.
        TRANSPORT_ERROR: The endpoint could not be reached.
    """

    REFRESHED = "refreshed"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


class GrantOutcome(str, Enum):
    """What a caller released by the coordinator should do next.

    Attributes:
        REFRESHED: Replay the request with the granted token.
        RETRY: Refresh failed but attempts remain; replay with the stored token.
    """

    REFRESHED = "refreshed"
    RETRY = "retry"


@dataclass(frozen=True)
class TokenPair:
    access_token: str | None
    refresh_token: str | None = None


@dataclass(frozen=True)
class RefreshResult:
    """Result of one refresh endpoint call.

    Attributes:
        outcome: The outcome of the call.
        access_token: The new access token on success.
        refresh_token: A rotated refresh token when the backend issued one.
        message: Backend or transport message explaining a failure.
    """

    outcome: RefreshOutcome
    access_token: str | None = None
    refresh_token: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class RefreshGrant:
    """Value every caller of the coordinator receives when it is released."""

    outcome: GrantOutcome
    access_token: str | None = None


__all__ = [
    "RefreshState",
    "RefreshOutcome",
    "GrantOutcome",
    "TokenPair",
    "RefreshResult",
    "RefreshGrant",
]
