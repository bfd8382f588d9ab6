"""Authentication: credential attachment, token refresh and session expiry.

``AuthService`` lives in :mod:`authsession.auth.service` and is not
re-exported here because it depends on the HTTP pipeline.
"""

from .coordinator import RefreshCoordinator  # noqa: F401
from .credentials import attach_credentials  # noqa: F401
from .refresh_client import RefreshClient  # noqa: F401
from .session_expiry import SessionExpiryNotifier  # noqa: F401
from .types import (  # noqa: F401
    GrantOutcome,
    RefreshGrant,
    RefreshOutcome,
    RefreshResult,
    RefreshState,
    TokenPair,
)

__all__ = [
    "RefreshCoordinator",
    "RefreshClient",
    "SessionExpiryNotifier",
    "attach_credentials",
    "GrantOutcome",
    "RefreshGrant",
    "RefreshOutcome",
    "RefreshResult",
    "RefreshState",
    "TokenPair",
]
