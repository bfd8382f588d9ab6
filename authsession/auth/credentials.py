"""Bearer credential attachment."""

from __future__ import annotations

from ..http.models import ApiRequest
from .types import TokenPair


def attach_credentials(request: ApiRequest, tokens: TokenPair) -> ApiRequest:
    """Return ``request`` carrying the access token as a bearer credential.

    A missing access token is not an error: the request is returned as is.
    Requests flagged as unauthenticated never carry credentials.
    """
    if not request.authenticated or not tokens.access_token:
        return request
    return request.with_headers(Authorization=f"Bearer {tokens.access_token}")


__all__ = ["attach_credentials"]
