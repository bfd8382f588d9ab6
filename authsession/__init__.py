"""Authenticated HTTP session layer for the member app backend.

Attaches bearer tokens to outgoing requests, refreshes an expired access
token once for any number of concurrent 401s, replays the waiting requests
and ends the session with a single user-facing notification when refresh
attempts run out.
"""

from .application_context import ApplicationContext  # noqa: F401
from .http.models import ApiRequest, ApiResponse  # noqa: F401

__all__ = ["ApplicationContext", "ApiRequest", "ApiResponse"]

__version__ = "1.0.0"
