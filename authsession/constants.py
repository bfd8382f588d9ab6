"""
Configuration constants for the authenticated API session layer

This module contains all configurable constants used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Retrieve a non-empty string value from an environment variable."""
    value = os.getenv(name)
    if value is not None and value.strip():
        return value.strip()
    return default


# Backend endpoint
API_BASE_URL = _get_env_str(
    "API_BASE_URL", "http://192.168.0.173:3000/"
)  # Base URL every request path is joined onto
API_REQUEST_TIMEOUT_SECONDS = _get_env_float(
    "API_REQUEST_TIMEOUT_SECONDS", 10.0
)  # Total timeout for business requests
LOGIN_ENDPOINT = _get_env_str("LOGIN_ENDPOINT", "auth/login")
REFRESH_ENDPOINT = _get_env_str("REFRESH_ENDPOINT", "auth/refresh-token")

# Token refresh coordination
UNAUTHORIZED_STATUS = _get_env_int(
    "UNAUTHORIZED_STATUS", 401
)  # HTTP status that enters the refresh flow
MAX_REFRESH_ATTEMPTS = _get_env_int(
    "MAX_REFRESH_ATTEMPTS", 1
)  # Failed refreshes tolerated before the session is expired
REFRESH_RETRY_DELAY_SECONDS = _get_env_float(
    "REFRESH_RETRY_DELAY_SECONDS", 0.3
)  # Fixed delay before the owner replays its original request
REFRESH_WAITER_TIMEOUT_SECONDS = _get_env_float(
    "REFRESH_WAITER_TIMEOUT_SECONDS", 30.0
)  # How long a queued caller waits for an in-flight refresh
REFRESH_REQUEST_TIMEOUT_SECONDS = _get_env_float(
    "REFRESH_REQUEST_TIMEOUT_SECONDS", 30.0
)  # Total timeout of the refresh endpoint call

# Credential storage keys
ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
TOKEN_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY)
TOKEN_STORE_FILE = _get_env_str(
    "TOKEN_STORE_FILE", "authsession_tokens.json"
)  # Default path used by FileTokenStore

# User-facing text
SESSION_EXPIRED_MESSAGE = _get_env_str(
    "SESSION_EXPIRED_MESSAGE",
    "Your session has expired. Please log in again.",
)
