"""Retry toolkit."""

from .retry_policies import (  # noqa: F401
    DEFAULT_REFRESH_POLICY,
    RefreshRetryPolicy,
    RetryDecision,
)

__all__ = ["RefreshRetryPolicy", "RetryDecision", "DEFAULT_REFRESH_POLICY"]
