"""Retry policy abstraction for token refresh.

The refresh retry policy is flat: a fixed attempt budget and a
fixed delay before the original request is replayed. Decisions are a pure
function of the failure counter so they can be tested without the
coordinator's queuing logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..constants import MAX_REFRESH_ATTEMPTS, REFRESH_RETRY_DELAY_SECONDS
from ..logs.logger import logger


@dataclass(frozen=True, slots=True)
class RetryDecision:
    retry: bool
    delay: float = 0.0


@dataclass(frozen=True, slots=True)
class RefreshRetryPolicy:
    name: str = "token_refresh"
    max_attempts: int = MAX_REFRESH_ATTEMPTS
    retry_delay: float = REFRESH_RETRY_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")

    def decide(self, fail_count: int) -> RetryDecision:
        """Decide what follows the ``fail_count``-th consecutive refresh failure.

        Args:
            fail_count: Failures counted so far, including the one just observed.

        Returns:
            RetryDecision with ``retry`` True and the fixed delay while the
            budget lasts, ``retry`` False once it is exhausted.
        """
        if fail_count < self.max_attempts:
            return RetryDecision(retry=True, delay=self.retry_delay)
        return RetryDecision(retry=False)

    def log_decision(self, fail_count: int, decision: RetryDecision, reason: str) -> None:
        """Emit the structured attempt / give-up event for a decision."""
        if decision.retry:
            logger.log_event(
                "refresh",
                "attempt_failed",
                level=logging.WARNING,
                policy=self.name,
                attempt=fail_count,
                max_attempts=self.max_attempts,
                wait_time=round(decision.delay, 3),
                reason=reason,
            )
        else:
            logger.log_event(
                "refresh",
                "give_up",
                level=logging.ERROR,
                policy=self.name,
                attempt=fail_count,
                max_attempts=self.max_attempts,
                reason=reason,
            )


DEFAULT_REFRESH_POLICY = RefreshRetryPolicy()

__all__ = ["RetryDecision", "RefreshRetryPolicy", "DEFAULT_REFRESH_POLICY"]
