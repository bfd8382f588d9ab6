"""Single-flight access token refresh coordination.

When many requests observe HTTP 401 at once, exactly one of them (the owner)
calls the refresh endpoint. Everyone else registers a waiter and is released
with the owner's outcome, in registration order.

State transitions and waiter queue mutations happen under one asyncio lock;
the refresh network call itself runs outside it so new callers can queue
while it is in flight.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from contextlib import suppress

import aiohttp

from ..constants import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    REFRESH_WAITER_TIMEOUT_SECONDS,
    TOKEN_KEYS,
)
from ..errors.internal import (
    InternalError,
    RefreshTimeout,
    RefreshTransportError,
    SessionExpired,
)
from ..logs.logger import logger
from ..rate.retry_policies import DEFAULT_REFRESH_POLICY, RefreshRetryPolicy
from ..storage.token_store import TokenStore
from .refresh_client import RefreshClient
from .session_expiry import SessionExpiryNotifier
from .types import (
    GrantOutcome,
    RefreshGrant,
    RefreshOutcome,
    RefreshResult,
    RefreshState,
)

_Waiter = asyncio.Future  # resolved with RefreshGrant or rejected with InternalError


class RefreshCoordinator:
    """Owns refresh state, the failure counter and the waiter queue."""

    def __init__(
        self,
        token_store: TokenStore,
        refresh_client: RefreshClient,
        notifier: SessionExpiryNotifier,
        *,
        policy: RefreshRetryPolicy = DEFAULT_REFRESH_POLICY,
        waiter_timeout: float = REFRESH_WAITER_TIMEOUT_SECONDS,
    ) -> None:
        self.store = token_store
        self.client = refresh_client
        self.notifier = notifier
        self.policy = policy
        self.waiter_timeout = waiter_timeout
        self.state = RefreshState.IDLE
        self.fail_count = 0
        self._lock = asyncio.Lock()
        self._waiters: deque[_Waiter] = deque()
        # Id of the current refresh cycle; reset() bumps it so an owner from
        # an abandoned cycle can neither persist its result nor touch waiters.
        self._cycle = 0

    @property
    def pending_waiters(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def refresh(self, failed_token: str | None = None) -> RefreshGrant:
        """Obtain credentials to replay a request that received 401.

        Args:
            failed_token: Access token the failing request was sent with.

        Returns:
            RefreshGrant telling the caller how to replay its request.

        Raises:
            SessionExpired: Refresh attempts are exhausted; tokens were purged.
            RefreshTimeout: This caller waited longer than ``waiter_timeout``.
        """
        waiter: _Waiter | None = None
        async with self._lock:
            if self.state is RefreshState.REFRESHING:
                waiter = asyncio.get_running_loop().create_future()
                self._waiters.append(waiter)
                logger.log_event(
                    "refresh", "waiter_enqueued", level=logging.DEBUG, queued=len(self._waiters)
                )
            else:
                current = await self.store.get(ACCESS_TOKEN_KEY)
                if current and current != failed_token:
                    # Another cycle already replaced the token this request used.
                    logger.log_event("refresh", "stale_token", level=logging.DEBUG)
                    return RefreshGrant(GrantOutcome.REFRESHED, current)
                # Read before leaving IDLE: nothing may suspend between the
                # state change and the guarded owner path.
                refresh_token = await self.store.get(REFRESH_TOKEN_KEY)
                self.state = RefreshState.REFRESHING
                self._cycle += 1
                cycle = self._cycle
        if waiter is not None:
            return await self._wait(waiter)
        return await self._run_owner(refresh_token, cycle)

    async def reset(self) -> None:
        """Return to IDLE, rejecting queued waiters (used on logout)."""
        async with self._lock:
            self._cycle += 1
            self.fail_count = 0
            rejected = self._reject_all(
                lambda: SessionExpired("Session ended", data={"reason": "reset"})
            )
            self.state = RefreshState.IDLE
        logger.log_event("refresh", "reset", level=logging.DEBUG, rejected=rejected)

    async def _wait(self, waiter: _Waiter) -> RefreshGrant:
        try:
            return await asyncio.wait_for(waiter, timeout=self.waiter_timeout)
        except TimeoutError:
            logger.log_event(
                "refresh", "waiter_timeout", level=logging.WARNING, timeout=self.waiter_timeout
            )
            raise RefreshTimeout(
                f"Token refresh did not complete within {self.waiter_timeout}s"
            ) from None
        finally:
            # wait_for cancelled the future on timeout; drop it so a later
            # broadcast cannot see it.
            with suppress(ValueError):
                self._waiters.remove(waiter)

    async def _run_owner(self, refresh_token: str | None, cycle: int) -> RefreshGrant:
        logger.log_event("refresh", "start", queued=len(self._waiters))
        try:
            result = await self._call_refresh(refresh_token)
            async with self._lock:
                if cycle != self._cycle:
                    logger.log_event("refresh", "discarded", level=logging.DEBUG)
                    raise SessionExpired("Session ended", data={"reason": "reset"})
                if result.outcome is RefreshOutcome.REFRESHED and result.access_token:
                    try:
                        return await self._complete_success(
                            result.access_token, result.refresh_token
                        )
                    except OSError as e:
                        logger.log_event(
                            "refresh",
                            "persist_failed",
                            level=logging.ERROR,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        result = RefreshResult(
                            RefreshOutcome.REJECTED,
                            message=f"Could not store refreshed token: {e}",
                        )
                grant, delay = await self._complete_failure(result)
        except BaseException:
            self._abandon_cycle(cycle)
            raise
        if delay > 0:
            await asyncio.sleep(delay)
        return grant

    async def _call_refresh(self, refresh_token: str | None) -> RefreshResult:
        try:
            return await self.client.refresh(refresh_token)
        except RefreshTransportError as e:
            return RefreshResult(RefreshOutcome.TRANSPORT_ERROR, message=str(e))
        except (TimeoutError, aiohttp.ClientError) as e:
            return RefreshResult(
                RefreshOutcome.TRANSPORT_ERROR, message=f"{type(e).__name__}: {e}"
            )

    async def _complete_success(
        self, access_token: str, refresh_token: str | None
    ) -> RefreshGrant:
        # Waiters are released only after both writes landed.
        await self.store.set(ACCESS_TOKEN_KEY, access_token)
        if refresh_token:
            await self.store.set(REFRESH_TOKEN_KEY, refresh_token)
        self.fail_count = 0
        grant = RefreshGrant(GrantOutcome.REFRESHED, access_token)
        released = self._release_all(grant)
        self.state = RefreshState.IDLE
        logger.log_event("refresh", "success", waiters=released)
        return grant

    async def _complete_failure(self, result: RefreshResult) -> tuple[RefreshGrant, float]:
        self.fail_count += 1
        reason = result.message or result.outcome.value
        decision = self.policy.decide(self.fail_count)
        self.policy.log_decision(self.fail_count, decision, reason)
        if not decision.retry:
            await self._expire_session(reason)
            raise SessionExpired("Session expired", data={"reason": reason})
        grant = RefreshGrant(GrantOutcome.RETRY)
        self._release_all(grant)
        self.state = RefreshState.IDLE
        return grant, decision.delay

    async def _expire_session(self, reason: str) -> None:
        self.fail_count = 0
        try:
            await self.store.remove_all(TOKEN_KEYS)
        except OSError as e:
            logger.log_event(
                "session",
                "purge_failed",
                level=logging.ERROR,
                error=str(e),
                error_type=type(e).__name__,
            )
        self.notifier.notify()
        rejected = self._reject_all(
            lambda: SessionExpired("Session expired", data={"reason": reason})
        )
        self.state = RefreshState.IDLE
        logger.log_event("session", "expired", level=logging.WARNING, waiters=rejected)

    def _abandon_cycle(self, cycle: int) -> None:
        # Owner failed unexpectedly or was cancelled; never leave waiters parked.
        if cycle == self._cycle and self.state is RefreshState.REFRESHING:
            self._release_all(RefreshGrant(GrantOutcome.RETRY))
            self.state = RefreshState.IDLE

    def _release_all(self, grant: RefreshGrant) -> int:
        released = 0
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(grant)
                released += 1
        return released

    def _reject_all(self, make_error: Callable[[], InternalError]) -> int:
        rejected = 0
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(make_error())
                rejected += 1
        return rejected


__all__ = ["RefreshCoordinator"]
