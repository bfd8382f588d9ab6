"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType

import aiohttp

from .auth.coordinator import RefreshCoordinator
from .auth.refresh_client import RefreshClient
from .auth.service import AuthService
from .auth.session_expiry import Navigator, SessionExpiryNotifier
from .constants import API_BASE_URL, REFRESH_WAITER_TIMEOUT_SECONDS
from .http.pipeline import RequestPipeline
from .logs.logger import logger
from .rate.retry_policies import DEFAULT_REFRESH_POLICY, RefreshRetryPolicy
from .storage.token_store import InMemoryTokenStore, TokenStore


class ApplicationContext:
    """Holds the HTTP session and the components wired around it."""

    # Class / instance attribute type declarations (helps mypy)
    session: aiohttp.ClientSession | None
    token_store: TokenStore
    notifier: SessionExpiryNotifier
    coordinator: RefreshCoordinator
    pipeline: RequestPipeline
    auth: AuthService
    _owns_session: bool
    _lock: asyncio.Lock

    def __init__(self) -> None:
        self.session = None
        self._owns_session = False
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        base_url: str = API_BASE_URL,
        *,
        token_store: TokenStore | None = None,
        navigate_to_login: Navigator | None = None,
        http_session: aiohttp.ClientSession | None = None,
        policy: RefreshRetryPolicy = DEFAULT_REFRESH_POLICY,
        waiter_timeout: float = REFRESH_WAITER_TIMEOUT_SECONDS,
    ) -> ApplicationContext:
        """Create and wire a new ApplicationContext.

        Args:
            base_url: Backend base URL.
            token_store: Credential storage; an in-memory store by default.
            navigate_to_login: Navigation collaborator invoked on acknowledgement.
            http_session: Existing aiohttp session to reuse (not closed on shutdown).
            policy: Refresh retry policy.
            waiter_timeout: Seconds a queued caller waits for an in-flight refresh.

        Returns:
            A fully wired ApplicationContext.
        """
        ctx = cls()
        if http_session is None:
            ctx.session = aiohttp.ClientSession()
            ctx._owns_session = True
        else:
            ctx.session = http_session
        ctx.token_store = token_store if token_store is not None else InMemoryTokenStore()
        ctx.notifier = SessionExpiryNotifier(navigate_to_login)
        ctx.coordinator = RefreshCoordinator(
            ctx.token_store,
            RefreshClient(base_url, ctx.session),
            ctx.notifier,
            policy=policy,
            waiter_timeout=waiter_timeout,
        )
        ctx.pipeline = RequestPipeline(
            base_url, ctx.session, ctx.token_store, ctx.coordinator, ctx.notifier
        )
        ctx.auth = AuthService(ctx.pipeline, ctx.token_store, ctx.coordinator, ctx.notifier)
        logger.log_event("app", "context_created", level=logging.DEBUG, base_url=base_url)
        return ctx

    # --------------------------- Lifecycle -------------------------- #
    async def __aenter__(self) -> ApplicationContext:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()

    async def shutdown(self) -> None:
        """Wait for pending notifier tasks and close the HTTP session if owned."""
        async with self._lock:
            await self.notifier.drain()
            await self._close_http_session()
            logger.log_event("app", "shutdown")

    async def _close_http_session(self) -> None:
        if not self.session:
            return
        try:
            if self._owns_session:
                await self.session.close()
        except (aiohttp.ClientError, OSError) as e:
            logger.log_event(
                "app",
                "session_close_error",
                level=logging.ERROR,
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            self.session = None


__all__ = ["ApplicationContext"]
