"""Session expiration notification with at-most-once delivery per episode."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..constants import SESSION_EXPIRED_MESSAGE
from ..logs.logger import logger

AckCallback = Callable[[], None]
SessionExpiredHandler = Callable[[str, AckCallback], Awaitable[None] | None]
Navigator = Callable[[], Awaitable[None] | None]


class SessionExpiryNotifier:
    """Surfaces a single session-expired message per expiration episode.

    The UI registers a handler receiving the message and an acknowledgement
    callback. The episode ends (and navigation to login happens) only when
    the UI acknowledges. Without a handler the navigator is called directly
    and the episode lasts until ``reset()`` (a fresh login).
    """

    def __init__(
        self,
        navigate_to_login: Navigator | None = None,
        *,
        message: str = SESSION_EXPIRED_MESSAGE,
    ) -> None:
        self._navigate_to_login = navigate_to_login
        self._handler: SessionExpiredHandler | None = None
        self.message = message
        self._expired_flag = False
        # Retained background tasks (async handlers / navigators) to prevent premature GC.
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_showing(self) -> bool:
        """True while an expiration episode is open."""
        return self._expired_flag

    def set_handler(self, handler: SessionExpiredHandler | None) -> None:
        self._handler = handler

    def notify(self, message: str | None = None) -> bool:
        """Start an expiration episode unless one is already showing.

        Args:
            message: User-facing text; defaults to the configured message.

        Returns:
            True if the handler (or the navigator fallback) was invoked,
            False if an unacknowledged notification suppressed this one.
        """
        if self._expired_flag:
            logger.log_event("session", "notification_suppressed", level=logging.DEBUG)
            return False
        self._expired_flag = True
        text = message or self.message
        handler = self._handler
        if handler is None:
            # Nothing to acknowledge: the episode stays open until reset().
            logger.log_event("session", "no_handler_navigate")
            self._navigate()
            return True
        logger.log_event("session", "notification_shown")
        try:
            result = handler(text, self.acknowledge)
        except Exception as e:  # noqa: BLE001
            self._handler_failed(e)
            return True
        if inspect.isawaitable(result):
            self._retain(result, category="session_expired_handler")
        return True

    def acknowledge(self) -> None:
        """Acknowledgement continuation handed to the UI handler.

        Clears the flag and navigates to login. Repeated calls are ignored.
        """
        if not self._expired_flag:
            return
        self._expired_flag = False
        logger.log_event("session", "acknowledged")
        self._navigate()

    def reset(self) -> None:
        """Clear the flag without navigating (a fresh login ends the episode)."""
        self._expired_flag = False

    async def drain(self) -> None:
        """Wait for scheduled handler / navigation tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _navigate(self) -> None:
        if self._navigate_to_login is None:
            logger.log_event("session", "no_navigator", level=logging.WARNING)
            return
        try:
            result = self._navigate_to_login()
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "session",
                "navigation_error",
                level=logging.ERROR,
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        if inspect.isawaitable(result):
            self._retain(result, category="navigate_to_login")

    def _handler_failed(self, exc: BaseException) -> None:
        # The user never saw the message: fall back to direct navigation.
        logger.log_event(
            "session",
            "handler_error",
            level=logging.ERROR,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        if not self._expired_flag:
            return  # acknowledged before failing; navigation already happened
        self._expired_flag = False
        self._navigate()

    def _retain(self, awaitable: Awaitable[Any], *, category: str) -> None:
        task: asyncio.Task[Any] = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _done(t: asyncio.Task[Any]) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is None:
                return
            if category == "session_expired_handler":
                self._handler_failed(exc)
            else:
                logger.log_event(
                    "session",
                    "background_task_error",
                    level=logging.ERROR,
                    category=category,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        task.add_done_callback(_done)


__all__ = ["SessionExpiryNotifier", "SessionExpiredHandler", "AckCallback", "Navigator"]
