"""Authenticated request pipeline.

Every outgoing call goes through ``RequestPipeline.send``: credentials are
attached, the request is sent, and a 401 hands control to the refresh
coordinator before the request is replayed exactly once.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urljoin

import aiohttp

from ..auth.coordinator import RefreshCoordinator
from ..auth.credentials import attach_credentials
from ..auth.session_expiry import SessionExpiredHandler, SessionExpiryNotifier
from ..auth.types import GrantOutcome, TokenPair
from ..constants import (
    ACCESS_TOKEN_KEY,
    API_REQUEST_TIMEOUT_SECONDS,
    REFRESH_TOKEN_KEY,
    UNAUTHORIZED_STATUS,
)
from ..errors.internal import DoubleRetryBlocked, NetworkError
from ..logs.logger import logger
from ..storage.token_store import TokenStore
from .models import ApiRequest, ApiResponse

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class RequestPipeline:
    """Sends requests with bearer credentials and transparent token refresh."""

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        token_store: TokenStore,
        coordinator: RefreshCoordinator,
        notifier: SessionExpiryNotifier,
        *,
        timeout: float = API_REQUEST_TIMEOUT_SECONDS,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        if http_session is None:
            raise TypeError("http_session cannot be None")
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.session = http_session
        self.store = token_store
        self.coordinator = coordinator
        self.notifier = notifier
        self.timeout = timeout
        self.default_headers = dict(DEFAULT_HEADERS if default_headers is None else default_headers)

    def set_session_expired_handler(self, handler: SessionExpiredHandler | None) -> None:
        """Register the UI callback shown once per session expiration."""
        self.notifier.set_handler(handler)

    async def send(self, request: ApiRequest) -> ApiResponse:
        """Send ``request``, refreshing credentials and replaying once on 401.

        Returns:
            The backend response for any non-401 status.

        Raises:
            NetworkError: The request could not be delivered.
            DoubleRetryBlocked: The replayed request received 401 again.
            SessionExpired: Refresh attempts are exhausted.
            RefreshTimeout: The in-flight refresh did not finish in time.
        """
        prepared = attach_credentials(request, await self._current_tokens())
        response = await self._dispatch(prepared)
        if response.status != UNAUTHORIZED_STATUS or not request.authenticated:
            return response
        return await self._handle_unauthorized(prepared, response)

    async def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.send(ApiRequest("GET", path, **kwargs))

    async def post(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.send(ApiRequest("POST", path, **kwargs))

    async def put(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.send(ApiRequest("PUT", path, **kwargs))

    async def patch(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.send(ApiRequest("PATCH", path, **kwargs))

    async def delete(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.send(ApiRequest("DELETE", path, **kwargs))

    async def _handle_unauthorized(
        self, request: ApiRequest, response: ApiResponse
    ) -> ApiResponse:
        if request.retried:
            logger.log_event(
                "request", "double_retry_blocked", level=logging.WARNING, request=request.label
            )
            raise DoubleRetryBlocked(
                f"{request.label} unauthorized after refresh", response=response
            )
        logger.log_event("request", "unauthorized", level=logging.DEBUG, request=request.label)
        grant = await self.coordinator.refresh(request.bearer_token)
        replay = request.mark_retried().without_header("Authorization")
        if grant.outcome is GrantOutcome.REFRESHED and grant.access_token:
            replay = attach_credentials(replay, TokenPair(grant.access_token))
        else:
            replay = attach_credentials(replay, await self._current_tokens())
        logger.log_event(
            "request",
            "replay",
            level=logging.DEBUG,
            request=request.label,
            grant=grant.outcome.value,
        )
        replayed = await self._dispatch(replay)
        if replayed.status == UNAUTHORIZED_STATUS:
            return await self._handle_unauthorized(replay, replayed)
        return replayed

    async def _current_tokens(self) -> TokenPair:
        return TokenPair(
            await self.store.get(ACCESS_TOKEN_KEY),
            await self.store.get(REFRESH_TOKEN_KEY),
        )

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    async def _dispatch(self, request: ApiRequest) -> ApiResponse:
        headers = {**self.default_headers, **request.headers}
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        url = self._url(request.path)
        try:
            async with self.session.request(
                request.method.upper(),
                url,
                headers=headers,
                params=request.params,
                json=request.json,
                timeout=timeout,
            ) as resp:
                raw = await resp.read()
                status = resp.status
                resp_headers = dict(resp.headers)
        except TimeoutError as e:
            logger.log_event(
                "request", "timeout", level=logging.WARNING, request=request.label, timeout=self.timeout
            )
            raise NetworkError(
                f"{request.label} timed out after {self.timeout}s", data={"url": url}
            ) from e
        except aiohttp.ClientError as e:
            logger.log_event(
                "request",
                "network_error",
                level=logging.WARNING,
                request=request.label,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise NetworkError(
                f"Network error during {request.label}: {e}", data={"url": url}
            ) from e
        logger.log_event(
            "request", "response", level=logging.DEBUG, request=request.label, status=status
        )
        return ApiResponse(status, _decode_body(raw), resp_headers, request)


def _decode_body(raw: bytes) -> Any:
    """JSON when possible, text for other UTF-8 bodies, bytes otherwise."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        pass
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw


__all__ = ["RequestPipeline", "DEFAULT_HEADERS"]
