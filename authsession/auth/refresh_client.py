"""Refresh endpoint HTTP client."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import aiohttp
from pydantic import ValidationError

from ..constants import REFRESH_ENDPOINT, REFRESH_REQUEST_TIMEOUT_SECONDS
from ..errors.internal import ParsingError, RefreshRejected, RefreshTransportError
from ..logs.logger import logger
from .models import RefreshTokenResponse
from .types import RefreshOutcome, RefreshResult


class RefreshClient:
    """Client for the backend's ``auth/refresh-token`` endpoint.

    Every failure mode is folded into a RefreshResult so the coordinator can
    count rejected and unreachable refreshes against one budget.
    """

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        *,
        endpoint: str = REFRESH_ENDPOINT,
        timeout: float = REFRESH_REQUEST_TIMEOUT_SECONDS,
    ):
        """Initialize the refresh client.

        Args:
            base_url: Backend base URL.
            http_session: HTTP session for making requests.
            endpoint: Refresh endpoint path relative to the base URL.
            timeout: Total timeout for one refresh call in seconds.
        """
        self.url = urljoin(base_url if base_url.endswith("/") else f"{base_url}/", endpoint)
        self.session = http_session
        self.timeout = timeout

    async def refresh(self, refresh_token: str | None) -> RefreshResult:
        """Exchange the refresh token for a new access token.

        Args:
            refresh_token: The stored refresh token, if any.

        Returns:
            RefreshResult with REFRESHED on success, REJECTED when the backend
            answered without a usable token, TRANSPORT_ERROR when it could not
            be reached.
        """
        if not refresh_token:
            logger.log_event("refresh", "no_refresh_token", level=logging.WARNING)
            return RefreshResult(RefreshOutcome.REJECTED, message="No refresh token stored")
        try:
            return await self._post(refresh_token)
        except RefreshTransportError as e:
            logger.log_event(
                "refresh",
                "transport_error",
                level=logging.WARNING,
                error=str(e),
                error_type=type(e).__name__,
            )
            return RefreshResult(RefreshOutcome.TRANSPORT_ERROR, message=str(e))
        except (RefreshRejected, ParsingError) as e:
            logger.log_event(
                "refresh",
                "rejected",
                level=logging.WARNING,
                reason=str(e),
                **e.data,
            )
            return RefreshResult(RefreshOutcome.REJECTED, message=str(e))

    async def _post(self, refresh_token: str) -> RefreshResult:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with self.session.post(
                self.url, json={"refresh_token": refresh_token}, timeout=timeout
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError as e:
                    raise ParsingError(
                        "Refresh response is not JSON", data={"status": resp.status}
                    ) from e
                status = resp.status
        except TimeoutError as e:
            raise RefreshTransportError("Token refresh timeout") from e
        except aiohttp.ClientError as e:
            raise RefreshTransportError(f"Network error during token refresh: {e}") from e

        try:
            payload = RefreshTokenResponse.model_validate(body)
        except ValidationError as e:
            raise ParsingError(
                "Unexpected refresh response shape", data={"status": status}
            ) from e

        access_token = payload.access_token
        if not access_token:
            raise RefreshRejected(
                payload.message or f"HTTP {status} during token refresh",
                data={"status": status},
            )
        rotated = payload.data.refresh_token if payload.data else None
        return RefreshResult(
            RefreshOutcome.REFRESHED, access_token=access_token, refresh_token=rotated
        )


__all__ = ["RefreshClient"]
