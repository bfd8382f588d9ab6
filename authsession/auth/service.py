"""Login, logout and authentication status on top of the pipeline."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..constants import ACCESS_TOKEN_KEY, LOGIN_ENDPOINT, REFRESH_TOKEN_KEY, TOKEN_KEYS
from ..errors.internal import ParsingError
from ..http.models import ApiRequest
from ..http.pipeline import RequestPipeline
from ..logs.logger import logger
from ..storage.token_store import TokenStore
from .coordinator import RefreshCoordinator
from .models import LoginCredentials, LoginResponse
from .session_expiry import SessionExpiryNotifier


class AuthService:
    """Credential lifecycle operations driven by the login and settings screens."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        token_store: TokenStore,
        coordinator: RefreshCoordinator,
        notifier: SessionExpiryNotifier,
        *,
        login_endpoint: str = LOGIN_ENDPOINT,
    ) -> None:
        self.pipeline = pipeline
        self.store = token_store
        self.coordinator = coordinator
        self.notifier = notifier
        self.login_endpoint = login_endpoint

    async def login(self, credentials: LoginCredentials | dict[str, Any]) -> LoginResponse:
        """Authenticate and persist the issued tokens.

        Error answers from the backend (wrong password, locked account) are
        returned as a LoginResponse with ``success`` False rather than raised.

        Raises:
            NetworkError: The backend could not be reached.
            ParsingError: The backend answered with an unexpected body.
        """
        creds = (
            credentials
            if isinstance(credentials, LoginCredentials)
            else LoginCredentials.model_validate(credentials)
        )
        response = await self.pipeline.send(
            ApiRequest(
                "POST",
                self.login_endpoint,
                json=creds.model_dump(),
                authenticated=False,
            )
        )
        try:
            payload = LoginResponse.model_validate(response.data)
        except ValidationError as e:
            raise ParsingError(
                "Unexpected login response shape", data={"status": response.status}
            ) from e

        access_token = payload.access_token if response.ok else None
        if not access_token:
            logger.log_event(
                "auth",
                "login_failed",
                level=logging.WARNING,
                status=response.status,
                message=payload.message or "",
            )
            return payload

        await self.store.set(ACCESS_TOKEN_KEY, access_token)
        if payload.data and payload.data.refresh_token:
            await self.store.set(REFRESH_TOKEN_KEY, payload.data.refresh_token)
        # A fresh login closes any expiration episode still on screen.
        self.notifier.reset()
        logger.log_event("auth", "login_success")
        return payload

    async def logout(self) -> None:
        """Drop both tokens and abandon any refresh cycle in flight."""
        await self.store.remove_all(TOKEN_KEYS)
        await self.coordinator.reset()
        logger.log_event("auth", "logout")

    async def is_authenticated(self) -> bool:
        return bool(await self.store.get(ACCESS_TOKEN_KEY))


__all__ = ["AuthService"]
