from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Payload(BaseModel):
    # Backends add fields freely; only the ones below are part of the contract.
    model_config = ConfigDict(extra="ignore")


class RefreshTokenData(_Payload):
    access_token: str | None = None
    refresh_token: str | None = None

    @field_validator("access_token", "refresh_token", mode="before")
    @classmethod
    def blank_as_none(cls, v: Any) -> Any:
        """Treat empty or whitespace-only tokens as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RefreshTokenResponse(_Payload):
    """Body of ``POST auth/refresh-token``."""

    success: bool = False
    data: RefreshTokenData | None = None
    message: str | None = None

    @property
    def access_token(self) -> str | None:
        if not self.success or self.data is None:
            return None
        return self.data.access_token


class LoginCredentials(_Payload):
    mem_email_id: str = Field(min_length=1)
    mem_app_password: str = Field(min_length=1)


class LoginUser(_Payload):
    mem_id: int | None = None
    mem_app_id: str | None = None
    mem_email_id: str | None = None
    mem_name: str | None = None
    center_id: int | None = None
    mem_app_status: str | None = None


class LoginData(RefreshTokenData):
    user: LoginUser | None = None
    message: str | None = None


class LoginResponse(_Payload):
    """Body of ``POST auth/login`` (success and error answers share it)."""

    success: bool = False
    data: LoginData | None = None
    message: str | None = None

    @property
    def access_token(self) -> str | None:
        if not self.success or self.data is None:
            return None
        return self.data.access_token


__all__ = [
    "RefreshTokenData",
    "RefreshTokenResponse",
    "LoginCredentials",
    "LoginUser",
    "LoginData",
    "LoginResponse",
]
