from __future__ import annotations

import asyncio

import pydantic
import pytest

from authsession.auth.models import LoginCredentials
from authsession.auth.types import RefreshState
from authsession.constants import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY
from authsession.errors.internal import ParsingError, SessionExpired
from tests.fixtures.http_fakes import FakeResp

LOGIN_OK = {
    "success": True,
    "data": {
        "access_token": "A1",
        "refresh_token": "B1",
        "user": {
            "mem_id": 42,
            "mem_app_id": "APP42",
            "mem_email_id": "member@example.com",
            "mem_name": "Member",
            "center_id": 3,
            "mem_app_status": "active",
        },
        "message": "Login successful",
    },
}


@pytest.mark.asyncio
async def test_login_success_stores_tokens(context, backend, token_store):
    backend.routes[("POST", "auth/login")] = FakeResp(200, LOGIN_OK)
    await token_store.remove_all([ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY])

    payload = await context.auth.login(
        {"mem_email_id": "member@example.com", "mem_app_password": "secret"}
    )

    assert payload.success
    assert payload.data is not None and payload.data.user is not None
    assert payload.data.user.mem_id == 42
    assert token_store.snapshot() == {ACCESS_TOKEN_KEY: "A1", REFRESH_TOKEN_KEY: "B1"}
    sent = backend.requests[0]
    assert sent["url"] == "http://api.test/auth/login"
    assert sent["json"] == {"mem_email_id": "member@example.com", "mem_app_password": "secret"}
    assert "Authorization" not in sent["headers"]
    assert await context.auth.is_authenticated()


@pytest.mark.asyncio
async def test_login_failure_returns_payload_without_storing(context, backend, token_store):
    backend.routes[("POST", "auth/login")] = FakeResp(
        401, {"success": False, "message": "Invalid email or password"}
    )
    await token_store.remove_all([ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY])

    payload = await context.auth.login(
        LoginCredentials(mem_email_id="member@example.com", mem_app_password="wrong")
    )

    assert payload.success is False
    assert payload.message == "Invalid email or password"
    assert token_store.snapshot() == {}
    assert backend.refresh_calls == []
    assert not await context.auth.is_authenticated()


@pytest.mark.asyncio
async def test_login_unexpected_body_raises_parsing_error(context, backend):
    backend.routes[("POST", "auth/login")] = FakeResp(200, "<html>maintenance</html>")
    with pytest.raises(ParsingError):
        await context.auth.login({"mem_email_id": "a@b.c", "mem_app_password": "x"})


def test_login_credentials_validated():
    with pytest.raises(pydantic.ValidationError):
        LoginCredentials(mem_email_id="", mem_app_password="x")


@pytest.mark.asyncio
async def test_login_clears_pending_expiry_notification(context, backend):
    context.notifier.set_handler(lambda _message, _ack: None)
    context.notifier.notify()
    assert context.notifier.is_showing
    backend.routes[("POST", "auth/login")] = FakeResp(200, LOGIN_OK)

    await context.auth.login({"mem_email_id": "a@b.c", "mem_app_password": "x"})

    assert not context.notifier.is_showing


@pytest.mark.asyncio
async def test_logout_purges_tokens_and_resets_refresh(context, backend, token_store):
    backend.refresh_delay = 0.05
    pending = asyncio.create_task(context.pipeline.get("members/profile"))
    while context.coordinator.state is not RefreshState.REFRESHING:
        await asyncio.sleep(0)

    await context.auth.logout()

    assert token_store.snapshot() == {}
    assert not await context.auth.is_authenticated()
    with pytest.raises(SessionExpired):
        await pending
    assert await token_store.get(ACCESS_TOKEN_KEY) is None
    assert context.coordinator.state is RefreshState.IDLE


@pytest.mark.asyncio
async def test_logout_calls_coordinator_reset(token_store, notifier):
    from unittest.mock import AsyncMock, Mock

    from authsession.auth.service import AuthService

    coordinator = Mock()
    coordinator.reset = AsyncMock()
    service = AuthService(Mock(), token_store, coordinator, notifier)

    await service.logout()

    coordinator.reset.assert_awaited_once()
    assert token_store.snapshot() == {}
