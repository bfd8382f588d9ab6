from __future__ import annotations

import aiohttp
import pytest

from authsession.constants import ACCESS_TOKEN_KEY, SESSION_EXPIRED_MESSAGE
from authsession.errors.internal import DoubleRetryBlocked, NetworkError, SessionExpired
from authsession.http.models import ApiRequest
from authsession.rate.retry_policies import RefreshRetryPolicy
from tests.fixtures.http_fakes import FakeResp


@pytest.mark.asyncio
async def test_authorized_request_passes_through(context, backend):
    backend.valid_token = "T1"

    resp = await context.pipeline.get("members/profile", params={"page": 1})

    assert resp.status == 200
    assert resp.ok
    assert resp.data == {"success": True, "data": {"url": "http://api.test/members/profile"}}
    assert backend.refresh_calls == []
    sent = backend.requests[0]
    assert sent["method"] == "GET"
    assert sent["params"] == {"page": 1}
    assert sent["headers"]["Authorization"] == "Bearer T1"
    assert sent["headers"]["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_request_without_stored_token_has_no_authorization(context, backend, token_store):
    await token_store.remove(ACCESS_TOKEN_KEY)
    backend.routes[("GET", "public/news")] = FakeResp(200, {"items": []})

    resp = await context.pipeline.get("/public/news")

    assert resp.data == {"items": []}
    assert "Authorization" not in backend.requests[0]["headers"]


@pytest.mark.asyncio
async def test_unauthorized_refreshes_and_replays_once(context, backend, token_store):
    resp = await context.pipeline.post("members/checkin", json={"center_id": 3})

    assert resp.status == 200
    assert backend.authorizations() == ["Bearer T1", "Bearer T2"]
    assert [r["json"] for r in backend.requests] == [{"center_id": 3}] * 2
    assert len(backend.refresh_calls) == 1
    assert backend.refresh_calls[0]["json"] == {"refresh_token": "R1"}
    assert await token_store.get(ACCESS_TOKEN_KEY) == "T2"
    assert resp.request is not None and resp.request.retried


@pytest.mark.asyncio
async def test_already_retried_request_is_blocked(context, backend):
    with pytest.raises(DoubleRetryBlocked) as exc_info:
        await context.pipeline.send(ApiRequest("GET", "members/profile", retried=True))

    assert exc_info.value.response is not None
    assert exc_info.value.response.status == 401
    assert backend.refresh_calls == []


@pytest.mark.asyncio
async def test_replay_rejected_again_is_blocked(context, backend):
    # Refresh issues T2 but the backend only accepts T9
    backend.valid_token = "T9"

    with pytest.raises(DoubleRetryBlocked):
        await context.pipeline.get("members/profile")

    assert len(backend.refresh_calls) == 1
    assert backend.authorizations() == ["Bearer T1", "Bearer T2"]


@pytest.mark.asyncio
async def test_retry_grant_replays_with_stored_token(context, backend):
    context.coordinator.policy = RefreshRetryPolicy(max_attempts=2, retry_delay=0.0)
    backend.refresh_status = 500
    backend.refresh_payload = {"success": False, "message": "Internal error"}

    with pytest.raises(DoubleRetryBlocked):
        await context.pipeline.get("members/profile")

    assert backend.authorizations() == ["Bearer T1", "Bearer T1"]
    assert context.coordinator.fail_count == 1


@pytest.mark.asyncio
async def test_other_error_statuses_are_returned(context, backend):
    backend.routes[("GET", "members/broken")] = FakeResp(500, {"message": "oops"})

    resp = await context.pipeline.get("members/broken")

    assert resp.status == 500
    assert not resp.ok
    assert backend.refresh_calls == []


@pytest.mark.asyncio
async def test_unauthenticated_request_returns_401_untouched(context, backend):
    resp = await context.pipeline.send(
        ApiRequest("POST", "auth/login", json={}, authenticated=False)
    )
    assert resp.status == 401
    assert backend.refresh_calls == []
    assert "Authorization" not in backend.requests[0]["headers"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error", [aiohttp.ClientConnectionError("down"), TimeoutError()], ids=["client", "timeout"]
)
async def test_transport_failure_raises_network_error(context, backend, error):
    backend.request_exception = error

    with pytest.raises(NetworkError) as exc_info:
        await context.pipeline.get("members/profile")

    assert exc_info.value.data["url"] == "http://api.test/members/profile"
    assert backend.refresh_calls == []


@pytest.mark.asyncio
async def test_body_decoding(context, backend):
    backend.routes[("DELETE", "members/device")] = FakeResp(204, None)
    backend.routes[("GET", "health")] = FakeResp(200, "pong")

    deleted = await context.pipeline.delete("members/device")
    health = await context.pipeline.get("health")

    assert deleted.data is None
    assert health.data == "pong"


@pytest.mark.asyncio
async def test_exhausted_refresh_expires_session(context, backend, token_store, navigations):
    backend.refresh_status = 401
    backend.refresh_payload = {"success": False, "message": "Refresh token expired"}
    shown = []
    context.pipeline.set_session_expired_handler(lambda message, ack: shown.append((message, ack)))

    with pytest.raises(SessionExpired):
        await context.pipeline.get("members/profile")

    assert token_store.snapshot() == {}
    assert [m for m, _ in shown] == [SESSION_EXPIRED_MESSAGE]
    assert navigations == []

    shown[0][1]()
    assert navigations == ["login"]


@pytest.mark.asyncio
async def test_coordinator_receives_failed_token(backend, token_store, notifier):
    from unittest.mock import AsyncMock

    from authsession.auth.types import GrantOutcome, RefreshGrant
    from authsession.http.pipeline import RequestPipeline

    coordinator = AsyncMock()
    coordinator.refresh.return_value = RefreshGrant(GrantOutcome.REFRESHED, "T2")
    pipeline = RequestPipeline("http://api.test", backend, token_store, coordinator, notifier)

    resp = await pipeline.get("members/profile")

    assert resp.status == 200
    coordinator.refresh.assert_awaited_once_with("T1")
    # the grant is used as is; the pipeline never writes the store
    assert await token_store.get(ACCESS_TOKEN_KEY) == "T1"


@pytest.mark.asyncio
async def test_undecodable_body_is_returned_as_bytes(context, backend):
    backend.routes[("GET", "members/avatar")] = FakeResp(200, b"\xff\xfe\x00bad")

    resp = await context.pipeline.get("members/avatar")

    assert resp.status == 200
    assert resp.data == b"\xff\xfe\x00bad"


@pytest.mark.asyncio
async def test_undecodable_refresh_body_counts_as_rejection(context, backend, token_store):
    backend.refresh_payload = b"\xff\xfe\x00bad"

    with pytest.raises(SessionExpired) as exc_info:
        await context.pipeline.get("members/profile")

    assert "not JSON" in exc_info.value.data["reason"]
    assert token_store.snapshot() == {}
