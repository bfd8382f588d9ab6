from __future__ import annotations

import aiohttp
import pytest

from authsession import ApplicationContext
from authsession.auth.coordinator import RefreshCoordinator
from authsession.auth.service import AuthService
from authsession.http.pipeline import RequestPipeline
from authsession.storage.token_store import InMemoryTokenStore
from tests.fixtures.http_fakes import FakeBackend


@pytest.mark.asyncio
async def test_create_wires_shared_components():
    backend = FakeBackend()
    ctx = await ApplicationContext.create("http://api.test", http_session=backend)

    assert isinstance(ctx.token_store, InMemoryTokenStore)
    assert isinstance(ctx.coordinator, RefreshCoordinator)
    assert isinstance(ctx.pipeline, RequestPipeline)
    assert isinstance(ctx.auth, AuthService)
    assert ctx.pipeline.coordinator is ctx.coordinator
    assert ctx.pipeline.notifier is ctx.notifier is ctx.coordinator.notifier
    assert ctx.coordinator.store is ctx.token_store is ctx.auth.store
    assert ctx.coordinator.client.url == "http://api.test/auth/refresh-token"
    assert ctx.pipeline.base_url == "http://api.test/"

    await ctx.shutdown()
    assert backend.closed is False
    assert ctx.session is None


@pytest.mark.asyncio
async def test_owned_session_closed_on_exit():
    async with await ApplicationContext.create("http://api.test/") as ctx:
        session = ctx.session
        assert isinstance(session, aiohttp.ClientSession)
    assert session.closed


def test_pipeline_requires_session():
    with pytest.raises(TypeError):
        RequestPipeline("http://api.test/", None, None, None, None)  # type: ignore[arg-type]
