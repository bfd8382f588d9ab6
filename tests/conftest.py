import pytest
import pytest_asyncio

from authsession.application_context import ApplicationContext
from authsession.auth.coordinator import RefreshCoordinator
from authsession.auth.session_expiry import SessionExpiryNotifier
from authsession.constants import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY
from authsession.rate.retry_policies import RefreshRetryPolicy
from authsession.storage.token_store import InMemoryTokenStore
from tests.fixtures.http_fakes import FakeBackend, ScriptedRefreshClient


@pytest.fixture
def token_store():
    return InMemoryTokenStore({ACCESS_TOKEN_KEY: "T1", REFRESH_TOKEN_KEY: "R1"})


@pytest.fixture
def navigations():
    """List collecting one entry per navigation to the login screen."""
    return []


@pytest.fixture
def notifier(navigations):
    return SessionExpiryNotifier(lambda: navigations.append("login"))


@pytest.fixture
def fast_policy():
    # No replay delay so multi-attempt tests stay quick
    return RefreshRetryPolicy(max_attempts=1, retry_delay=0.0)


@pytest.fixture
def make_coordinator(token_store, notifier, fast_policy):
    def _make(*results, gate=None, policy=None, waiter_timeout=5.0):
        client = ScriptedRefreshClient(*results, gate=gate)
        coordinator = RefreshCoordinator(
            token_store,
            client,
            notifier,
            policy=policy or fast_policy,
            waiter_timeout=waiter_timeout,
        )
        return coordinator, client

    return _make


@pytest.fixture
def backend():
    return FakeBackend(valid_token="T2")


@pytest_asyncio.fixture
async def context(backend, token_store, navigations, fast_policy):
    ctx = await ApplicationContext.create(
        "http://api.test/",
        token_store=token_store,
        navigate_to_login=lambda: navigations.append("login"),
        http_session=backend,
        policy=fast_policy,
        waiter_timeout=5.0,
    )
    yield ctx
    await ctx.shutdown()
