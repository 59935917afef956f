from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import AsyncClient, ASGITransport

from app.core.dependencies import get_current_token, get_fresh_client, get_user_client
from app.core.limiter import limiter
from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.auth import service as auth_service
from app.modules.visitors.registry import VisitorRegistry

from tests.fakes import FakeBackend, FakeClient


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def registry(backend) -> VisitorRegistry:
    return VisitorRegistry(client_factory=lambda: FakeClient(backend))


@pytest.fixture(autouse=True)
def _isolate_state():
    limiter.enabled = False
    auth_service._AUTH_USER_CACHE.clear()
    yield
    limiter.enabled = True
    auth_service._AUTH_USER_CACHE.clear()


@pytest_asyncio.fixture
async def client(backend, registry) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the app, with every Supabase handle
    replaced by a FakeClient on the shared fake backend.
    """
    shared = FakeClient(backend)

    def _user_client(token: str = Depends(get_current_token)):
        return FakeClient(backend, bearer=token)

    previous_registry = app.state.visitors
    app.state.visitors = registry
    app.dependency_overrides[get_supabase] = lambda: shared
    app.dependency_overrides[get_fresh_client] = lambda: FakeClient(backend)
    app.dependency_overrides[get_user_client] = _user_client

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
        registry.clear()
        app.state.visitors = previous_registry
