# tests/conftest.py
from datetime import datetime, timezone
import itertools

import pytest
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from foodlink.core.security import hash_password
from foodlink.core.session import Session
from foodlink.deps import get_photo_store, get_repo
from foodlink.main import app
from foodlink.repos.inmemory import InMemoryRepo
from foodlink.services.photos import MemoryPhotoStore
from foodlink.services.profiles import create_profile

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"

@pytest.fixture
def repo():
    return InMemoryRepo()

@pytest.fixture
def photo_store():
    return MemoryPhotoStore()

@pytest.fixture
def make_session(repo):
    """Async factory: a user + profile in `repo`, wrapped in a Session."""
    seq = itertools.count(1)

    async def _make(role: str = "donor", name: str = "Test User", email: str | None = None) -> Session:
        email = email or f"user{next(seq)}.{role}@example.com"
        user = await repo.create_user(email, hash_password("secret123"), T0)
        profile = await create_profile(repo, user["_id"], role, {"full_name": name}, now=T0)
        return Session(user_id=user["_id"], token_id="test", token_expires=T0, profile=profile)
    return _make

@pytest.fixture
async def test_client(repo, photo_store):
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_photo_store] = lambda: photo_store
    try:
        async with LifespanManager(app):
            transport = ASGITransport(app=app, raise_app_exceptions=True)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
    finally:
        app.dependency_overrides.clear()
