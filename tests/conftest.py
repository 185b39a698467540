"""Shared test fixtures and configuration."""

import os
import tempfile

import pytest

# Point the app at a throwaway SQLite file before app.database builds its engine
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.mkdtemp(), 'movie_trends.db')}",
)
os.environ.setdefault("FRONTEND_URL", "http://localhost")

from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.database import build_engine, build_session_factory, init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.movies.router import get_search_tracker  # noqa: E402
from app.services.search_tracker import SearchTrackerService  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test, tables created."""
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    assert await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def tracker(session_factory):
    return SearchTrackerService(session_factory)


@pytest.fixture
async def client(tracker):
    app.dependency_overrides[get_search_tracker] = lambda: tracker
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
