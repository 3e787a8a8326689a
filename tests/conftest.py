"""
Test infrastructure for the articles / assistant API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running database
  in CI, keeping the suite fast and self-contained.
- StaticPool forces every session to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- The session store runs without Redis (``_redis = None``), so handles live
  in its in-process map.
- The assistant client talks to an ``httpx.MockTransport``; tests install
  their own handler through the ``assistant_transport`` fixture.
"""
import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.assistant import assistant
from app.database import Base, get_db
from app.main import app
from app.models import User
from app.session_store import sessions

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override — replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    session = async_session_test()
    try:
        yield session
    finally:
        await session.close()


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def reset_sessions():
    sessions._redis = None
    sessions._local.clear()
    yield
    sessions._local.clear()


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting stored rows).
    """
    async with async_session_test() as session:
        yield session


@pytest.fixture
def statements():
    """
    Record every SQL statement sent to the test engine while the test runs.
    """
    seen: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(engine_test.sync_engine, "before_cursor_execute", _record)
    yield seen
    event.remove(engine_test.sync_engine, "before_cursor_execute", _record)


@pytest.fixture
def make_user():
    """Return a coroutine that inserts and commits a user, returning its id."""

    async def _make_user(username: str = "alice", display_name: str = "Alice", token: str | None = "good") -> int:
        async with async_session_test() as session:
            user = User(username=username, display_name=display_name, token=token)
            session.add(user)
            await session.commit()
            return user.id

    return _make_user


@pytest_asyncio.fixture
async def assistant_transport():
    """
    Open the assistant client on a handler-backed MockTransport.

    Usage::

        def handler(request): return httpx.Response(200, json={...})
        assistant_transport(handler)
    """
    await assistant.close()
    previous = (assistant.assistant_id, assistant.apikey)
    assistant.assistant_id = "test-assistant"
    assistant.apikey = "test-key"
    replaced = []

    def _install(handler):
        if assistant._http is not None:
            replaced.append(assistant._http)
            assistant._http = None
        assistant.open(httpx.MockTransport(handler))

    yield _install
    for client in replaced:
        await client.aclose()
    await assistant.close()
    assistant.assistant_id, assistant.apikey = previous


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def count_rows():
    """Return a coroutine counting committed rows of a model in a fresh session."""

    async def _count(model) -> int:
        async with async_session_test() as session:
            return (await session.execute(select(func.count()).select_from(model))).scalar_one()

    return _count
