import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# must be set before app.database builds its engine
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app.config import Settings, get_settings  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.todo import Todo  # noqa: E402
from app.models.user import User  # noqa: E402

OWNER_ID = 1
OTHER_OWNER_ID = 2


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(database_url=TEST_DATABASE_URL, owner_id=OWNER_ID, llm_api_key="test-key")


@pytest.fixture
async def session_factory():
    # one shared in-memory connection so every session sees the same tables
    engine_test = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine_test, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all([
            User(id=OWNER_ID, username="alice", email="alice@example.com"),
            User(id=OTHER_OWNER_ID, username="bob", email="bob@example.com"),
        ])
        await session.commit()
    yield factory
    await engine_test.dispose()


@pytest.fixture
def insert_todo(session_factory):
    async def _insert(title="seeded", owner_id=OWNER_ID, completed=False, description="", updated_at=None):
        async with session_factory() as session:
            todo = Todo(title=title, user_id=owner_id, completed=completed, description=description)
            if updated_at is not None:
                todo.updated_at = updated_at
            session.add(todo)
            await session.commit()
            return todo.id

    return _insert


@pytest.fixture
async def client(session_factory, settings):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
