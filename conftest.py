import pytest
from typing import AsyncGenerator
from datetime import datetime, timedelta

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import StaticPool
import pytz

# Import Base from the models package to create tables in the test DB
import event_manager.models  # noqa: F401
from event_manager.database import Base, get_db
from main import app as main_app

# In-memory SQLite shared across connections of a single test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine():
    """Fresh database per test: create tables before, drop them after."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for calling services directly or inspecting rows."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def file_session_factory(tmp_path):
    """Sessions on a file-backed database, each checking out its own connection."""
    file_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'events.db'}",
        connect_args={"timeout": 30},
    )
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=file_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)
    await file_engine.dispose()


@pytest.fixture
def failing_commit(db: AsyncSession, monkeypatch) -> list:
    """Make every commit on ``db`` flush and then fail. Returns the rollbacks issued on ``db``."""
    rollbacks = []
    real_rollback = db.rollback

    async def commit():
        await db.flush()
        raise RuntimeError("commit failed")

    async def rollback():
        rollbacks.append(True)
        await real_rollback()

    monkeypatch.setattr(db, "commit", commit)
    monkeypatch.setattr(db, "rollback", rollback)
    return rollbacks


@pytest.fixture
def app(session_factory) -> FastAPI:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        """Dependency override for get_db to use the test database."""
        async with session_factory() as session:
            yield session

    main_app.dependency_overrides[get_db] = override_get_db
    yield main_app
    main_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an AsyncClient for testing the FastAPI application."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def event_payload(**overrides) -> dict:
    start = datetime.now(pytz.utc) + timedelta(days=5)
    payload = {
        "title": "Community Meetup",
        "description": "Monthly gathering",
        "location": "Local Hall",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(hours=3)).isoformat(),
        "max_capacity": 10,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_event(client: AsyncClient):
    async def _create(**overrides) -> dict:
        response = await client.post("/api/v1/events/", json=event_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def register(client: AsyncClient):
    async def _register(event_id: int, name: str = "John Doe", email: str = "john.doe@example.com", **extra):
        return await client.post(
            f"/api/v1/events/{event_id}/register", json={"name": name, "email": email, **extra}
        )
    return _register
