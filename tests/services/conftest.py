"""Service test fixtures — async DB, FastAPI test client and a seeded realm.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB sessions
    - realm seeds two dominions, three territories and one moderator per role
    - shared_store is file-backed so two sessions really interleave

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: PostgreSQL-specific features not exercised here)
    - db_manager patched so the readiness probe sees the test engine
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from tribunal.core.domain_types import ModeratorRole, ScopeType
from tribunal.core.records import Moderator
from tribunal.db.base import Base
from tribunal.infrastructure.database import get_db, DatabaseSessionManager
from tribunal.infrastructure.repositories import SqlModeratorRepository
from tribunal.models.geography import Dominion, Territory
import tribunal.infrastructure.database as db_module
from tribunal.main import app

R = ModeratorRole

REALM = {
    "prime": (R.PRIME_SOVEREIGN, ScopeType.GLOBAL, None),
    "hand": (R.THE_HAND, ScopeType.GLOBAL, None),
    "king": (R.CROWNED_KING, ScopeType.DOMINION, "north"),
    "steward": (R.STEWARD, ScopeType.TERRITORY, "campus-a"),
    "marshal": (R.MARSHAL, ScopeType.TERRITORY, "campus-a"),
    "sentinel": (R.SENTINEL, ScopeType.TERRITORY, "campus-a"),
    "watcher": (R.VEIL_WATCHER, ScopeType.TERRITORY, "campus-a"),
}


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


async def seed_realm(session_factory) -> dict[str, Moderator]:
    """north: campus-a, campus-b; south: campus-z. One moderator per role."""
    async with session_factory() as session:
        session.add_all([
            Dominion(id="north", name="North"),
            Dominion(id="south", name="South"),
            Territory(id="campus-a", name="Campus A", dominion_id="north"),
            Territory(id="campus-b", name="Campus B", dominion_id="north"),
            Territory(id="campus-z", name="Campus Z", dominion_id="south"),
        ])
        repo = SqlModeratorRepository(session)
        moderators = {}
        for name, (role, scope_type, scope_id) in REALM.items():
            moderator = Moderator(
                id=uuid4(),
                user_hash=f"uh_mod_{name}",
                role=role,
                scope_type=scope_type,
                scope_id=scope_id,
                appointed_at=datetime.now(timezone.utc),
            )
            await repo.insert(moderator)
            moderators[name] = moderator
        await session.commit()
    return moderators


@pytest.fixture
async def realm(test_session_factory) -> dict[str, Moderator]:
    return await seed_realm(test_session_factory)


@pytest.fixture
async def shared_store(tmp_path):
    """File-backed store that separate sessions (stand-ins for separate workers) share."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shared.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    moderators = await seed_realm(factory)
    yield factory, moderators
    await engine.dispose()


@pytest.fixture
def as_mod():
    """Request headers identifying the caller as the given moderator."""
    def _headers(moderator: Moderator) -> dict[str, str]:
        return {"X-Moderator-Id": str(moderator.id)}
    return _headers
