"""Database Sessions — verifies driver errors leave as Tribunal errors with the right status.

Invariants:
    - Unique violations are 409 conflicts, not 503s
    - Operational failures stay 503
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from tribunal.core.errors import ConcurrencyError, DatabaseError
from tribunal.db.base import Base
from tribunal.infrastructure.database import DatabaseSessionManager, translate_db_error
from tribunal.models.moderator import Moderator as ModeratorRow


@pytest.fixture
async def manager(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


def _office(user_hash: str) -> ModeratorRow:
    return ModeratorRow(
        id=uuid4(), user_hash=user_hash, role="steward",
        scope_type="territory", scope_id="campus-a",
        appointed_at=datetime.now(timezone.utc),
    )


async def test_duplicate_office_at_commit_is_a_conflict(manager):
    with pytest.raises(ConcurrencyError) as exc_info:
        async with manager.session() as db:
            db.add_all([_office("uh_twin"), _office("uh_twin")])
            await db.commit()
    assert exc_info.value.http_status == 409
    assert exc_info.value.code == "CONCURRENCY_CONFLICT"


async def test_session_is_usable_after_conflict(manager):
    with pytest.raises(ConcurrencyError):
        async with manager.session() as db:
            db.add_all([_office("uh_twin"), _office("uh_twin")])
            await db.commit()
    async with manager.session() as db:
        db.add(_office("uh_twin"))
        await db.commit()
    assert await manager.health_check()


def test_operational_failure_stays_unavailable():
    error = translate_db_error(OperationalError("SELECT 1", {}, Exception("locked")))
    assert isinstance(error, DatabaseError)
    assert error.http_status == 503
