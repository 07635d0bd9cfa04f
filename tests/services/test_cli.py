"""Tribunal CLI — verifies the operator commands against a file-backed database.

Invariants:
    - bootstrap seats exactly one prime sovereign, and only into an empty table
    - Geography upserts make territories resolvable to their dominion
    - Commands run their own event loop, so these tests are synchronous
"""

import asyncio

import pytest
from click.testing import CliRunner
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tribunal.cli import main
from tribunal.core.domain_types import ModeratorRole, ScopeType
from tribunal.core.fingerprint import generate_user_hash
from tribunal.db.base import Base
from tribunal.infrastructure.geography_seed import NCR_DOMINION, NCR_TERRITORIES
from tribunal.infrastructure.repositories import (
    SqlModeratorRepository, SqlTerritoryDirectory,
)


def _query(url, work):
    async def _scoped():
        engine = create_async_engine(url)
        try:
            factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            async with factory() as session:
                return await work(session)
        finally:
            await engine.dispose()
    return asyncio.run(_scoped())


@pytest.fixture
def db_url(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"

    async def _create():
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(_create())
    return url


@pytest.fixture
def cli(db_url):
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(main, ["--database-url", db_url, *args])
    return _invoke


# ─── Bootstrap ───────────────────────────────────────────────────

def test_bootstrap_seats_prime_sovereign_from_account(cli, db_url):
    result = cli("bootstrap", "--email", "Root@Uni.edu", "--account-id", "acct-1")
    assert result.exit_code == 0, result.output
    assert "Prime sovereign seated" in result.output

    moderators = _query(db_url, lambda s: SqlModeratorRepository(s).list_all())
    assert len(moderators) == 1
    prime = moderators[0]
    assert prime.role == ModeratorRole.PRIME_SOVEREIGN
    assert prime.scope_type == ScopeType.GLOBAL
    # Hashed with the configured salt, never stored in the clear
    assert prime.user_hash == generate_user_hash("root@uni.edu", "acct-1", "test-salt")
    assert str(prime.id) in result.output


def test_second_bootstrap_is_refused(cli, db_url):
    assert cli("bootstrap", "--user-hash", "uh_first").exit_code == 0
    result = cli("bootstrap", "--user-hash", "uh_second")
    assert result.exit_code != 0
    assert "CONCURRENCY_CONFLICT" in result.output
    moderators = _query(db_url, lambda s: SqlModeratorRepository(s).list_all())
    assert [m.user_hash for m in moderators] == ["uh_first"]


def test_bootstrap_needs_an_identity(cli):
    result = cli("bootstrap", "--email", "root@uni.edu")
    assert result.exit_code == 2
    assert "--account-id" in result.output


# ─── Geography ───────────────────────────────────────────────────

def test_added_territory_resolves_to_its_dominion(cli, db_url):
    assert cli("add-dominion", "north", "North").exit_code == 0
    result = cli("add-territory", "campus-a", "Campus A", "--dominion", "north")
    assert result.exit_code == 0, result.output

    dominion = _query(
        db_url, lambda s: SqlTerritoryDirectory(s).get_dominion_id("campus-a"),
    )
    assert dominion == "north"


def test_territory_can_move_between_dominions(cli, db_url):
    cli("add-dominion", "north", "North")
    cli("add-dominion", "south", "South")
    cli("add-territory", "campus-a", "Campus A", "--dominion", "north")
    cli("add-territory", "campus-a", "Campus A", "--dominion", "south")

    dominion = _query(
        db_url, lambda s: SqlTerritoryDirectory(s).get_dominion_id("campus-a"),
    )
    assert dominion == "south"


def test_territory_under_unknown_dominion_is_rejected(cli, db_url):
    result = cli("add-territory", "campus-a", "Campus A", "--dominion", "nowhere")
    assert result.exit_code != 0
    assert "RESOURCE_NOT_FOUND" in result.output
    assert _query(
        db_url, lambda s: SqlTerritoryDirectory(s).get_dominion_id("campus-a"),
    ) is None


def test_seed_ncr_is_idempotent(cli, db_url):
    assert cli("seed-ncr").exit_code == 0
    assert cli("seed-ncr").exit_code == 0

    dominion_id, _ = NCR_DOMINION
    jnu = NCR_TERRITORIES["JNU"]
    assert _query(
        db_url, lambda s: SqlTerritoryDirectory(s).get_dominion_id(jnu),
    ) == dominion_id
