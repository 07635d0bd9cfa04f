"""Tribunal CLI — operator commands that run before any moderator exists.

Invariants:
    - Every command opens one session through the shared DatabaseSessionManager
    - Writes go through the same services and repositories the API uses
    - Domain errors exit non-zero with their message; nothing is half-written

Design Decisions:
    - bootstrap seats the first prime sovereign from an email/account pair so the
      operator never handles a raw user_hash (ADR: identity never stored)
    - Geography is upserted: re-running a seed or renaming a campus is safe
"""

import asyncio

import click

from tribunal.config import get_settings
from tribunal.core.domain_types import ScopeId, UserHash
from tribunal.core.errors import TribunalError
from tribunal.core.fingerprint import generate_user_hash
from tribunal.infrastructure import database
from tribunal.infrastructure.geography_seed import NCR_DOMINION, NCR_TERRITORIES
from tribunal.infrastructure.observability import setup_logging
from tribunal.infrastructure.repositories import SqlTerritoryDirectory
from tribunal.services.appointment_service import AppointmentService


def _run(ctx: click.Context, work):
    """Run ``work(db)`` in a fresh session and commit it."""
    async def _scoped():
        manager = database.init_db(ctx.obj["database_url"])
        try:
            async with manager.session() as db:
                result = await work(db)
                await db.commit()
                return result
        finally:
            await manager.dispose()

    try:
        return asyncio.run(_scoped())
    except TribunalError as e:
        raise click.ClickException(f"{e.code}: {e.message}") from e


@click.group()
@click.version_option(package_name="tribunal")
@click.option(
    "--database-url", envvar="TRIBUNAL_DATABASE_URL", default=None,
    help="Overrides the configured database URL",
)
@click.pass_context
def main(ctx: click.Context, database_url: str | None):
    """Tribunal — moderation authority administration."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    ctx.obj = {
        "database_url": database_url or settings.database_url,
        "salt": settings.identity_salt,
    }


# ── Offices ──────────────────────────────────────────────────────────


@main.command()
@click.option("--email", default=None, help="Account email of the first prime sovereign")
@click.option("--account-id", default=None, help="Account id paired with the email")
@click.option("--user-hash", default=None, help="Pre-computed user hash (skips hashing)")
@click.pass_context
def bootstrap(
    ctx: click.Context, email: str | None, account_id: str | None, user_hash: str | None,
):
    """Seat the first prime sovereign into an empty moderator table."""
    if user_hash is None:
        if not email or not account_id:
            raise click.UsageError("Give --email and --account-id, or --user-hash.")
        user_hash = generate_user_hash(email, account_id, ctx.obj["salt"])

    async def work(db):
        return await AppointmentService(db).bootstrap_prime_sovereign(UserHash(user_hash))

    moderator = _run(ctx, work)
    click.echo(f"Prime sovereign seated: moderator_id={moderator.id}")
    click.echo(f"Send it as X-Moderator-Id. user_hash={moderator.user_hash}")


# ── Geography ────────────────────────────────────────────────────────


@main.command("add-dominion")
@click.argument("dominion_id")
@click.argument("name")
@click.pass_context
def add_dominion(ctx: click.Context, dominion_id: str, name: str):
    """Create or rename a dominion."""
    async def work(db):
        await SqlTerritoryDirectory(db).upsert_dominion(ScopeId(dominion_id), name)

    _run(ctx, work)
    click.echo(f"Dominion {dominion_id} saved")


@main.command("add-territory")
@click.argument("territory_id")
@click.argument("name")
@click.option("--dominion", "dominion_id", required=True, help="Owning dominion id")
@click.pass_context
def add_territory(ctx: click.Context, territory_id: str, name: str, dominion_id: str):
    """Create a territory, or move/rename an existing one."""
    async def work(db):
        await SqlTerritoryDirectory(db).upsert_territory(
            ScopeId(territory_id), name, ScopeId(dominion_id),
        )

    _run(ctx, work)
    click.echo(f"Territory {territory_id} saved under {dominion_id}")


@main.command("seed-ncr")
@click.pass_context
def seed_ncr(ctx: click.Context):
    """Upsert the NCR dominion and its campuses (same rows as the seed migration)."""
    async def work(db):
        directory = SqlTerritoryDirectory(db)
        dominion_id, dominion_name = NCR_DOMINION
        await directory.upsert_dominion(dominion_id, dominion_name)
        for name, territory_id in NCR_TERRITORIES.items():
            await directory.upsert_territory(territory_id, name, dominion_id)

    _run(ctx, work)
    click.echo(f"Seeded {len(NCR_TERRITORIES)} territories under {NCR_DOMINION[0]}")


if __name__ == "__main__":
    main()
