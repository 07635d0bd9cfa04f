"""Database Sessions — async engine, per-request sessions and driver-error translation.

Invariants:
    - A session that raises is rolled back before the error leaves this module
    - Integrity violations are write conflicts (409 ConcurrencyError), never 503s:
      the unique constraints on moderators.user_hash and (user_hash, sequence)
      are how concurrent workers learn they lost a race
    - Other SQLAlchemy failures become DatabaseError (503)
    - TribunalErrors raised inside a session pass through untouched

Design Decisions:
    - Module-level db_manager set once by the app lifespan or the CLI
      (ADR: no global import side effects)
    - expire_on_commit=False: records are built from rows after commit
    - Pool sizing only applies to server databases; SQLite manages its own connections
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from tribunal.core.errors import ConcurrencyError, DatabaseError, TribunalError

logger = logging.getLogger(__name__)


def translate_db_error(exc: SQLAlchemyError) -> TribunalError:
    """Map a driver/ORM failure onto the Tribunal error hierarchy."""
    if isinstance(exc, IntegrityError):
        return ConcurrencyError(
            "A concurrent request already wrote this record; re-read and retry.",
        )
    if isinstance(exc, OperationalError):
        return DatabaseError("connection or lock unavailable", "execute")
    return DatabaseError(type(exc).__name__, "query")


class DatabaseSessionManager:
    """Owns the engine and hands out sessions that translate driver errors."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_options.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_options)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                translated = translate_db_error(e)
                log = logger.warning if translated.http_status < 500 else logger.error
                log(f"DB error ({type(e).__name__}): {e}", extra={"error_code": translated.code})
                raise translated from e
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """SELECT 1 through a pooled connection (readiness probe)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
