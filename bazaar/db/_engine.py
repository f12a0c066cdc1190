"""
Engine setup — async engine, session factory, dialect helpers.

Row locks: every locked read is ``SELECT ... FOR UPDATE``. PostgreSQL honours
it; SQLite has no row locks and silently drops the clause, so on SQLite every
transaction is opened with ``BEGIN IMMEDIATE`` instead. That takes the
database write lock up front and serializes writers, which gives the same
guarantee the row locks give: a second checkout waits, then reads the
first one's committed balance and stock.
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bazaar.db._tables import Base


# ═══════════════════════════════════════════════════════════════════════════════
# SQLite write locking
# ═══════════════════════════════════════════════════════════════════════════════

def _install_sqlite_locking(engine: AsyncEngine) -> None:
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        # The driver must not emit its own deferred BEGIN.
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _begin_immediate(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════

def create_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(url, echo=echo)
    if engine.dialect.name == "sqlite":
        _install_sqlite_locking(engine)
    return engine


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
    *,
    create_schema: bool = True,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create database and return (session_factory, engine)."""
    engine = create_engine(url)

    if create_schema:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


# ═══════════════════════════════════════════════════════════════════════════════
# Dialect helpers
# ═══════════════════════════════════════════════════════════════════════════════

def dialect_insert(session: AsyncSession, model: type[Any]) -> Any:
    """
    INSERT construct with ``on_conflict_do_update`` support for the bound
    dialect (SQLite or PostgreSQL).
    """
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert is not supported on {name}")


__all__ = (
    "create_engine",
    "create_database",
    "dialect_insert",
)
