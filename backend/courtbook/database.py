from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings
from .models import Base


def enable_sqlite_savepoints(bind: AsyncEngine) -> None:
    """
    Let SQLAlchemy issue BEGIN itself on SQLite so SAVEPOINT works.

    BEGIN IMMEDIATE takes the write lock up front; concurrent writers queue on
    the busy timeout instead of deadlocking on lock upgrade.
    """

    @event.listens_for(bind.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(bind.sync_engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.echo_sql,
    pool_pre_ping=True,
    pool_recycle=3600,
)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create venues/bookings tables if missing (local runs and tests)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
