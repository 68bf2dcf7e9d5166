"""Async SQLAlchemy engine, declarative base and the request-scoped session."""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from vivvers.config import get_settings


class Base(DeclarativeBase):
    pass


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself on SQLite connections.

    The sqlite3 driver defers BEGIN until the first write, so a SAVEPOINT
    opened after only reads would start, and on release commit, its own
    transaction. Nested transactions need the outer BEGIN to be explicit.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


settings = get_settings()

_engine_options: dict = {"echo": settings.debug}
if not settings.database_url.startswith("sqlite"):
    # Server databases drop idle connections; SQLite files do not.
    _engine_options["pool_pre_ping"] = True

engine = create_async_engine(settings.database_url, **_engine_options)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Provide one session per request.

    The session commits when the endpoint returns and rolls back when it
    raises, so every write an endpoint makes lands together or not at all.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
