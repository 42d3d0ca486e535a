from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool


def _serialize_sqlite_transactions(engine: AsyncEngine) -> None:
    # SQLite ignores SELECT ... FOR UPDATE and the driver defers BEGIN until the
    # first write, so a read-modify-write would run unlocked. Take the write
    # lock when the transaction starts instead.
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, *, env: str = "local") -> AsyncEngine:
    engine_kwargs: dict[str, object] = {
        "echo": env == "local",
        "pool_pre_ping": True,
    }
    if env == "test":
        engine_kwargs["poolclass"] = NullPool

    engine = create_async_engine(database_url, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        _serialize_sqlite_transactions(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
