"""
Async engine and session factory.

Every write in the booking store runs inside one transaction that must be
serialised against other writers:
- SQLite: transactions start with BEGIN IMMEDIATE, which takes the write lock
  before the conflict read.
- PostgreSQL: the engine runs at SERIALIZABLE isolation; the losing writer
  fails on commit with SQLSTATE 40001.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salon_booking.core.logger import logger
from salon_booking.models.db_models import Base


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    if _is_sqlite(url):
        kwargs = {"connect_args": {"timeout": 30}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=echo, **kwargs)
        _install_sqlite_immediate_begin(engine)
    else:
        engine = create_async_engine(url, echo=echo, isolation_level="SERIALIZABLE", pool_pre_ping=True)

    logger.info(f"🗄️ Database engine created ({engine.dialect.name})")
    return engine


def _install_sqlite_immediate_begin(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # Stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database schema ready")
