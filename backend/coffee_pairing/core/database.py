"""
Engine, session factory and the declarative base.
"""
from typing import Any, AsyncGenerator
from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from coffee_pairing.core.config import get_settings

settings = get_settings()

# Constraint names are fixed so the alembic revision and create_all agree
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class Base(DeclarativeBase):
    metadata = metadata


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(
    url: str,
    echo: bool = False,
    enforce_foreign_keys: bool = True,
    **engine_kwargs: Any,
) -> AsyncEngine:
    """
    Create an async engine for aiosqlite or asyncpg.

    SQLite connections get `check_same_thread` disabled and, unless told
    otherwise, foreign key enforcement. Other backends get the configured
    pool sizes when the caller does not choose a pool.
    """
    if url.startswith("sqlite"):
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_async_engine(url, echo=echo, **engine_kwargs)
        if enforce_foreign_keys:
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    if "poolclass" not in engine_kwargs:
        engine_kwargs.setdefault("pool_size", settings.DATABASE_POOL_SIZE)
        engine_kwargs.setdefault("max_overflow", settings.DATABASE_MAX_OVERFLOW)
    return create_async_engine(url, echo=echo, pool_pre_ping=True, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; committed when the endpoint returns normally."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables. Production schemas are managed by alembic."""
    import coffee_pairing.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
