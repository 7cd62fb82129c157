"""SQLite-backed fixtures for store-level unit tests.

A file database (not ``:memory:``) so separate sessions see the same data.
Transactions start with ``BEGIN IMMEDIATE`` so concurrent writers queue on
SQLite's busy timeout instead of failing on lock upgrades.
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    from app.schemas import (  # noqa: F401
        news,
        platforms,
        search_history,
        system_config,
        user_favorites,
        user_preferences,
    )

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hot_news.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def sqlite_sessions(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=sqlite_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def sqlite_session(
    sqlite_sessions: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with sqlite_sessions() as session:
        yield session
