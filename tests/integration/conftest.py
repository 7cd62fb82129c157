"""Pytest fixtures aligned with the live Postgres stack."""

import os
from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel


def _load_database_url() -> str:
    """Resolve the database URL for tests, enforcing an explicit opt-in."""
    test_db_url = os.getenv("TEST_DATABASE_URL")
    pytest_allow_db = int(os.getenv("PYTEST_ALLOW_DB", "0"))
    if not test_db_url:
        pytest.skip("No TEST_DATABASE_URL is configured for tests.")
    if pytest_allow_db != 1:
        raise RuntimeError(
            "Running integration tests requires setting PYTEST_ALLOW_DB=1 to"
            " confirm the configured database is safe to mutate."
        )
    # mypy: test_db_url is str after the guard above
    return test_db_url  # type: ignore[return-value]


@pytest.fixture(scope="session")
def database_url() -> str:
    """Return the Postgres URL the test suite should target."""
    return _load_database_url()


@pytest_asyncio.fixture()
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Yield an engine with a freshly created schema, dropped afterwards."""
    # Ensure SQLModel metadata is populated before creating tables.
    from app.schemas import news  # noqa: F401
    from app.schemas import platforms  # noqa: F401
    from app.schemas import search_history  # noqa: F401
    from app.schemas import system_config  # noqa: F401
    from app.schemas import user_favorites  # noqa: F401
    from app.schemas import user_preferences  # noqa: F401

    engine = create_async_engine(database_url, echo=False, pool_pre_ping=True)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on the per-test schema; services may commit freely."""
    session_factory = async_sessionmaker(
        async_engine, expire_on_commit=False, class_=AsyncSession
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest_asyncio.fixture()
async def app_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an HTTP client with the application wired to the test session."""
    try:
        from app.main import app
    except ValidationError as exc:  # pragma: no cover - guard for misconfigured env
        pytest.skip(f"App configuration failed: {exc}")

    from app.utils.db_async import get_session

    async def _get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_session] = _get_session_override
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_session, None)


@pytest_asyncio.fixture()
async def seeded_platforms(db_session: AsyncSession):
    """Three enabled platforms and one disabled, plus the fetch limit config."""
    from app.schemas.platforms import Platform, PlatformCategory
    from app.schemas.system_config import SystemConfig

    now = datetime.utcnow()
    platforms = [
        Platform(id="weibo", name="Weibo", category=PlatformCategory.SOCIAL, created_at=now, updated_at=now),
        Platform(id="zhihu", name="Zhihu", category=PlatformCategory.SOCIAL, created_at=now, updated_at=now),
        Platform(id="sspai", name="SSPAI", category=PlatformCategory.TECH, created_at=now, updated_at=now),
        Platform(
            id="hupu",
            name="Hupu",
            category=PlatformCategory.OTHER,
            enabled=False,
            created_at=now,
            updated_at=now,
        ),
    ]
    db_session.add_all(platforms)
    db_session.add(SystemConfig(key="news_fetch_limit", value="20", updated_at=now))
    await db_session.commit()
    return platforms


@pytest_asyncio.fixture()
async def seeded_news(db_session: AsyncSession, seeded_platforms):
    """Today's batch for weibo (3 items) and sspai (2 items)."""
    from app.schemas.news import NewsItem

    fetched_at = datetime.utcnow().replace(microsecond=0) - timedelta(hours=1)
    items = []
    for platform_id, titles in (
        ("weibo", ["Weibo top story", "Weibo second", "Weibo third"]),
        ("sspai", ["SSPAI top story", "SSPAI second"]),
    ):
        for index, title in enumerate(titles):
            items.append(
                NewsItem(
                    platform_id=platform_id,
                    title=title,
                    url=f"https://example.com/{platform_id}/{index + 1}",
                    api_score=100 - index,
                    final_score=float(100 - index),
                    hot_rank=index + 1,
                    published_at=fetched_at,
                    fetched_at=fetched_at,
                    fetched_date=fetched_at.date(),
                )
            )
    db_session.add_all(items)
    await db_session.commit()
    for item in items:
        await db_session.refresh(item)
    return items
