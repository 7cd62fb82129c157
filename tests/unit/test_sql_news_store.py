"""SqlNewsStore and the refresh cycle against a SQLite database."""

from datetime import UTC, date, datetime

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.news import RefreshRequest
from app.schemas.news import NewsItem
from app.schemas.platforms import Platform, PlatformCategory
from app.schemas.system_config import SystemConfig
from app.services.batch_refresh_service import BatchLockRegistry, replace_platform_batch
from app.services.hot_news_client import HotNewsClient
from app.services.news_ingestion_service import run_ingestion_cycle
from app.services.news_store import SqlNewsStore
from app.services.scoring_service import PlatformSnapshot, build_news_rows
from tests.fakes import make_entries

WEIBO = PlatformSnapshot(id="weibo", name="Weibo", category="social")
DAY = date(2024, 1, 1)


@pytest_asyncio.fixture
async def store(sqlite_session: AsyncSession) -> SqlNewsStore:
    for platform_id, name, category, enabled in (
        ("weibo", "Weibo", PlatformCategory.SOCIAL, True),
        ("sspai", "SSPAI", PlatformCategory.TECH, True),
        ("hupu", "Hupu", PlatformCategory.OTHER, False),
    ):
        sqlite_session.add(
            Platform(id=platform_id, name=name, category=category, enabled=enabled)
        )
    sqlite_session.add(SystemConfig(key="news_fetch_limit", value="20"))
    await sqlite_session.commit()
    return SqlNewsStore(sqlite_session)


async def _stored(db: AsyncSession, platform_id: str) -> list[NewsItem]:
    result = await db.execute(
        select(NewsItem)
        .where(NewsItem.platform_id == platform_id)
        .order_by(NewsItem.hot_rank)
    )
    return list(result.scalars().all())


def _rows(count: int, prefix: str, hour: int = 8):
    return build_news_rows(
        WEIBO,
        make_entries(count, prefix=prefix),
        fetched_at=datetime(DAY.year, DAY.month, DAY.day, hour, 0),
    )


@pytest.mark.asyncio
class TestSqlNewsStore:
    """Tests for SqlNewsStore queries and writes."""

    async def test_lists_enabled_platforms_by_name(self, store: SqlNewsStore):
        platforms = await store.list_enabled_platforms()
        assert [p.id for p in platforms] == ["sspai", "weibo"]

        tech = await store.list_enabled_platforms(category="tech")
        assert [p.id for p in tech] == ["sspai"]
        assert tech[0].category == "tech"

    async def test_reads_config(self, store: SqlNewsStore):
        assert await store.get_config_value("news_fetch_limit") == "20"
        assert await store.get_config_value("missing") is None

    async def test_insert_stores_naive_timestamps(
        self, store: SqlNewsStore, sqlite_session: AsyncSession
    ):
        inserted = await store.insert_news_batch(_rows(2, "Morning"))

        assert inserted == 2
        stored = await _stored(sqlite_session, "weibo")
        assert [n.title for n in stored] == ["Morning 1", "Morning 2"]
        assert stored[0].fetched_at == datetime(2024, 1, 1, 8, 0)
        assert stored[0].created_at is not None

    async def test_replace_twice_keeps_only_second_batch(
        self, store: SqlNewsStore, sqlite_session: AsyncSession
    ):
        locks = BatchLockRegistry()
        await replace_platform_batch(store, "weibo", DAY, _rows(20, "Morning"), locks=locks)
        second = await replace_platform_batch(
            store, "weibo", DAY, _rows(15, "Evening", hour=20), locks=locks
        )

        assert second.deleted == 20
        assert second.inserted == 15
        assert second.delete_warning is None
        stored = await _stored(sqlite_session, "weibo")
        assert len(stored) == 15
        assert {n.title.split()[0] for n in stored} == {"Evening"}

    async def test_delete_before_cutoff(
        self, store: SqlNewsStore, sqlite_session: AsyncSession
    ):
        old = build_news_rows(
            WEIBO, make_entries(3, prefix="Old"), fetched_at=datetime(2023, 11, 1, 8, 0)
        )
        await store.insert_news_batch(old)
        await store.insert_news_batch(_rows(2, "New"))

        deleted = await store.delete_news_before(date(2023, 12, 1))

        assert deleted == 3
        assert [n.title for n in await _stored(sqlite_session, "weibo")] == ["New 1", "New 2"]


@pytest.mark.asyncio
class TestRefreshEndToEnd:
    """Provider response through the client, scorer and SQL store."""

    async def test_sspai_two_items(self, store: SqlNewsStore, sqlite_session: AsyncSession):
        requested: list[str] = []

        def provider(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.params["platform"])
            return httpx.Response(
                200,
                json={
                    "status": "200",
                    "data": [{"title": "T1", "url": "u1"}, {"title": "T2", "url": "u2"}],
                },
            )

        call_date = datetime.now(UTC).date()
        async with HotNewsClient(
            base_url="https://provider.test/", transport=httpx.MockTransport(provider)
        ) as client:
            result = await run_ingestion_cycle(
                store, RefreshRequest(platforms=["sspai"]), fetch=client.fetch
            )
        after_date = datetime.now(UTC).date()

        assert requested == ["shaoshupai"]
        assert result.total_inserted == 2
        assert result.failed_platforms == []

        stored = await _stored(sqlite_session, "sspai")
        assert [(n.hot_rank, n.final_score, n.title) for n in stored] == [
            (1, 100, "T1"),
            (2, 99, "T2"),
        ]
        assert [n.api_score for n in stored] == [100, 99]
        assert {n.fetched_date for n in stored} <= {call_date, after_date}
