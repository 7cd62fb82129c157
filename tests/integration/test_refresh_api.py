"""Integration tests for the refresh trigger and retention purge.

The provider is served by ``httpx.MockTransport``.
"""

from datetime import datetime, timedelta

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.news import NewsItem
from app.schemas.user_favorites import UserFavorite
from app.services import news_ingestion_service
from app.services.hot_news_client import HotNewsClient
from tests.integration.auth_helpers import ADMIN_HEADERS, USER_HEADERS


def _provider(request: httpx.Request) -> httpx.Response:
    platform = request.url.params["platform"]
    if platform == "zhihu":
        return httpx.Response(503)
    count = {"weibo": 3, "shaoshupai": 2}.get(platform, 0)
    return httpx.Response(
        200,
        json={
            "status": "200",
            "data": [
                {"title": f"{platform} {i}", "url": f"https://example.com/{platform}/{i}"}
                for i in range(1, count + 1)
            ],
        },
    )


@pytest.fixture
def mock_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    def client_factory() -> HotNewsClient:
        return HotNewsClient(
            base_url="https://provider.test/", transport=httpx.MockTransport(_provider)
        )

    monkeypatch.setattr(news_ingestion_service, "HotNewsClient", client_factory)


@pytest.mark.asyncio
class TestRefresh:
    """Tests for POST /api/news/refresh."""

    async def test_refresh_all_reports_partial_failure(
        self, app_client: AsyncClient, seeded_platforms, mock_provider
    ):
        response = await app_client.post("/api/news/refresh", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        body = response.json()

        assert body["success"] is True
        assert body["totalRequested"] == 3
        assert body["totalSucceeded"] == 2
        assert body["totalInserted"] == 5
        assert body["totalFailed"] == 1
        assert body["failedPlatforms"] == ["Zhihu(HTTP 503)"]
        assert "succeeded: 2, failed: 1" in body["message"]

        feed = (await app_client.get("/api/news")).json()
        assert feed["total"] == 5

    async def test_refresh_twice_keeps_one_batch_per_day(
        self, app_client: AsyncClient, seeded_platforms, mock_provider
    ):
        body = {"platforms": ["weibo"]}
        await app_client.post("/api/news/refresh", json=body, headers=ADMIN_HEADERS)
        await app_client.post("/api/news/refresh", json=body, headers=ADMIN_HEADERS)

        feed = (await app_client.get("/api/news?platform_id=weibo")).json()
        assert feed["total"] == 3
        assert [i["hot_rank"] for i in feed["items"]] == [1, 2, 3]

    async def test_category_filter(
        self, app_client: AsyncClient, seeded_platforms, mock_provider
    ):
        response = await app_client.post(
            "/api/news/refresh", json={"category": "tech"}, headers=ADMIN_HEADERS
        )
        body = response.json()
        assert body["totalRequested"] == 1
        assert body["totalInserted"] == 2

    async def test_malformed_body_is_500(
        self, app_client: AsyncClient, seeded_platforms, mock_provider
    ):
        response = await app_client.post(
            "/api/news/refresh", json={"platforms": "weibo"}, headers=ADMIN_HEADERS
        )
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert "retry later" in body["message"]
        assert body["error"] == "Invalid refresh request: 1 error(s)"

    async def test_requires_admin(self, app_client: AsyncClient, seeded_platforms):
        anonymous = await app_client.post("/api/news/refresh")
        user = await app_client.post("/api/news/refresh", headers=USER_HEADERS)
        assert anonymous.status_code == 401
        assert user.status_code == 403


@pytest.mark.asyncio
class TestPurge:
    """Tests for POST /api/news/purge."""

    async def test_purges_old_batches_and_their_favorites(
        self,
        app_client: AsyncClient,
        db_session: AsyncSession,
        seeded_news: list[NewsItem],
    ):
        old_at = datetime.utcnow() - timedelta(days=60)
        old_item = NewsItem(
            platform_id="weibo",
            title="Old story",
            url="https://example.com/old",
            api_score=100,
            final_score=100.0,
            hot_rank=1,
            fetched_at=old_at,
            fetched_date=old_at.date(),
        )
        db_session.add(old_item)
        await db_session.commit()
        await db_session.refresh(old_item)
        await app_client.post(f"/api/favorites/{old_item.id}", headers=USER_HEADERS)

        response = await app_client.post("/api/news/purge", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        assert response.json()["deleted"] == 1

        remaining = await db_session.execute(select(func.count()).select_from(NewsItem))
        assert remaining.scalar() == len(seeded_news)
        favorites = await db_session.execute(select(func.count()).select_from(UserFavorite))
        assert favorites.scalar() == 0
