"""Integration tests for the news feed API endpoints."""

import pytest
from httpx import AsyncClient

from app.schemas.news import NewsItem
from tests.integration.auth_helpers import USER_HEADERS


@pytest.mark.asyncio
class TestGetNewsFeed:
    """Tests for GET /api/news endpoint."""

    async def test_returns_empty_feed_when_no_items(
        self, app_client: AsyncClient, seeded_platforms
    ):
        response = await app_client.get("/api/news")
        assert response.status_code == 200
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0

    async def test_hot_sort_orders_by_final_score(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        """Equal scores tie-break on platform id, so sspai precedes weibo."""
        response = await app_client.get("/api/news")
        assert response.status_code == 200
        data = response.json()

        assert data["total"] == 5
        assert data["sort"] == "hot"
        assert [i["title"] for i in data["items"]] == [
            "SSPAI top story",
            "Weibo top story",
            "SSPAI second",
            "Weibo second",
            "Weibo third",
        ]
        first = data["items"][0]
        assert first["platform_name"] == "SSPAI"
        assert first["category"] == "tech"
        assert first["time"] == "1h"
        assert first["is_favorited"] is False

    async def test_respects_limit_and_offset(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        response = await app_client.get("/api/news?limit=2&offset=2")
        data = response.json()

        assert data["total"] == 5
        assert data["limit"] == 2
        assert data["offset"] == 2
        assert [i["title"] for i in data["items"]] == ["SSPAI second", "Weibo second"]

    async def test_filters_by_category(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        response = await app_client.get("/api/news?category=tech")
        data = response.json()
        assert data["total"] == 2
        assert {i["platform_id"] for i in data["items"]} == {"sspai"}

    async def test_filters_by_platform(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        response = await app_client.get("/api/news?platform_id=weibo")
        assert response.json()["total"] == 3

    async def test_platform_filter_ignores_saved_preference(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        await app_client.put(
            "/api/preferences", json={"platform_ids": ["sspai"]}, headers=USER_HEADERS
        )

        feed = await app_client.get("/api/news", headers=USER_HEADERS)
        assert {i["platform_id"] for i in feed.json()["items"]} == {"sspai"}

        detail = await app_client.get("/api/news?platform_id=weibo", headers=USER_HEADERS)
        assert detail.json()["total"] == 3

    async def test_platform_filter_skips_disabled_platform(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        response = await app_client.get("/api/news?platform_id=hupu")
        assert response.json()["total"] == 0

    async def test_keyword_filter_is_case_insensitive(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        response = await app_client.get("/api/news?keyword=TOP%20story")
        data = response.json()
        assert data["total"] == 2

    async def test_rejects_invalid_limit(self, app_client: AsyncClient):
        response = await app_client.get("/api/news?limit=0")
        assert response.status_code == 422


@pytest.mark.asyncio
class TestGroupedFeed:
    """Tests for GET /api/news/grouped."""

    async def test_groups_follow_explicit_platform_order(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        response = await app_client.get("/api/news/grouped?platforms=weibo,sspai")
        assert response.status_code == 200
        groups = response.json()["platforms"]

        assert [g["platform_id"] for g in groups] == ["weibo", "sspai"]
        assert [i["hot_rank"] for i in groups[0]["items"]] == [1, 2, 3]

    async def test_saved_preference_orders_groups(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        await app_client.put(
            "/api/preferences",
            json={"platform_ids": ["zhihu", "sspai", "weibo"]},
            headers=USER_HEADERS,
        )
        response = await app_client.get("/api/news/grouped", headers=USER_HEADERS)

        groups = response.json()["platforms"]
        assert [g["platform_id"] for g in groups] == ["zhihu", "sspai", "weibo"]
        assert groups[0]["items"] == []


@pytest.mark.asyncio
class TestNewsItem:
    """Tests for GET /api/news/{id} and /related."""

    async def test_returns_item(self, app_client: AsyncClient, seeded_news: list[NewsItem]):
        item = seeded_news[0]
        response = await app_client.get(f"/api/news/{item.id}")
        assert response.status_code == 200
        assert response.json()["title"] == "Weibo top story"

    async def test_missing_item_is_404(self, app_client: AsyncClient, seeded_platforms):
        response = await app_client.get("/api/news/999999")
        assert response.status_code == 404

    async def test_related_items_from_same_platform(
        self, app_client: AsyncClient, seeded_news: list[NewsItem]
    ):
        item = seeded_news[0]
        response = await app_client.get(f"/api/news/{item.id}/related")
        assert response.status_code == 200
        titles = [i["title"] for i in response.json()]
        assert titles == ["Weibo second", "Weibo third"]
