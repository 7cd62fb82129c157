"""Pydantic models for per-user resources: favorites, searches, preferences."""

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel

from app.models.news import NewsItemRead


class FavoriteRead(SQLModel):
    id: int
    news_id: int
    created_at: datetime
    news: NewsItemRead


class FavoriteListResponse(SQLModel):
    items: list[FavoriteRead]
    limit: int
    offset: int


class FavoriteStatus(SQLModel):
    news_id: int
    is_favorited: bool


class SearchHistoryRead(SQLModel):
    keyword: str
    search_count: int
    last_searched_at: datetime


class HotKeywordRead(SQLModel):
    keyword: str
    search_count: int


class PreferenceRead(SQLModel):
    """Ordered platform ids; empty means "all enabled platforms"."""

    platform_ids: list[str]
    updated_at: Optional[datetime] = None


class PreferenceUpdate(SQLModel):
    platform_ids: list[str]
