"""Pydantic request/response models for the news feed and refresh pipeline."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel

from app.schemas.platforms import PlatformCategory

SortMode = Literal["hot", "time"]


class NewsItemRead(SQLModel):
    """Response model for a stored news item with its platform."""

    id: int
    platform_id: str
    platform_name: str
    category: str
    title: str
    url: str
    api_score: int
    final_score: float
    hot_rank: Optional[int] = None
    content_snippet: Optional[str] = None
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    fetched_at: datetime
    fetched_date: date
    time: str  # Relative time "2h", "1d"
    is_favorited: bool = False


class NewsFeedResponse(SQLModel):
    """Response model for the paginated feed."""

    items: list[NewsItemRead]
    total: int
    limit: int
    offset: int
    sort: str


class PlatformNewsGroup(SQLModel):
    """One platform's latest batch, in hot-rank order."""

    platform_id: str
    platform_name: str
    category: str
    items: list[NewsItemRead]


class GroupedFeedResponse(SQLModel):
    """Platforms in display order, each with its latest batch."""

    platforms: list[PlatformNewsGroup]


class LiveFeedResponse(GroupedFeedResponse):
    """Grouped feed fetched straight from the provider, plus the fetch summary."""

    succeeded: int
    failed: int
    failed_platforms: list[str]


class RefreshRequest(BaseModel):
    """Body of the refresh trigger. Omitting both fields refreshes every enabled platform."""

    model_config = ConfigDict(extra="forbid")

    platforms: Optional[list[str]] = None
    category: Optional[PlatformCategory] = None


class RefreshResult(BaseModel):
    """Summary returned to the caller that triggered a refresh."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    total_requested: int = 0
    total_succeeded: int = 0
    total_inserted: int = 0
    total_failed: int = 0
    failed_platforms: list[str] = []
    # Platforms whose old batch could not be cleared before the insert
    warnings: list[str] = []


class PurgeResult(SQLModel):
    cutoff: Optional[date] = None
    deleted: int
