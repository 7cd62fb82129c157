"""Stored hot-list items, partitioned by (platform_id, fetched_date)."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import DateTime, Index
from sqlmodel import Field, SQLModel


class NewsItem(SQLModel, table=True):  # type: ignore[call-arg]
    """One entry of a platform's batch for a given day.

    Rows are never updated in place: a refresh deletes the platform's batch
    for the day and inserts the new one.
    """

    __tablename__ = "news"
    __table_args__ = (
        Index("ix_news_platform_fetched_date", "platform_id", "fetched_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    platform_id: str = Field(foreign_key="platforms.id")
    title: str
    url: str

    # Scoring
    api_score: int = Field(default=0)
    final_score: float = Field(default=0, index=True)
    hot_rank: Optional[int] = Field(default=None)

    content_snippet: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)

    # Timestamps are naive UTC (TIMESTAMP WITHOUT TIME ZONE)
    published_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    fetched_at: datetime = Field(index=True, sa_type=DateTime)
    fetched_date: date
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
