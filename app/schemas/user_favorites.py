"""Per-user bookmarks on stored news items."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel


class UserFavorite(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "user_favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "news_id", name="uq_user_favorites_user_news"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    # Favorites disappear together with purged news rows
    news_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("news.id", ondelete="CASCADE"), nullable=False
        )
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
