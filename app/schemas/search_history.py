"""Search keyword counters, per user or anonymous (user_id NULL)."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, func
from sqlmodel import Field, SQLModel


class SearchHistory(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "search_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True)
    keyword: str = Field(index=True)
    search_count: int = Field(default=1)
    last_searched_at: datetime = Field(
        default_factory=datetime.utcnow, index=True, sa_type=DateTime
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)


# One row per (owner, keyword). A plain UNIQUE(user_id, keyword) lets
# anonymous rows repeat because NULLs compare distinct.
Index(
    "uq_search_history_owner_keyword",
    func.coalesce(SearchHistory.user_id, ""),
    SearchHistory.keyword,
    unique=True,
)
