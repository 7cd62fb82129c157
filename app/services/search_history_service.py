"""Search keyword history (per user, or anonymous when user_id is None)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.users import HotKeywordRead, SearchHistoryRead
from app.schemas.search_history import SearchHistory

MAX_KEYWORD_LENGTH = 100


def normalize_keyword(keyword: str) -> str:
    """Trim and collapse whitespace; raises ValueError when nothing is left."""
    normalized = " ".join(keyword.split())[:MAX_KEYWORD_LENGTH]
    if not normalized:
        raise ValueError("Search keyword must not be empty")
    return normalized


def _owner_clause(user_id: Optional[str]):
    if user_id is None:
        return SearchHistory.user_id.is_(None)  # type: ignore[union-attr]
    return SearchHistory.user_id == user_id


async def _increment(
    db: AsyncSession, keyword: str, user_id: Optional[str], now: datetime
) -> bool:
    """Bump an existing (owner, keyword) row in one UPDATE; False when none exists."""
    result = await db.execute(
        update(SearchHistory)
        .where(
            _owner_clause(user_id),
            SearchHistory.keyword == keyword,  # type: ignore[arg-type]
        )
        .values(
            search_count=SearchHistory.search_count + 1,
            last_searched_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return (result.rowcount or 0) > 0


async def record_search(
    db: AsyncSession, keyword: str, user_id: Optional[str] = None
) -> SearchHistory:
    """Count one search of ``keyword``.

    Increments the existing (user, keyword) row and touches last_searched_at,
    or creates it with a count of 1. A concurrent first search of the same
    keyword trips the unique owner/keyword index and is retried as an
    increment.
    """
    keyword = normalize_keyword(keyword)
    now = datetime.utcnow()

    for _ in range(2):
        if await _increment(db, keyword, user_id, now):
            await db.commit()
            result = await db.execute(
                select(SearchHistory)
                .where(
                    _owner_clause(user_id),
                    SearchHistory.keyword == keyword,  # type: ignore[arg-type]
                )
                .execution_options(populate_existing=True)
            )
            return result.scalar_one()

        row = SearchHistory(
            user_id=user_id,
            keyword=keyword,
            search_count=1,
            last_searched_at=now,
            created_at=now,
        )
        db.add(row)
        try:
            await db.commit()
            return row
        except IntegrityError:
            await db.rollback()

    raise RuntimeError(f"Could not record search for {keyword!r}")


async def get_hot_keywords(db: AsyncSession, *, limit: int = 10) -> list[HotKeywordRead]:
    """Most searched keywords across all users."""
    total = func.sum(SearchHistory.search_count).label("total")
    result = await db.execute(
        select(SearchHistory.keyword, total)  # type: ignore[call-overload]
        .group_by(SearchHistory.keyword)
        .order_by(total.desc(), SearchHistory.keyword)
        .limit(limit)
    )
    return [
        HotKeywordRead(keyword=keyword, search_count=int(count))
        for keyword, count in result.all()
    ]


async def get_user_search_history(
    db: AsyncSession, user_id: str, *, limit: int = 10
) -> list[SearchHistoryRead]:
    result = await db.execute(
        select(SearchHistory)
        .where(SearchHistory.user_id == user_id)  # type: ignore[arg-type]
        .order_by(SearchHistory.last_searched_at.desc())  # type: ignore[attr-defined]
        .limit(limit)
    )
    return [
        SearchHistoryRead(
            keyword=row.keyword,
            search_count=row.search_count,
            last_searched_at=row.last_searched_at,
        )
        for row in result.scalars().all()
    ]
