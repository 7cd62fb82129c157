"""Search routes: keyword search over stored news plus search history."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.news import NewsFeedResponse, SortMode
from app.models.users import HotKeywordRead, SearchHistoryRead
from app.routes.dependencies import get_preference_store
from app.services.identity import Identity, get_current_identity, get_optional_identity
from app.services.news_service import get_news_feed, resolve_feed_platforms
from app.services.preference_service import SqlPreferenceStore
from app.services.search_history_service import (
    MAX_KEYWORD_LENGTH,
    get_hot_keywords,
    get_user_search_history,
    normalize_keyword,
    record_search,
)
from app.utils.db_async import get_session

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=NewsFeedResponse)
async def search_news(
    q: str = Query(..., max_length=MAX_KEYWORD_LENGTH, description="Title keyword"),
    sort: SortMode = Query(default="hot"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    identity: Optional[Identity] = Depends(get_optional_identity),
    preferences: SqlPreferenceStore = Depends(get_preference_store),
    db: AsyncSession = Depends(get_session),
) -> NewsFeedResponse:
    """Search titles across every enabled platform and count the search."""
    try:
        keyword = normalize_keyword(q)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    user_id = identity.user_id if identity else None
    await record_search(db, keyword, user_id=user_id)

    platforms = await resolve_feed_platforms(db, preferences)
    return await get_news_feed(
        db,
        platform_ids=[p.id for p in platforms],
        sort=sort,
        limit=limit,
        offset=offset,
        keyword=keyword,
        user_id=user_id,
    )


@router.get("/hot", response_model=list[HotKeywordRead])
async def read_hot_keywords(
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_session),
) -> list[HotKeywordRead]:
    return await get_hot_keywords(db, limit=limit)


@router.get("/history", response_model=list[SearchHistoryRead])
async def read_search_history(
    limit: int = Query(default=10, ge=1, le=50),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> list[SearchHistoryRead]:
    return await get_user_search_history(db, identity.user_id, limit=limit)
