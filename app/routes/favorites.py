"""User favorites routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.users import FavoriteListResponse, FavoriteStatus
from app.services.favorites_service import (
    DuplicateFavoriteError,
    NewsNotFoundError,
    add_favorite,
    is_favorited,
    list_favorites,
    remove_favorite,
)
from app.services.identity import Identity, get_current_identity
from app.utils.db_async import get_session

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


@router.get("", response_model=FavoriteListResponse)
async def read_favorites(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> FavoriteListResponse:
    items = await list_favorites(db, identity.user_id, limit=limit, offset=offset)
    return FavoriteListResponse(items=items, limit=limit, offset=offset)


@router.get("/{news_id}", response_model=FavoriteStatus)
async def read_favorite_status(
    news_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> FavoriteStatus:
    return FavoriteStatus(
        news_id=news_id, is_favorited=await is_favorited(db, identity.user_id, news_id)
    )


@router.post("/{news_id}", response_model=FavoriteStatus, status_code=201)
async def create_favorite(
    news_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> FavoriteStatus:
    try:
        await add_favorite(db, identity.user_id, news_id)
    except NewsNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DuplicateFavoriteError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return FavoriteStatus(news_id=news_id, is_favorited=True)


@router.delete("/{news_id}", status_code=204)
async def delete_favorite(
    news_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> None:
    if not await remove_favorite(db, identity.user_id, news_id):
        raise HTTPException(status_code=404, detail="Favorite not found")
