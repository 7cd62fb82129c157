"""Platform catalogue and per-user platform preference routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.news import GroupedFeedResponse
from app.models.platforms import PlatformRead, PlatformUpdate
from app.models.users import PreferenceRead, PreferenceUpdate
from app.routes.dependencies import get_preference_store
from app.schemas.platforms import PlatformCategory
from app.services.identity import Identity, get_current_identity, require_admin
from app.services.news_service import get_grouped_feed, resolve_feed_platforms
from app.services.platform_service import list_platforms, to_platform_read, update_platform
from app.services.preference_service import PlatformPreference, SqlPreferenceStore
from app.utils.db_async import get_session

router = APIRouter(tags=["platforms"])


@router.get("/api/platforms", response_model=list[PlatformRead])
async def read_platforms(
    enabled: Optional[bool] = Query(default=None),
    category: Optional[PlatformCategory] = Query(default=None),
    db: AsyncSession = Depends(get_session),
) -> list[PlatformRead]:
    """List platforms, ordered by name."""
    platforms = await list_platforms(db, enabled=enabled, category=category)
    return [to_platform_read(p) for p in platforms]


@router.patch("/api/platforms/{platform_id}", response_model=PlatformRead)
async def edit_platform(
    platform_id: str,
    payload: PlatformUpdate,
    db: AsyncSession = Depends(get_session),
    _admin: Identity = Depends(require_admin),
) -> PlatformRead:
    """Update name, weight, enabled flag or display fields (admin)."""
    platform = await update_platform(db, platform_id, payload)
    if platform is None:
        raise HTTPException(status_code=404, detail="Platform not found")
    return to_platform_read(platform)


@router.get("/api/preferences", response_model=PreferenceRead)
async def read_preferences(
    identity: Identity = Depends(get_current_identity),
    preferences: SqlPreferenceStore = Depends(get_preference_store),
) -> PreferenceRead:
    preference = await preferences.get(identity.user_id) or PlatformPreference()
    return PreferenceRead(
        platform_ids=list(preference.platform_ids), updated_at=preference.updated_at
    )


@router.put("/api/preferences", response_model=GroupedFeedResponse)
async def save_preferences(
    payload: PreferenceUpdate,
    identity: Identity = Depends(get_current_identity),
    preferences: SqlPreferenceStore = Depends(get_preference_store),
    db: AsyncSession = Depends(get_session),
) -> GroupedFeedResponse:
    """Save the ordered platform list and return the regrouped feed.

    An empty list clears the preference, so every enabled platform shows.
    """
    await preferences.save(identity.user_id, PlatformPreference.from_ids(payload.platform_ids))
    platforms = await resolve_feed_platforms(db, preferences, user_id=identity.user_id)
    return await get_grouped_feed(db, platforms, user_id=identity.user_id)
