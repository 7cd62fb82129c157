"""Admin API routes: system config and statistics."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.platforms import ConfigRead, ConfigUpdate, StatisticsRead
from app.services.identity import Identity, require_admin
from app.services.platform_service import (
    ConfigValueError,
    get_config,
    get_statistics,
    list_config,
    set_config,
    to_config_read,
)
from app.utils.db_async import get_session

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/config", response_model=list[ConfigRead])
async def read_config(db: AsyncSession = Depends(get_session)) -> list[ConfigRead]:
    return [to_config_read(row) for row in await list_config(db)]


@router.get("/config/{key}", response_model=ConfigRead)
async def read_config_key(key: str, db: AsyncSession = Depends(get_session)) -> ConfigRead:
    row = await get_config(db, key)
    if row is None:
        raise HTTPException(status_code=404, detail="Config key not found")
    return to_config_read(row)


@router.put("/config/{key}", response_model=ConfigRead)
async def write_config_key(
    key: str,
    payload: ConfigUpdate,
    db: AsyncSession = Depends(get_session),
) -> ConfigRead:
    """Create or update a config value (e.g. ``news_fetch_limit``)."""
    try:
        row = await set_config(db, key, payload.value, payload.description)
    except ConfigValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return to_config_read(row)


@router.get("/stats", response_model=StatisticsRead)
async def read_statistics(
    db: AsyncSession = Depends(get_session),
) -> StatisticsRead:
    """News totals per category and the busiest platforms."""
    return await get_statistics(db)
