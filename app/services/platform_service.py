"""Platform catalogue, system config and statistics for admins."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.platforms import (
    ConfigRead,
    PlatformCount,
    PlatformRead,
    PlatformUpdate,
    StatisticsRead,
)
from app.schemas.news import NewsItem
from app.schemas.platforms import Platform, PlatformCategory
from app.schemas.system_config import NEWS_FETCH_LIMIT_KEY, SystemConfig

logger = logging.getLogger(__name__)


class ConfigValueError(ValueError):
    pass


def to_platform_read(platform: Platform) -> PlatformRead:
    return PlatformRead(
        id=platform.id,
        name=platform.name,
        category=platform.category.value,
        weight=platform.weight,
        enabled=platform.enabled,
        icon_url=platform.icon_url,
        description=platform.description,
        updated_at=platform.updated_at,
    )


async def list_platforms(
    db: AsyncSession,
    *,
    enabled: Optional[bool] = None,
    category: Optional[PlatformCategory] = None,
) -> list[Platform]:
    stmt = select(Platform)
    if enabled is not None:
        stmt = stmt.where(Platform.enabled.is_(enabled))  # type: ignore[attr-defined]
    if category is not None:
        stmt = stmt.where(Platform.category == category)  # type: ignore[arg-type]
    result = await db.execute(stmt.order_by(Platform.name))  # type: ignore[arg-type]
    return list(result.scalars().all())


async def update_platform(
    db: AsyncSession, platform_id: str, updates: PlatformUpdate
) -> Optional[Platform]:
    """Apply an admin edit. Returns None for an unknown platform."""
    platform = await db.get(Platform, platform_id)
    if platform is None:
        return None

    changes = updates.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        setattr(platform, field_name, value)
    platform.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(platform)

    if "enabled" in changes:
        logger.info(f"Platform {platform_id} {'enabled' if platform.enabled else 'disabled'}")
    return platform


def _validate_config_value(key: str, value: str) -> str:
    value = value.strip()
    if key == NEWS_FETCH_LIMIT_KEY:
        try:
            parsed = int(value)
        except ValueError:
            raise ConfigValueError(f"{key} must be an integer") from None
        if parsed <= 0:
            raise ConfigValueError(f"{key} must be positive")
        return str(parsed)
    return value


def to_config_read(row: SystemConfig) -> ConfigRead:
    return ConfigRead(
        key=row.key,
        value=row.value,
        description=row.description,
        updated_at=row.updated_at,
    )


async def list_config(db: AsyncSession) -> list[SystemConfig]:
    result = await db.execute(select(SystemConfig).order_by(SystemConfig.key))  # type: ignore[arg-type]
    return list(result.scalars().all())


async def get_config(db: AsyncSession, key: str) -> Optional[SystemConfig]:
    return await db.get(SystemConfig, key)


async def set_config(
    db: AsyncSession, key: str, value: str, description: Optional[str] = None
) -> SystemConfig:
    """Create or update a config key.

    Raises:
        ConfigValueError: value rejected for a recognized key
    """
    value = _validate_config_value(key, value)
    row = await db.get(SystemConfig, key)
    now = datetime.utcnow()
    if row is None:
        row = SystemConfig(key=key, value=value, description=description, updated_at=now)
        db.add(row)
    else:
        row.value = value
        if description is not None:
            row.description = description
        row.updated_at = now
    await db.commit()
    return row


async def get_statistics(db: AsyncSession) -> StatisticsRead:
    total_news = (await db.execute(select(func.count()).select_from(NewsItem))).scalar() or 0
    total_platforms = (await db.execute(select(func.count()).select_from(Platform))).scalar() or 0

    by_category = {c.value: 0 for c in PlatformCategory}
    category_rows = await db.execute(
        select(Platform.category, func.count(NewsItem.id))  # type: ignore[call-overload,arg-type]
        .join(NewsItem, NewsItem.platform_id == Platform.id)
        .group_by(Platform.category)
    )
    for category, count in category_rows.all():
        by_category[getattr(category, "value", category)] = int(count)

    count_col = func.count(NewsItem.id).label("count")  # type: ignore[arg-type]
    top_rows = await db.execute(
        select(NewsItem.platform_id, count_col)  # type: ignore[call-overload]
        .group_by(NewsItem.platform_id)
        .order_by(count_col.desc(), NewsItem.platform_id)
        .limit(10)
    )
    return StatisticsRead(
        total_news=total_news,
        total_platforms=total_platforms,
        news_by_category=by_category,
        top_platforms=[
            PlatformCount(platform_id=pid, count=int(count)) for pid, count in top_rows.all()
        ],
    )
