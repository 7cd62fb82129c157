"""Storage interface used by the refresh pipeline.

The pipeline only needs a handful of queries; keeping them behind a protocol
lets the refresh logic run against an in-memory store in unit tests.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, Optional, Protocol

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.news import NewsItem
from app.schemas.platforms import Platform, PlatformCategory
from app.schemas.system_config import SystemConfig
from app.services.scoring_service import PlatformSnapshot

logger = logging.getLogger(__name__)


class NewsStore(Protocol):
    async def list_enabled_platforms(
        self,
        platform_ids: Optional[Sequence[str]] = None,
        category: Optional[str] = None,
    ) -> list[PlatformSnapshot]: ...

    async def get_config_value(self, key: str) -> Optional[str]: ...

    async def delete_news_batch(self, platform_id: str, fetched_date: date) -> int: ...

    async def insert_news_batch(self, rows: Sequence[dict[str, Any]]) -> int: ...

    async def delete_news_before(self, cutoff: date) -> int: ...


class SqlNewsStore:
    """NewsStore over an async SQLAlchemy session.

    Each write commits on its own: delete and insert are separate steps so a
    failed delete does not block the insert.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_enabled_platforms(
        self,
        platform_ids: Optional[Sequence[str]] = None,
        category: Optional[str] = None,
    ) -> list[PlatformSnapshot]:
        """Enabled platforms ordered by name.

        An explicit id list wins over the category filter.
        """
        stmt = select(Platform).where(Platform.enabled.is_(True))  # type: ignore[attr-defined]
        if platform_ids:
            stmt = stmt.where(Platform.id.in_(list(platform_ids)))  # type: ignore[attr-defined]
        elif category:
            stmt = stmt.where(Platform.category == PlatformCategory(category))  # type: ignore[arg-type]
        stmt = stmt.order_by(Platform.name)  # type: ignore[arg-type]

        result = await self.db.execute(stmt)
        return [
            PlatformSnapshot(
                id=p.id,
                name=p.name,
                category=p.category.value,
                weight=p.weight,
            )
            for p in result.scalars().all()
        ]

    async def get_config_value(self, key: str) -> Optional[str]:
        result = await self.db.execute(
            select(SystemConfig.value).where(SystemConfig.key == key)  # type: ignore[call-overload,arg-type]
        )
        return result.scalar_one_or_none()

    async def delete_news_batch(self, platform_id: str, fetched_date: date) -> int:
        try:
            result = await self.db.execute(
                delete(NewsItem).where(
                    NewsItem.platform_id == platform_id,  # type: ignore[arg-type]
                    NewsItem.fetched_date == fetched_date,  # type: ignore[arg-type]
                )
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount or 0

    async def insert_news_batch(self, rows: Sequence[dict[str, Any]]) -> int:
        if not rows:
            return 0
        now = datetime.utcnow()
        values = [{"created_at": now, **row} for row in rows]
        try:
            await self.db.execute(insert(NewsItem), values)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return len(values)

    async def delete_news_before(self, cutoff: date) -> int:
        try:
            result = await self.db.execute(
                delete(NewsItem).where(NewsItem.fetched_date < cutoff)  # type: ignore[arg-type]
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount or 0
