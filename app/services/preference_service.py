"""User platform preferences: which platforms a feed shows and in what order."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.user_preferences import UserPreference

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlatformPreference:
    """Ordered platform ids. Empty means no preference (show everything)."""

    platform_ids: tuple[str, ...] = ()
    updated_at: Optional[datetime] = None

    @classmethod
    def from_ids(cls, ids: Iterable[str], updated_at: Optional[datetime] = None) -> PlatformPreference:
        """Build a preference, dropping blanks and repeated ids (first one wins)."""
        seen: dict[str, None] = {}
        for raw in ids:
            pid = raw.strip()
            if pid:
                seen.setdefault(pid, None)
        return cls(platform_ids=tuple(seen), updated_at=updated_at)

    @classmethod
    def from_csv(cls, value: Optional[str]) -> Optional[PlatformPreference]:
        """Parse ``"b,a,c"``; None/blank yields None."""
        if not value or not value.strip():
            return None
        return cls.from_ids(value.split(","))

    @property
    def is_empty(self) -> bool:
        return not self.platform_ids


class PreferenceStore(Protocol):
    async def get(self, user_id: str) -> Optional[PlatformPreference]: ...

    async def save(self, user_id: str, preference: PlatformPreference) -> PlatformPreference: ...


class SqlPreferenceStore:
    """PreferenceStore backed by the ``user_preferences`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, user_id: str) -> Optional[PlatformPreference]:
        result = await self.db.execute(
            select(UserPreference).where(UserPreference.user_id == user_id)  # type: ignore[arg-type]
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        try:
            ids = json.loads(row.platform_ids)
        except ValueError:
            logger.warning(f"Discarding unreadable preference for user {user_id}")
            return None
        if not isinstance(ids, list):
            return None
        return PlatformPreference.from_ids(
            [str(i) for i in ids], updated_at=row.updated_at
        )

    async def save(self, user_id: str, preference: PlatformPreference) -> PlatformPreference:
        """Replace the user's preference; an empty one deletes the row."""
        now = datetime.utcnow()
        row = await self.db.get(UserPreference, user_id)

        if preference.is_empty:
            if row is not None:
                await self.db.delete(row)
            await self.db.commit()
            return PlatformPreference()

        payload = json.dumps(list(preference.platform_ids))
        if row is None:
            row = UserPreference(user_id=user_id, platform_ids=payload, updated_at=now)
            self.db.add(row)
        else:
            row.platform_ids = payload
            row.updated_at = now
        await self.db.commit()
        return PlatformPreference(platform_ids=preference.platform_ids, updated_at=now)
