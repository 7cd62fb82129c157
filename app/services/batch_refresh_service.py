"""Day-partitioned batch replacement for stored news.

A platform's batch for a calendar day is replaced wholesale: delete every row
for (platform_id, fetched_date), then insert the new batch. Replacements for
the same key are serialized inside the process.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

from app.services.news_store import NewsStore

logger = logging.getLogger(__name__)


class BatchInsertError(Exception):
    """The new batch could not be inserted; the platform's day is lost."""

    def __init__(self, platform_id: str, fetched_date: date, message: str) -> None:
        super().__init__(message)
        self.platform_id = platform_id
        self.fetched_date = fetched_date
        self.message = message


@dataclass(frozen=True, slots=True)
class BatchReplaceResult:
    platform_id: str
    fetched_date: date
    deleted: int
    inserted: int
    delete_warning: Optional[str] = None


class BatchLockRegistry:
    """One asyncio.Lock per (platform_id, fetched_date)."""

    def __init__(self) -> None:
        self._locks: dict[tuple[str, date], asyncio.Lock] = {}

    def lock_for(self, platform_id: str, fetched_date: date) -> asyncio.Lock:
        key = (platform_id, fetched_date)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def prune(self, before: date) -> None:
        """Forget locks for past days that are not currently held."""
        for key in [k for k, lock in self._locks.items() if k[1] < before and not lock.locked()]:
            del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


batch_locks = BatchLockRegistry()


def short_error_message(exc: BaseException) -> str:
    """First line of the underlying driver error.

    SQLAlchemy wraps driver errors with the full statement and bound
    parameters; callers only get the driver's own message.
    """
    orig = getattr(exc, "orig", None) or exc
    lines = str(orig).strip().splitlines()
    return lines[0] if lines else type(orig).__name__


async def replace_platform_batch(
    store: NewsStore,
    platform_id: str,
    fetched_date: date,
    rows: Sequence[dict[str, Any]],
    *,
    locks: Optional[BatchLockRegistry] = None,
) -> BatchReplaceResult:
    """Replace the stored batch for (platform_id, fetched_date) with ``rows``.

    A failed delete is logged and the insert still runs (duplicates are
    possible in that case). A failed insert raises BatchInsertError.

    Args:
        store: News store
        platform_id: Owning platform
        fetched_date: Partition day
        rows: Scored rows for that platform and day

    Returns:
        BatchReplaceResult with delete/insert counts

    Raises:
        BatchInsertError: insert step failed
    """
    registry = locks or batch_locks

    async with registry.lock_for(platform_id, fetched_date):
        deleted = 0
        delete_warning: Optional[str] = None
        try:
            deleted = await store.delete_news_batch(platform_id, fetched_date)
        except Exception as exc:
            delete_warning = f"delete failed: {short_error_message(exc)}"
            logger.warning(
                f"Could not clear {platform_id} batch for {fetched_date}, inserting anyway: {exc}"
            )

        try:
            inserted = await store.insert_news_batch(rows)
        except Exception as exc:
            logger.error(
                f"Insert failed for {platform_id} ({len(rows)} rows, {fetched_date}): {exc}"
            )
            raise BatchInsertError(
                platform_id, fetched_date, short_error_message(exc)
            ) from exc

    logger.info(
        f"Replaced {platform_id} batch for {fetched_date}: {deleted} removed, {inserted} inserted"
    )
    return BatchReplaceResult(
        platform_id=platform_id,
        fetched_date=fetched_date,
        deleted=deleted,
        inserted=inserted,
        delete_warning=delete_warning,
    )


async def purge_expired_news(
    store: NewsStore,
    *,
    today: date,
    retention_days: int,
) -> tuple[Optional[date], int]:
    """Delete batches older than the retention window.

    Args:
        store: News store
        today: Current UTC date
        retention_days: Days of history to keep; 0 disables purging

    Returns:
        Tuple of (cutoff date or None when disabled, rows deleted)
    """
    if retention_days <= 0:
        return None, 0

    cutoff = today - timedelta(days=retention_days)
    deleted = await store.delete_news_before(cutoff)
    batch_locks.prune(cutoff)
    logger.info(f"Purged {deleted} news rows fetched before {cutoff}")
    return cutoff, deleted
