"""Hot-list refresh cycle.

Resolves the platforms to refresh, fans out to the provider, scores each
platform's batch and replaces that platform's stored batch for the day.

State per cycle: Idle -> FetchingAll -> Reconciling -> Reported -> Idle.
Nothing is persisted between cycles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

from app.config import settings
from app.models.news import RefreshRequest, RefreshResult
from app.schemas.system_config import NEWS_FETCH_LIMIT_KEY
from app.services.batch_refresh_service import (
    BatchInsertError,
    batch_locks,
    replace_platform_batch,
)
from app.services.fanout_service import FanOutReport, FetchFn, fan_out
from app.services.hot_news_client import FailureKind, FetchFailure, HotNewsClient
from app.services.news_store import NewsStore
from app.services.scoring_service import (
    PlatformSnapshot,
    ScoreHook,
    build_news_rows,
    get_score_hook,
)

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING_ALL = "fetching_all"
    RECONCILING = "reconciling"
    REPORTED = "reported"


class RefreshError(Exception):
    """Top-level refresh failure surfaced to the caller as a 500."""


def parse_fetch_limit(raw: Optional[str], default: Optional[int] = None) -> int:
    """Parse the stored ``news_fetch_limit`` value.

    Missing, non-integer or non-positive values fall back to the default.
    """
    fallback = default if default is not None else settings.default_fetch_limit
    if raw is None:
        return fallback
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning(f"Ignoring unparsable {NEWS_FETCH_LIMIT_KEY}={raw!r}")
        return fallback
    if value <= 0:
        logger.warning(f"Ignoring non-positive {NEWS_FETCH_LIMIT_KEY}={raw!r}")
        return fallback
    return value


async def get_fetch_limit(store: NewsStore) -> int:
    return parse_fetch_limit(await store.get_config_value(NEWS_FETCH_LIMIT_KEY))


def build_refresh_message(report: FanOutReport, total_inserted: int) -> str:
    message = (
        f"Fetched news: inserted {total_inserted} items, "
        f"succeeded: {report.succeeded}, failed: {report.failed}"
    )
    if report.failed:
        message += f" ({', '.join(report.failed_platforms)})"
    return message


@dataclass
class RefreshCycle:
    """One on-demand refresh run.

    Args:
        store: News store used for platform/config reads and batch writes
        fetch: Fetch executor; a HotNewsClient is opened when omitted
        score_hook: Final-score hook; taken from settings when omitted
        now: Fetch time override (naive UTC), mostly for tests
    """

    store: NewsStore
    fetch: Optional[FetchFn] = None
    score_hook: Optional[ScoreHook] = None
    now: Optional[datetime] = None
    state: RefreshState = RefreshState.IDLE
    history: list[RefreshState] = field(default_factory=list)

    def _transition(self, state: RefreshState) -> None:
        logger.debug(f"Refresh state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def run(self, request: Optional[RefreshRequest] = None) -> RefreshResult:
        request = request or RefreshRequest()
        try:
            limit = await get_fetch_limit(self.store)
            platforms = await self.store.list_enabled_platforms(
                platform_ids=request.platforms,
                category=request.category.value if request.category else None,
            )
            logger.info(
                f"Starting news refresh: {len(platforms)} platform(s), limit {limit}"
            )

            self._transition(RefreshState.FETCHING_ALL)
            report = await self._fetch_all(platforms, limit)

            self._transition(RefreshState.RECONCILING)
            total_inserted, warnings = await self._reconcile(report)

            self._transition(RefreshState.REPORTED)
            result = RefreshResult(
                success=True,
                message=build_refresh_message(report, total_inserted),
                total_requested=report.requested,
                total_succeeded=report.succeeded,
                total_inserted=total_inserted,
                total_failed=report.failed,
                failed_platforms=report.failed_platforms,
                warnings=warnings,
            )
            logger.info(result.message)
            return result
        finally:
            self._transition(RefreshState.IDLE)

    async def _fetch_all(
        self, platforms: list[PlatformSnapshot], limit: int
    ) -> FanOutReport:
        if self.fetch is not None:
            return await fan_out(platforms, limit, self.fetch)
        async with HotNewsClient() as client:
            return await fan_out(platforms, limit, client.fetch)

    async def _reconcile(self, report: FanOutReport) -> tuple[int, list[str]]:
        fetched_at = self.now or datetime.now(UTC).replace(tzinfo=None)
        hook = self.score_hook or get_score_hook(settings.score_strategy)

        total_inserted = 0
        warnings: list[str] = []
        for platform, entries in report.successes():
            rows: list[dict[str, Any]] = build_news_rows(
                platform, entries, fetched_at=fetched_at, score_hook=hook
            )
            try:
                replaced = await replace_platform_batch(
                    self.store, platform.id, fetched_at.date(), rows
                )
            except BatchInsertError as exc:
                report.mark_failed(
                    platform.id,
                    FetchFailure(FailureKind.INSERT_FAILED, detail=exc.message),
                )
                continue
            total_inserted += replaced.inserted
            if replaced.delete_warning:
                warnings.append(f"{platform.name}({replaced.delete_warning})")

        batch_locks.prune(fetched_at.date())
        return total_inserted, warnings


async def run_ingestion_cycle(
    store: NewsStore,
    request: Optional[RefreshRequest] = None,
    *,
    fetch: Optional[FetchFn] = None,
    score_hook: Optional[ScoreHook] = None,
    now: Optional[datetime] = None,
) -> RefreshResult:
    """Run one refresh cycle and return its summary.

    Per-platform failures are reported in the result; only store failures
    while reading platforms or config propagate.
    """
    cycle = RefreshCycle(store=store, fetch=fetch, score_hook=score_hook, now=now)
    return await cycle.run(request)


async def fetch_live_batches(
    platforms: list[PlatformSnapshot],
    *,
    limit: int,
    fetch: Optional[FetchFn] = None,
    score_hook: Optional[ScoreHook] = None,
) -> tuple[FanOutReport, dict[str, list[dict[str, Any]]]]:
    """Fetch and score platforms without storing anything.

    Returns:
        Tuple of (fan-out report, scored rows keyed by platform id)
    """
    if fetch is not None:
        report = await fan_out(platforms, limit, fetch)
    else:
        async with HotNewsClient() as client:
            report = await fan_out(platforms, limit, client.fetch)

    fetched_at = datetime.now(UTC).replace(tzinfo=None)
    hook = score_hook or get_score_hook(settings.score_strategy)
    rows_by_platform = {
        platform.id: build_news_rows(platform, entries, fetched_at=fetched_at, score_hook=hook)
        for platform, entries in report.successes()
    }
    return report, rows_by_platform
