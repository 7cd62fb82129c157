"""Concurrent fan-out over platforms.

Every platform gets its own task; all tasks are awaited to completion and a
failing or slow platform never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from app.services.hot_news_client import (
    FailureKind,
    FetchEmpty,
    FetchFailure,
    FetchOk,
    FetchOutcome,
)
from app.services.platform_mapping import ProviderEntry, resolve_api_param
from app.services.scoring_service import PlatformSnapshot

logger = logging.getLogger(__name__)

FetchFn = Callable[[str, int], Awaitable[FetchOutcome]]


@dataclass(slots=True)
class PlatformOutcome:
    platform: PlatformSnapshot
    outcome: FetchOutcome
    elapsed_seconds: float = 0.0

    @property
    def tagged_reason(self) -> str:
        """``Name(reason)`` for failures, e.g. ``Weibo(HTTP 503)``."""
        if isinstance(self.outcome, FetchFailure):
            return f"{self.platform.name}({self.outcome.reason})"
        return self.platform.name


@dataclass(slots=True)
class FanOutReport:
    """Outcomes of one fan-out, one entry per requested platform."""

    outcomes: list[PlatformOutcome] = field(default_factory=list)

    @property
    def requested(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o.outcome, FetchOk))

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o.outcome, FetchFailure))

    @property
    def failed_platforms(self) -> list[str]:
        return [o.tagged_reason for o in self.outcomes if isinstance(o.outcome, FetchFailure)]

    def items_by_platform(self) -> dict[str, list[ProviderEntry]]:
        return {
            o.platform.id: (o.outcome.items if isinstance(o.outcome, FetchOk) else [])
            for o in self.outcomes
        }

    def successes(self) -> list[tuple[PlatformSnapshot, list[ProviderEntry]]]:
        return [
            (o.platform, o.outcome.items)
            for o in self.outcomes
            if isinstance(o.outcome, FetchOk)
        ]

    def mark_failed(self, platform_id: str, failure: FetchFailure) -> None:
        """Downgrade a platform's outcome, e.g. when its batch could not be stored."""
        for entry in self.outcomes:
            if entry.platform.id == platform_id:
                entry.outcome = failure
                return
        raise KeyError(platform_id)


async def _fetch_one(
    platform: PlatformSnapshot, limit: int, fetch: FetchFn
) -> PlatformOutcome:
    started = time.perf_counter()
    api_param = resolve_api_param(platform.id)
    if api_param is None:
        outcome: FetchOutcome = FetchFailure(FailureKind.NO_MAPPING)
    else:
        outcome = await fetch(api_param, limit)
    return PlatformOutcome(
        platform=platform,
        outcome=outcome,
        elapsed_seconds=time.perf_counter() - started,
    )


def _log_outcome(result: PlatformOutcome) -> None:
    name = result.platform.name
    outcome = result.outcome
    if isinstance(outcome, FetchOk):
        logger.info(f"  {name}: {len(outcome.items)} items ({result.elapsed_seconds:.1f}s)")
    elif isinstance(outcome, FetchEmpty):
        logger.info(f"  {name}: no items")
    else:
        logger.warning(f"  {name}: failed ({outcome.reason})")


async def fan_out(
    platforms: Sequence[PlatformSnapshot],
    limit: int,
    fetch: FetchFn,
) -> FanOutReport:
    """Fetch all platforms concurrently and wait for every outcome.

    Args:
        platforms: Platforms to fetch (duplicates are ignored)
        limit: Item cap per platform
        fetch: Fetch executor, called as ``fetch(api_param, limit)``

    Returns:
        FanOutReport with exactly one outcome per distinct platform, in input order
    """
    unique: dict[str, PlatformSnapshot] = {}
    for platform in platforms:
        unique.setdefault(platform.id, platform)
    targets = list(unique.values())

    tasks = [asyncio.create_task(_fetch_one(p, limit, fetch)) for p in targets]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    report = FanOutReport()
    for platform, result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.error(f"Unexpected error fetching {platform.name}: {result!r}")
            result = PlatformOutcome(
                platform=platform,
                outcome=FetchFailure(FailureKind.TRANSPORT, detail=str(result) or type(result).__name__),
            )
        _log_outcome(result)
        report.outcomes.append(result)
    return report
