"""Scoring and ranking of fetched hot-list items.

The provider's own order is the ranking signal: index 0 is the hottest item.
``final_score`` goes through a pluggable hook so platform weight can be
folded in without touching the fetch or refresh code.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Protocol

from app.models.news import SortMode
from app.schemas.news import NewsItem
from app.services.platform_mapping import ProviderEntry, parse_publish_time

SCORE_CEILING = 100
# Items past index 100 all score the floor instead of going negative
SCORE_FLOOR = 0
DEFAULT_PLATFORM_WEIGHT = 1.0


@dataclass(frozen=True, slots=True)
class PlatformSnapshot:
    """Minimal platform data needed by the pipeline without ORM lazy loads."""

    id: str
    name: str
    category: str
    weight: float = DEFAULT_PLATFORM_WEIGHT


class ScoreHook(Protocol):
    def __call__(self, index: int, platform: PlatformSnapshot) -> float: ...


def position_score(index: int) -> int:
    """Score of the item at 0-based ``index``: 100, 99, ... floored at 0."""
    return max(SCORE_CEILING - index, SCORE_FLOOR)


def position_final_score(index: int, platform: PlatformSnapshot) -> float:
    """Default hook: final score equals the position score."""
    return float(position_score(index))


def weighted_final_score(index: int, platform: PlatformSnapshot) -> float:
    """Position score scaled by the platform weight (1.0 is neutral)."""
    return round(position_score(index) * platform.weight / DEFAULT_PLATFORM_WEIGHT, 2)


SCORE_HOOKS: dict[str, ScoreHook] = {
    "position": position_final_score,
    "weighted": weighted_final_score,
}


def get_score_hook(name: str) -> ScoreHook:
    try:
        return SCORE_HOOKS[name]
    except KeyError:
        raise ValueError(f"Unknown score strategy: {name}") from None


def build_news_rows(
    platform: PlatformSnapshot,
    entries: Sequence[ProviderEntry],
    *,
    fetched_at: datetime,
    score_hook: Optional[ScoreHook] = None,
) -> list[dict[str, Any]]:
    """Turn one platform's provider-ordered entries into ``news`` rows.

    Args:
        platform: Owning platform
        entries: Entries in provider order, already truncated to the cap
        fetched_at: Fetch time (naive UTC); its date is the partition key
        score_hook: Final-score hook, defaults to the position score

    Returns:
        Row dicts ready for insertion, hot_rank 1..N
    """
    hook = score_hook or position_final_score
    fetched_date: date = fetched_at.date()

    rows: list[dict[str, Any]] = []
    for index, entry in enumerate(entries):
        rows.append(
            {
                "platform_id": platform.id,
                "title": entry.title.strip(),
                "url": entry.url.strip(),
                "api_score": position_score(index),
                "final_score": hook(index, platform),
                "hot_rank": index + 1,
                "content_snippet": entry.content or None,
                "image_url": None,
                "published_at": parse_publish_time(entry.publish_time) or fetched_at,
                "fetched_at": fetched_at,
                "fetched_date": fetched_date,
            }
        )
    return rows


def ranking_order(sort: SortMode) -> list[Any]:
    """ORDER BY clauses giving a deterministic total order for display.

    ``hot``: final_score desc, ties broken by fetched_at asc (earlier batch
    first), then platform_id, hot_rank and id.
    ``time``: fetched_at desc, then final_score desc, platform_id, hot_rank, id.
    """
    tiebreak = [
        NewsItem.platform_id.asc(),  # type: ignore[attr-defined]
        NewsItem.hot_rank.asc().nulls_last(),  # type: ignore[union-attr]
        NewsItem.id.asc(),  # type: ignore[union-attr]
    ]
    if sort == "time":
        return [
            NewsItem.fetched_at.desc(),  # type: ignore[attr-defined]
            NewsItem.final_score.desc(),  # type: ignore[attr-defined]
            *tiebreak,
        ]
    return [
        NewsItem.final_score.desc(),  # type: ignore[attr-defined]
        NewsItem.fetched_at.asc(),  # type: ignore[attr-defined]
        *tiebreak,
    ]
