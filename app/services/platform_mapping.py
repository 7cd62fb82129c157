"""Provider adapter for the hot-list API.

Maps internal platform ids to the provider's ``platform`` query value and
validates the provider's JSON envelope before anything is stored.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

PROVIDER_SUCCESS_STATUS = "200"

# Internal platform id -> provider query value. Several provider codes differ
# from our ids; the corrections below were confirmed against the live API.
PLATFORM_MAPPING: dict[str, str] = {
    # social
    "weibo": "weibo",
    "zhihu": "zhihu",
    "douyin": "douyin",
    "douban": "douban",  # was "douban-group"
    "bilibili": "bilibili",
    # tech
    "36kr": "36kr",
    "sspai": "shaoshupai",  # was "sspai"
    "juejin": "juejin",
    "v2ex": "v2ex",
    "github": "github",  # was "github-trending"
    "stackoverflow": "stackoverflow",
    "hackernews": "hackernews",
    "52pojie": "52pojie",
    # finance (underscored, same as our ids)
    "sina_finance": "sina_finance",
    "eastmoney": "eastmoney",
    "xueqiu": "xueqiu",
    "cls": "cls",
    # general
    "baidu": "baidu",
    "toutiao": "jinritoutiao",  # was "toutiao"
    "qq": "qq",  # slow upstream, most likely to hit the timeout
    # other
    "hupu": "hupu",
    "tieba": "tieba",
}


class MalformedPayloadError(ValueError):
    """Provider answered 2xx but the body is not the expected envelope."""


class ProviderEntry(BaseModel):
    """One item of the provider's ``data`` array."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    url: str
    mobile_url: Optional[str] = Field(default=None, alias="mobileUrl")
    content: Optional[str] = None
    source: Optional[str] = None
    publish_time: Optional[str | int | float] = None


class _ProviderEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    data: list[Any]


def resolve_api_param(platform_id: str) -> Optional[str]:
    """Return the provider query value for a platform, or None when unmapped."""
    return PLATFORM_MAPPING.get(platform_id)


def parse_provider_payload(payload: Any) -> list[ProviderEntry]:
    """Validate a decoded provider body and return its entries in provider order.

    The envelope must carry ``status == "200"`` and a ``data`` list. Entries
    inside the list that lack a usable title or url are dropped (and logged)
    so they do not occupy a rank.

    Raises:
        MalformedPayloadError: envelope missing, wrong status, or ``data`` not a list
    """
    try:
        envelope = _ProviderEnvelope.model_validate(payload)
    except ValidationError as exc:
        raise MalformedPayloadError(f"unexpected response shape: {exc.error_count()} error(s)") from exc

    if envelope.status != PROVIDER_SUCCESS_STATUS:
        raise MalformedPayloadError(f"provider status {envelope.status!r}")

    entries: list[ProviderEntry] = []
    dropped = 0
    for raw in envelope.data:
        try:
            entry = ProviderEntry.model_validate(raw)
        except ValidationError:
            dropped += 1
            continue
        if not entry.title.strip() or not entry.url.strip():
            dropped += 1
            continue
        entries.append(entry)

    if dropped:
        logger.warning(f"Dropped {dropped} provider entries without title/url")
    return entries


def parse_publish_time(value: Optional[str | int | float]) -> Optional[datetime]:
    """Parse the provider's publish_time into a naive UTC datetime.

    Accepts ISO-8601 strings ("2024-01-01 08:00:00", with or without offset)
    and epoch seconds or milliseconds. Returns None when unparseable so the
    caller can fall back to the fetch time.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            value = int(text)
        else:
            try:
                dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            if dt.tzinfo is not None:
                dt = dt.astimezone(UTC).replace(tzinfo=None)
            return dt

    try:
        seconds = float(value)
        if seconds > 1e12:  # milliseconds
            seconds /= 1000
        return datetime.fromtimestamp(seconds, UTC).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        return None
