"""Fetch executor for the hot-list provider.

One bounded GET per platform, no retries. Every failure is classified and
returned as a ``FetchFailure`` value instead of being raised, so the fan-out
coordinator can aggregate outcomes without exception handling per task.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import httpx

from app.config import settings
from app.services.platform_mapping import (
    MalformedPayloadError,
    ProviderEntry,
    parse_provider_payload,
)

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Why a platform produced no stored batch in a refresh cycle."""

    NO_MAPPING = "no mapping"
    HTTP_STATUS = "http status"
    TIMEOUT = "timeout"
    MALFORMED = "malformed data"
    TRANSPORT = "transport"
    INSERT_FAILED = "insert failed"


@dataclass(frozen=True, slots=True)
class FetchOk:
    items: list[ProviderEntry]


@dataclass(frozen=True, slots=True)
class FetchEmpty:
    """Provider call succeeded but returned nothing to keep. Not a failure."""


@dataclass(frozen=True, slots=True)
class FetchFailure:
    kind: FailureKind
    detail: Optional[str] = None
    status_code: Optional[int] = field(default=None)

    @property
    def reason(self) -> str:
        """Short label used in the refresh report, e.g. ``HTTP 503``."""
        if self.kind == FailureKind.HTTP_STATUS:
            return f"HTTP {self.status_code}"
        if self.kind == FailureKind.TRANSPORT:
            return self.detail or "transport error"
        if self.kind == FailureKind.INSERT_FAILED:
            return f"insert failed: {self.detail}" if self.detail else "insert failed"
        return self.kind.value


FetchOutcome = Union[FetchOk, FetchEmpty, FetchFailure]


class HotNewsClient:
    """Async client for the provider endpoint.

    Use as an async context manager so one connection pool is shared by all
    platforms of a refresh cycle. ``transport`` lets tests plug in
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.hot_news_api_url
        self.user_agent = user_agent or settings.hot_news_user_agent
        self.timeout = timeout if timeout is not None else settings.hot_news_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> HotNewsClient:
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, api_param: str, limit: int) -> FetchOutcome:
        """Fetch one platform's list and truncate it to ``limit`` items.

        Args:
            api_param: Provider query value (already mapped)
            limit: Maximum number of items to keep

        Returns:
            FetchOk with 1..limit items, FetchEmpty, or FetchFailure
        """
        if self._client is None:
            raise RuntimeError("HotNewsClient must be used as an async context manager")

        try:
            # httpx timeouts are per phase; wait_for bounds the whole call
            response = await asyncio.wait_for(
                self._client.get(self.base_url, params={"platform": api_param}),
                timeout=self.timeout,
            )
        except (TimeoutError, httpx.TimeoutException):
            return FetchFailure(FailureKind.TIMEOUT)
        except httpx.HTTPError as exc:
            return FetchFailure(FailureKind.TRANSPORT, detail=str(exc) or type(exc).__name__)

        if not response.is_success:
            return FetchFailure(FailureKind.HTTP_STATUS, status_code=response.status_code)

        try:
            payload = response.json()
            entries = parse_provider_payload(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, MalformedPayloadError) as exc:
            logger.warning(f"Malformed response for {api_param}: {exc}")
            return FetchFailure(FailureKind.MALFORMED, detail=str(exc))

        items = entries[: max(limit, 0)]
        if not items:
            return FetchEmpty()
        return FetchOk(items=items)
