from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from record_keeper.context import ServerContext
from record_keeper.errors import FeedFormatError
from record_keeper.store import Store

_logger = logging.getLogger("record_keeper.forex")

DEFAULT_FEED_URLS = (
    "https://api.exchangerate-api.com/v4/latest/USD",
    "https://api.exchangerate-api.com/v4/latest/EUR",
)
_DEFAULT_TIMEOUT_SECONDS = 5.0


def parse_rates(*, url: str, payload: Any) -> dict[str, float]:
    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        raise FeedFormatError(url=url, payload=payload)
    parsed: dict[str, float] = {}
    for symbol, price in rates.items():
        # bool is an int subclass but never a price.
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            continue
        try:
            value = float(price)
        except OverflowError:
            continue
        # A non-finite price cannot be written back to the snapshot.
        if not math.isfinite(value):
            continue
        parsed[str(symbol)] = value
    return parsed


def merge_rates(store: Store, rates: Mapping[str, float]) -> int:
    """Upsert every rate by symbol. Symbols absent from `rates` are left alone."""
    for symbol, price in rates.items():
        store.forex_pairs.set_price(symbol, price)
    return len(rates)


class ForexFeedClient:
    def __init__(
        self,
        *,
        urls: tuple[str, ...] | list[str] = DEFAULT_FEED_URLS,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._urls = tuple(urls)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    @property
    def urls(self) -> tuple[str, ...]:
        return self._urls

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_rates(self, url: str) -> dict[str, float]:
        response = await self._client.get(url)
        response.raise_for_status()
        return parse_rates(url=url, payload=response.json())


@dataclass
class RefreshResult:
    merged: int = 0
    failed_urls: list[str] = field(default_factory=list)
    timed_out: bool = False


async def _merge_feeds(
    context: ServerContext,
    client: ForexFeedClient,
    result: RefreshResult,
    log: logging.Logger,
) -> None:
    for url in client.urls:
        try:
            rates = await client.fetch_rates(url)
        except (httpx.HTTPError, ValueError, FeedFormatError) as exc:
            result.failed_urls.append(url)
            log.warning("forex_feed_failed", extra={"url": url, "error": repr(exc)})
            continue
        # Later feeds overwrite earlier ones for the same symbol.
        with context.mutate() as store:
            result.merged += merge_rates(store, rates)
        log.info("forex_feed_merged", extra={"url": url, "count": len(rates)})


async def refresh_rates(
    context: ServerContext,
    client: ForexFeedClient,
    *,
    deadline_seconds: float,
    logger: Optional[logging.Logger] = None,
) -> RefreshResult:
    """Best-effort pass over every feed, bounded by `deadline_seconds`.

    Never raises for feed or network failures; they are logged and the store
    keeps its current prices. Feeds merged before the deadline stay merged.
    """
    log = logger or _logger
    result = RefreshResult()
    try:
        await asyncio.wait_for(_merge_feeds(context, client, result, log), timeout=deadline_seconds)
    except asyncio.TimeoutError:
        result.timed_out = True
        log.warning("forex_refresh_deadline_exceeded", extra={"deadline_seconds": deadline_seconds})
    return result
