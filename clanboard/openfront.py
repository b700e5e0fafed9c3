from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import aiohttp

from . import config, metrics, schemas
from .query_range import DateRange

log = logging.getLogger(__name__)

Query = Mapping[str, str] | list[tuple[str, str]] | None


@dataclass(frozen=True)
class FetchResult:
    status: int
    payload: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


# The only way out to the network: (url, query) -> FetchResult.
Fetcher = Callable[[str, Query], Awaitable[FetchResult]]


class UpstreamError(RuntimeError):
    def __init__(self, status: int, url: str, detail: str = ""):
        super().__init__(f"OpenFront API error: {status} for {url}" + (f": {detail}" if detail else ""))
        self.status = status
        self.url = url


def aiohttp_fetcher(session: aiohttp.ClientSession) -> Fetcher:
    async def _fetch(url: str, params: Query = None) -> FetchResult:
        async with session.get(url, params=params, headers={"Accept": "application/json"}) as response:
            if not 200 <= response.status < 300:
                text = await response.text()
                return FetchResult(status=response.status, text=text[:200])
            payload = await response.json(content_type=None)
            return FetchResult(status=response.status, payload=payload)

    return _fetch


@contextlib.asynccontextmanager
async def open_session(timeout_seconds: int | None = None) -> AsyncIterator[aiohttp.ClientSession]:
    timeout = aiohttp.ClientTimeout(total=timeout_seconds or config.OPENFRONT_API_TIMEOUT_SECONDS)
    connector = aiohttp.TCPConnector(limit=10)
    async with aiohttp.ClientSession(timeout=timeout, connector=connector) as session:
        yield session


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class OpenFrontClient:
    """Read-only OpenFront API client returning validated payloads."""

    def __init__(self, fetcher: Fetcher, base_url: str | None = None):
        self.fetcher = fetcher
        self.base_url = (base_url or config.OPENFRONT_API_BASE).rstrip("/")

    async def get_json(self, path: str, params: Query = None) -> Any:
        url = f"{self.base_url}{path}"
        t0 = time.perf_counter()
        try:
            result = await self.fetcher(url, params)
        finally:
            metrics.record_upstream_latency_ms((time.perf_counter() - t0) * 1000.0)
        if not result.ok:
            raise UpstreamError(result.status, url, result.text)
        return result.payload

    async def clan_leaderboard(self) -> schemas.ClanLeaderboardResponse:
        payload = await self.get_json("/clans/leaderboard")
        return schemas.validate("clan_leaderboard", payload)

    async def clan_stats(self, clan_tag: str, query: Query = None) -> schemas.ClanStatsResponse:
        payload = await self.get_json(f"/clan/{_segment(clan_tag)}", query or None)
        return schemas.validate("clan_stats", payload)

    async def clan_sessions(self, clan_tag: str, date_range: DateRange | None = None) -> list[schemas.ClanSession]:
        params = date_range.to_query() if date_range is not None else None
        payload = await self.get_json(f"/clan/{_segment(clan_tag)}/sessions", params)
        return schemas.validate("clan_sessions", payload)

    async def player_profile(self, player_id: str) -> schemas.PlayerProfile:
        payload = await self.get_json(f"/player/{_segment(player_id)}")
        return schemas.validate("player_profile", payload)

    async def player_lookup(self, player_id: str) -> schemas.PlayerLookupPayload:
        payload = await self.get_json(f"/player/{_segment(player_id)}")
        return schemas.validate("player_lookup", payload)

    async def player_sessions(self, player_id: str) -> list[schemas.PlayerSession]:
        payload = await self.get_json(f"/player/{_segment(player_id)}/sessions")
        return schemas.validate("player_sessions", payload)
