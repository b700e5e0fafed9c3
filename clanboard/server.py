"""
Boundary HTTP API: GET endpoints mirroring the OpenFront public API.

Every payload is validated before it leaves; failures collapse to a generic
"failed to load" message (see api_response.with_api_error).
"""

import logging
import time
from collections.abc import AsyncIterator

from aiohttp import web

from . import health, metrics, schemas, sessions
from .api_response import create_get_handler, parse_or_raise, range_or_raise
from .openfront import Fetcher, OpenFrontClient, aiohttp_fetcher, open_session

log = logging.getLogger(__name__)

CLIENT_KEY = web.AppKey("openfront_client", OpenFrontClient)


def _client(request: web.Request) -> OpenFrontClient:
    return request.app[CLIENT_KEY]


@web.middleware
async def latency_middleware(request: web.Request, handler):
    t0 = time.perf_counter()
    try:
        return await handler(request)
    finally:
        metrics.record_request_latency_ms((time.perf_counter() - t0) * 1000.0)


async def _clan_leaderboard(request: web.Request):
    board = await _client(request).clan_leaderboard()
    return schemas.to_json("clan_leaderboard", board)


async def _clan_stats(request: web.Request):
    params = parse_or_raise(schemas.ClanRouteParams, request.match_info)
    stats = await _client(request).clan_stats(params.clanTag, list(request.query.items()))
    return schemas.to_json("clan_stats", stats)


async def _clan_sessions(request: web.Request):
    params = parse_or_raise(schemas.ClanRouteParams, request.match_info)
    date_range = range_or_raise(request.query)
    rows = await _client(request).clan_sessions(params.clanTag, date_range)
    rows = sessions.filter_sessions_in_range(rows, date_range)
    return schemas.to_json("clan_sessions", rows)


async def _player_profile(request: web.Request):
    params = parse_or_raise(schemas.PlayerRouteParams, request.match_info)
    profile = await _client(request).player_profile(params.playerId)
    return schemas.to_json("player_profile", profile)


async def _player_sessions(request: web.Request):
    params = parse_or_raise(schemas.PlayerRouteParams, request.match_info)
    rows = await _client(request).player_sessions(params.playerId)
    return schemas.to_json("player_sessions", rows)


async def _player_lookup(request: web.Request):
    params = parse_or_raise(schemas.PlayerRouteParams, request.match_info)
    payload = await _client(request).player_lookup(params.playerId)
    return schemas.lookup_summary(params.playerId, payload)


async def _healthz(request: web.Request) -> web.Response:
    del request
    return web.json_response(health.health_snapshot(), headers={"Cache-Control": "no-store"})


def _routes() -> list[web.RouteDef]:
    return [
        # Registration order matters: "leaderboard" must win over {clanTag}.
        web.get(
            "/api/clans/leaderboard",
            create_get_handler("Failed to load clan leaderboard.", _clan_leaderboard),
        ),
        web.get(
            "/api/clans/{clanTag}/sessions",
            create_get_handler("Failed to load clan sessions.", _clan_sessions, params=schemas.ClanRouteParams),
        ),
        web.get(
            "/api/clans/{clanTag}",
            create_get_handler("Failed to load clan stats.", _clan_stats, params=schemas.ClanRouteParams),
        ),
        web.get(
            "/api/players/{playerId}/sessions",
            create_get_handler("Failed to load player sessions.", _player_sessions, params=schemas.PlayerRouteParams),
        ),
        web.get(
            "/api/players/{playerId}/lookup",
            create_get_handler("Failed to lookup player.", _player_lookup, params=schemas.PlayerRouteParams),
        ),
        web.get(
            "/api/players/{playerId}",
            create_get_handler("Failed to load player profile.", _player_profile, params=schemas.PlayerRouteParams),
        ),
        web.get("/healthz", _healthz),
    ]


async def _upstream_session_ctx(app: web.Application) -> AsyncIterator[None]:
    async with open_session() as session:
        app[CLIENT_KEY] = OpenFrontClient(aiohttp_fetcher(session))
        log.info("OpenFront client ready: base=%s", app[CLIENT_KEY].base_url)
        yield


def create_app(fetcher: Fetcher | None = None, *, base_url: str | None = None) -> web.Application:
    app = web.Application(middlewares=[latency_middleware])
    if fetcher is not None:
        app[CLIENT_KEY] = OpenFrontClient(fetcher, base_url=base_url)
    else:
        app.cleanup_ctx.append(_upstream_session_ctx)
    app.add_routes(_routes())
    return app
