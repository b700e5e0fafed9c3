"""
Shared fixtures: a fake OpenFront upstream and sample payloads.

The fake stands in for the fetch capability only; everything above it
(client, validation, error mapping) runs for real.
"""

import copy
import datetime as dt

import pytest

from clanboard import logging_setup, metrics
from clanboard.openfront import FetchResult, OpenFrontClient

BASE_URL = "http://upstream.test/public"


class FakeUpstream:
    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, dict[str, str]]] = []

    async def __call__(self, url, params=None):
        path = url[len(BASE_URL):] if url.startswith(BASE_URL) else url
        self.calls.append((path, dict(params) if params else {}))
        handler = self.routes.get(path)
        if handler is None:
            return FetchResult(status=404, text="not found")
        if isinstance(handler, BaseException):
            raise handler
        if callable(handler):
            return handler(params)
        if isinstance(handler, FetchResult):
            return handler
        return FetchResult(status=200, payload=copy.deepcopy(handler))

    def paths(self) -> list[str]:
        return [path for path, _ in self.calls]


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(upstream):
    return OpenFrontClient(upstream, base_url=BASE_URL)


@pytest.fixture(autouse=True)
def _reset_counters():
    metrics.reset()
    logging_setup.clear_failures()
    yield


def iso_days_ago(days: float) -> str:
    value = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=days)
    return value.strftime("%Y-%m-%dT%H:%M:%S.000Z")


LEADERBOARD = {
    "start": "2025-01-01T00:00:00.000Z",
    "end": "2025-02-01T00:00:00.000Z",
    "clans": [
        {
            "clanTag": "abc",
            "games": 40,
            "wins": 30,
            "losses": 10,
            "playerSessions": 120,
            "weightedWins": 21.5,
            "weightedLosses": 6.25,
            "weightedWLRatio": 3.44,
        },
        {
            "clanTag": "XYZ",
            "games": 10,
            "wins": 4,
            "losses": 7,
            "playerSessions": 30,
            "weightedWins": 2,
            "weightedLosses": 5,
            "weightedWLRatio": 0.4,
        },
    ],
}

CLAN_STATS = {
    "clan": {
        "clanTag": "ABC",
        "games": 40,
        "wins": 30,
        "losses": 10,
        "weightedWins": 21.5,
        "weightedLosses": 6.25,
        "weightedWLRatio": 3.44,
        "teamTypeWL": {
            "Team": {"wl": [20, 5], "weightedWL": [14.5, 3.0]},
            "Duos": {"wl": [10, 5], "weightedWL": [7, 3.25]},
        },
        "teamCountWL": {
            "2": {"wl": [12, 2], "weightedWL": [9, 1]},
        },
        "rankHistory": [3, 2, 1],
    }
}

PLAYER_PROFILE = {
    "createdAt": "2024-06-01T10:00:00.000Z",
    "user": {
        "id": "1234",
        "username": "gunner",
        "global_name": "Gunner Prime",
        "avatar": None,
        "locale": "en-US",
    },
    "games": [
        {
            "gameId": "g-1",
            "start": "2025-01-05T10:00:00.000Z",
            "mode": "Free For All",
            "type": "Public",
            "map": "World",
            "difficulty": "Medium",
        }
    ],
    "stats": {
        "Public": {
            "Free For All": {
                "Medium": {"wins": "3", "losses": "1", "total": "4"},
            },
        },
    },
}


@pytest.fixture
def leaderboard_payload():
    return copy.deepcopy(LEADERBOARD)


@pytest.fixture
def clan_stats_payload():
    return copy.deepcopy(CLAN_STATS)


@pytest.fixture
def player_profile_payload():
    return copy.deepcopy(PLAYER_PROFILE)
