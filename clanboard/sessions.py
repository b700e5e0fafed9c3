from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from . import utils
from .query_range import DateRange

log = logging.getLogger(__name__)

# Upstream session payloads drift between key names; first present key wins.
SESSION_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "start": ("gameStart", "start", "startedAt", "startTime", "createdAt"),
    "game_code": ("gameId", "game", "id", "sessionId", "matchId"),
    "num_teams": ("numTeams", "teams"),
    "clan_players": ("clanPlayerCount", "clanPlayers"),
    "total_players": ("totalPlayerCount", "playerCount", "players"),
    "score": ("score",),
    "result": ("result", "outcome", "status"),
}

_WIN_WORDS = {"win", "won"}
_LOSS_WORDS = {"loss", "lost"}


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Mapping):
        return record
    dump = getattr(record, "model_dump", None)
    if callable(dump):
        return dump()
    return {}


def first_present(record: Any, keys: Iterable[str]) -> Any:
    data = _as_mapping(record)
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def extract(record: Any, field: str) -> Any:
    return first_present(record, SESSION_FIELD_ALIASES.get(field, ()))


def session_start(record: Any) -> Any:
    return extract(record, "start")

def session_game_code(record: Any) -> Any:
    return extract(record, "game_code")

def session_num_teams(record: Any) -> Any:
    return extract(record, "num_teams")

def session_clan_players(record: Any) -> Any:
    return extract(record, "clan_players")

def session_total_players(record: Any) -> Any:
    return extract(record, "total_players")

def session_score(record: Any) -> Any:
    return extract(record, "score")


def session_has_won(record: Any) -> bool | None:
    """True/False when the outcome is known, None when it is not."""
    data = _as_mapping(record)
    flag = data.get("hasWon")
    if isinstance(flag, bool):
        return flag
    result = extract(data, "result")
    if not result:
        return None
    normalized = str(result).strip().lower()
    if normalized in _WIN_WORDS:
        return True
    if normalized in _LOSS_WORDS:
        return False
    return None


def session_key(record: Any) -> str:
    data = _as_mapping(record)
    for candidate in (session_game_code(data), session_start(data)):
        if candidate is not None and candidate != "":
            return str(candidate)
    # Structurally identical anonymous sessions collapse into one key.
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def dedupe_sessions(records: Iterable[Any]) -> list[Any]:
    seen: set[str] = set()
    out: list[Any] = []
    for record in records:
        key = session_key(record)
        if key in seen:
            continue
        seen.add(key)
        out.append(record)
    return out


def filter_sessions_in_range(records: Iterable[Any], date_range: DateRange) -> list[Any]:
    out: list[Any] = []
    dropped = 0
    for record in records:
        started = utils.parse_iso_datetime(session_start(record))
        if started is None or date_range.contains(started):
            out.append(record)
        else:
            dropped += 1
    if dropped:
        log.debug("Dropped %s sessions outside %s", dropped, date_range.to_query())
    return out


def summarize_sessions(records: Iterable[Any]) -> dict[str, int]:
    wins = losses = unknown = 0
    for record in records:
        outcome = session_has_won(record)
        if outcome is True:
            wins += 1
        elif outcome is False:
            losses += 1
        else:
            unknown += 1
    return {"sessions": wins + losses + unknown, "wins": wins, "losses": losses, "unknown": unknown}
