from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any

from . import formatting, logging_setup, schemas, sessions, utils
from .openfront import OpenFrontClient
from .query_range import DateRange, normalize_range

log = logging.getLogger(__name__)


@dataclass
class ClanPage:
    clan_tag: str
    date_range: DateRange
    leaderboard: schemas.ClanLeaderboardResponse | None = None
    stats: schemas.ClanStats | None = None
    sessions: list[schemas.ClanSession] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    loaded_at: str = ""

    @property
    def leaderboard_entry(self) -> schemas.ClanLeaderboardEntry | None:
        return self.leaderboard.find(self.clan_tag) if self.leaderboard else None

    @property
    def rank(self) -> int | None:
        return self.leaderboard.rank_of(self.clan_tag) if self.leaderboard else None


@dataclass
class PlayerPage:
    player_id: str
    profile: schemas.PlayerProfile | None = None
    sessions: list[schemas.PlayerSession] = field(default_factory=list)
    leaderboard: schemas.ClanLeaderboardResponse | None = None
    errors: dict[str, str] = field(default_factory=dict)
    loaded_at: str = ""

    @property
    def display_name(self) -> str:
        user = self.profile.user if self.profile else None
        if user is not None:
            return (user.global_name or "").strip() or user.username
        return self.player_id


def _settle(results: dict[str, Any], errors: dict[str, str], slot: str, message: str, log_label: str) -> Any:
    value = results[slot]
    if isinstance(value, BaseException):
        log.error("%s: %s: %s", log_label, type(value).__name__, value, extra=logging_setup.failure_extra(log_label))
        errors[slot] = message
        return None
    return value


async def _gather(**coros: Any) -> dict[str, Any]:
    # Independent requests: one failing never cancels the others.
    names = list(coros)
    values = await asyncio.gather(*coros.values(), return_exceptions=True)
    return dict(zip(names, values))


async def load_clan_page(
    client: OpenFrontClient,
    clan_tag: str,
    *,
    start: str | None = None,
    end: str | None = None,
    now: dt.datetime | None = None,
) -> ClanPage:
    """Raises RangeError for a bad range; upstream failures land in ``errors``."""
    tag = clan_tag.strip().upper()
    date_range = normalize_range(start, end, now=now)
    page = ClanPage(clan_tag=tag, date_range=date_range)

    results = await _gather(
        leaderboard=client.clan_leaderboard(),
        stats=client.clan_stats(tag),
        sessions=client.clan_sessions(tag, date_range),
    )
    page.leaderboard = _settle(
        results, page.errors, "leaderboard",
        "Unable to load leaderboard details.", "Failed to load clan leaderboard",
    )
    stats_response = _settle(
        results, page.errors, "stats",
        "Unable to load clan stats.", f"Failed to load clan stats for {tag}",
    )
    page.stats = stats_response.clan if stats_response is not None else None
    rows = _settle(
        results, page.errors, "sessions",
        "Unable to load clan sessions.", f"Failed to load clan sessions for {tag}",
    )
    if rows:
        page.sessions = sessions.dedupe_sessions(sessions.filter_sessions_in_range(rows, date_range))
    page.loaded_at = utils.utc_now_z()
    return page


async def load_player_page(client: OpenFrontClient, player_id: str) -> PlayerPage:
    pid = player_id.strip()
    page = PlayerPage(player_id=pid)

    results = await _gather(
        profile=client.player_profile(pid),
        sessions=client.player_sessions(pid),
        leaderboard=client.clan_leaderboard(),
    )
    page.profile = _settle(
        results, page.errors, "profile",
        "Unable to load player profile.", f"Failed to load player profile for {pid}",
    )
    rows = _settle(
        results, page.errors, "sessions",
        "Unable to load player sessions.", f"Failed to load player sessions for {pid}",
    )
    page.sessions = sessions.dedupe_sessions(rows or [])
    # Leaderboard only adds clan accents on this page; its failure is not shown.
    board = results["leaderboard"]
    if isinstance(board, BaseException):
        log.warning("Failed to load clan leaderboard for player accents: %s", board)
    else:
        page.leaderboard = board
    page.loaded_at = utils.utc_now_z()
    return page


def clan_summary(page: ClanPage) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    entry = page.leaderboard_entry
    if entry is not None:
        rows.append(("Rank", formatting.display_number(page.rank)))
        rows.append(("Leaderboard win rate", formatting.display_percent(formatting.leaderboard_win_rate_percent(entry))))
        rows.append(("Weighted W/L", formatting.display_ratio(entry.weightedWLRatio)))
    stats = page.stats
    if stats is not None:
        rows.append(("Games", formatting.display_number(stats.games)))
        rows.append(("Wins", formatting.display_number(stats.wins)))
        rows.append(("Losses", formatting.display_number(stats.losses)))
        rows.append(("Win rate", formatting.display_percent(formatting.win_rate_percent(stats.wins, stats.losses))))
        for team_type, breakdown in sorted(stats.teamTypeWL.items()):
            wins, losses = breakdown.wl
            rows.append((f"Win rate ({team_type})", formatting.display_percent(formatting.win_rate_percent(wins, losses))))
    if page.sessions:
        counts = sessions.summarize_sessions(page.sessions)
        decided = counts["wins"] + counts["losses"]
        rows.append(("Sessions", formatting.display_number(counts["sessions"])))
        rows.append(("Session win rate", formatting.display_percent(
            None if decided == 0 else formatting.win_rate_percent(counts["wins"], counts["losses"])
        )))
        domain = formatting.compute_domain([sessions.session_score(s) for s in page.sessions])
        if domain is not None:
            rows.append(("Score axis", f"{formatting.display_number(domain[0])} .. {formatting.display_number(domain[1])}"))
    return rows


def player_summary(page: PlayerPage) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    profile = page.profile
    if profile is not None:
        rows.append(("Name", page.display_name))
        rows.append(("Created", profile.createdAt))
        rows.append(("Games", formatting.display_number(len(profile.games))))
        for mode, maps in sorted(profile.stats.items()):
            wins = losses = 0
            for difficulties in maps.values():
                for leaf in difficulties.values():
                    wins += _int_or_zero(leaf.wins)
                    losses += _int_or_zero(leaf.losses)
            rows.append((f"Win rate ({mode})", formatting.display_percent(formatting.win_rate_percent(wins, losses))))
    if page.sessions:
        counts = sessions.summarize_sessions(page.sessions)
        rows.append(("Sessions", formatting.display_number(counts["sessions"])))
        rows.append(("Sessions won", formatting.display_number(counts["wins"])))
    return rows


def _int_or_zero(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
