"""
Pydantic shapes for OpenFront payloads and route parameters.

Upstream payloads keep unknown fields (extra="allow") so additions on the
OpenFront side flow through untouched. Dumps use exclude_unset, which means
a validated payload serializes back to the keys upstream actually sent, and
validating that dump again yields the same structure.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

Number = Union[StrictInt, StrictFloat]


class SchemaValidationError(ValueError):
    """A payload did not match its declared shape; names the first bad field."""

    def __init__(self, shape: str, field: str, message: str):
        super().__init__(f"{shape}: {field}: {message}")
        self.shape = shape
        self.field = field
        self.message = message


class UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="allow")


# --- clans -----------------------------------------------------------------

def _upper_tag(value: str) -> str:
    return value.strip().upper()


class ClanLeaderboardEntry(UpstreamModel):
    clanTag: StrictStr
    games: Number
    wins: Number
    losses: Number
    playerSessions: Number | None = None
    weightedWins: Number
    weightedLosses: Number
    weightedWLRatio: Number

    @field_validator("clanTag")
    @classmethod
    def normalize_clan_tag(cls, v: str) -> str:
        return _upper_tag(v)


class ClanLeaderboardResponse(UpstreamModel):
    start: StrictStr | None = None
    end: StrictStr | None = None
    clans: list[ClanLeaderboardEntry]

    def find(self, clan_tag: str) -> ClanLeaderboardEntry | None:
        tag = _upper_tag(clan_tag)
        for entry in self.clans:
            if entry.clanTag == tag:
                return entry
        return None

    def rank_of(self, clan_tag: str) -> int | None:
        tag = _upper_tag(clan_tag)
        for idx, entry in enumerate(self.clans, start=1):
            if entry.clanTag == tag:
                return idx
        return None


class WinLossBreakdown(UpstreamModel):
    wl: tuple[Number, Number]
    weightedWL: tuple[Number, Number]


class ClanStats(UpstreamModel):
    clanTag: StrictStr
    games: Number
    wins: Number
    losses: Number
    weightedWins: Number | None = None
    weightedLosses: Number | None = None
    weightedWLRatio: Number | None = None
    # Category keys are upstream-defined; never narrow these to a fixed set.
    teamTypeWL: dict[str, WinLossBreakdown] = Field(default_factory=dict)
    teamCountWL: dict[str, WinLossBreakdown] = Field(default_factory=dict)

    @field_validator("clanTag")
    @classmethod
    def normalize_clan_tag(cls, v: str) -> str:
        return _upper_tag(v)


class ClanStatsResponse(UpstreamModel):
    clan: ClanStats


class ClanSession(UpstreamModel):
    # Session records drift between upstream releases: the same field shows up
    # under several names and with mixed types. Accessors in sessions.py deal
    # with whatever arrives, so nothing here is type-checked.
    gameId: Any = None
    game: Any = None
    id: Any = None
    sessionId: Any = None
    matchId: Any = None
    gameStart: Any = None
    start: Any = None
    startedAt: Any = None
    startTime: Any = None
    createdAt: Any = None
    hasWon: Any = None
    result: Any = None
    outcome: Any = None
    status: Any = None
    numTeams: Any = None
    teams: Any = None
    clanPlayerCount: Any = None
    clanPlayers: Any = None
    totalPlayerCount: Any = None
    playerCount: Any = None
    players: Any = None
    score: Any = None


# --- players ---------------------------------------------------------------

class PlayerStatsLeaf(UpstreamModel):
    # Counts arrive as numeric strings and stay strings.
    wins: StrictStr
    losses: StrictStr
    total: StrictStr
    stats: Any = None


PlayerStatsTree = dict[str, dict[str, dict[str, PlayerStatsLeaf]]]


class PlayerGame(UpstreamModel):
    gameId: StrictStr
    start: StrictStr
    mode: StrictStr
    type: StrictStr
    map: StrictStr
    difficulty: StrictStr
    clientId: StrictStr | None = None


class PlayerDiscord(UpstreamModel):
    id: StrictStr
    avatar: StrictStr | None = None
    username: StrictStr
    global_name: StrictStr | None = None
    discriminator: StrictStr | None = None


class PlayerProfile(UpstreamModel):
    createdAt: StrictStr
    user: PlayerDiscord | None = None
    games: list[PlayerGame]
    stats: PlayerStatsTree

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {"games": [], "stats": {}, **data}
        return data


class PlayerLookupPayload(UpstreamModel):
    user: PlayerDiscord | None = None


class PlayerSession(UpstreamModel):
    gameId: StrictStr | None = None
    gameStart: StrictStr | None = None
    gameEnd: StrictStr | None = None
    gameType: StrictStr | None = None
    gameMode: StrictStr | None = None
    clientId: StrictStr | None = None
    username: StrictStr | None = None
    clanTag: StrictStr | None = None
    hasWon: StrictBool | None = None


# --- route parameters ------------------------------------------------------

class RouteParams(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def target(self) -> str:
        """The normalized id the route fetches, used to tag log lines."""
        raise NotImplementedError


class ClanRouteParams(RouteParams):
    clanTag: str

    @field_validator("clanTag", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> str:
        tag = str(v if v is not None else "").strip()
        if not tag:
            raise PydanticCustomError("missing_clan_tag", "Missing clan tag.")
        return tag.upper()

    @property
    def target(self) -> str:
        return self.clanTag


class PlayerRouteParams(RouteParams):
    playerId: str

    @field_validator("playerId", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> str:
        player_id = str(v if v is not None else "").strip()
        if not player_id:
            raise PydanticCustomError("missing_player_id", "Missing player id.")
        return player_id

    @property
    def target(self) -> str:
        return self.playerId


# --- registry --------------------------------------------------------------

SHAPES: dict[str, TypeAdapter] = {
    "clan_leaderboard": TypeAdapter(ClanLeaderboardResponse),
    "clan_stats": TypeAdapter(ClanStatsResponse),
    "clan_sessions": TypeAdapter(list[ClanSession]),
    "player_profile": TypeAdapter(PlayerProfile),
    "player_lookup": TypeAdapter(PlayerLookupPayload),
    "player_sessions": TypeAdapter(list[PlayerSession]),
}


def first_error(exc: ValidationError) -> tuple[str, str]:
    errors = exc.errors()
    if not errors:
        return "", "Invalid payload."
    err = errors[0]
    field = ".".join(str(part) for part in err.get("loc", ())) or "(root)"
    return field, str(err.get("msg") or "Invalid value.")


def _adapter(shape: str) -> TypeAdapter:
    try:
        return SHAPES[shape]
    except KeyError:
        raise KeyError(f"Unknown payload shape: {shape}") from None


def validate(shape: str, payload: Any) -> Any:
    adapter = _adapter(shape)
    try:
        return adapter.validate_python(payload)
    except ValidationError as exc:
        field, message = first_error(exc)
        raise SchemaValidationError(shape, field, message) from exc


def to_json(shape: str, value: Any) -> Any:
    return _adapter(shape).dump_python(value, mode="json", exclude_unset=True)


def lookup_summary(player_id: str, payload: PlayerLookupPayload | PlayerProfile) -> dict[str, str | None]:
    user = payload.user
    return {
        "playerId": player_id,
        "username": user.username if user else None,
        "globalName": user.global_name if user else None,
    }
