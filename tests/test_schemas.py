import pytest

from clanboard import schemas
from clanboard.schemas import SchemaValidationError


def test_clan_stats_revalidation_is_idempotent(clan_stats_payload):
    first = schemas.to_json("clan_stats", schemas.validate("clan_stats", clan_stats_payload))
    second = schemas.to_json("clan_stats", schemas.validate("clan_stats", first))
    assert first == second
    assert first["clan"]["teamTypeWL"]["Team"] == {"wl": [20, 5], "weightedWL": [14.5, 3.0]}


def test_unknown_fields_preserved(clan_stats_payload):
    dumped = schemas.to_json("clan_stats", schemas.validate("clan_stats", clan_stats_payload))
    assert dumped["clan"]["rankHistory"] == [3, 2, 1]


def test_open_breakdown_keys(clan_stats_payload):
    clan_stats_payload["clan"]["teamTypeWL"]["Quads (new)"] = {"wl": [1, 1], "weightedWL": [0.5, 0.5]}
    stats = schemas.validate("clan_stats", clan_stats_payload).clan
    assert set(stats.teamTypeWL) == {"Team", "Duos", "Quads (new)"}
    assert stats.teamCountWL["2"].wl == (12, 2)


def test_missing_breakdowns_default_to_empty(clan_stats_payload):
    del clan_stats_payload["clan"]["teamTypeWL"]
    stats = schemas.validate("clan_stats", clan_stats_payload).clan
    assert stats.teamTypeWL == {}


def test_clan_tags_uppercased(leaderboard_payload):
    board = schemas.validate("clan_leaderboard", leaderboard_payload)
    assert [entry.clanTag for entry in board.clans] == ["ABC", "XYZ"]
    assert board.find("abc").wins == 30
    assert board.rank_of("xyz") == 2
    assert board.find("nope") is None


def test_inconsistent_games_count_tolerated(leaderboard_payload):
    # XYZ reports games=10 with wins+losses=11.
    board = schemas.validate("clan_leaderboard", leaderboard_payload)
    entry = board.find("XYZ")
    assert entry.games == 10 and entry.wins + entry.losses == 11


def test_first_failing_field_is_named(leaderboard_payload):
    leaderboard_payload["clans"][1]["wins"] = "four"
    with pytest.raises(SchemaValidationError) as exc_info:
        schemas.validate("clan_leaderboard", leaderboard_payload)
    err = exc_info.value
    assert err.shape == "clan_leaderboard"
    assert err.field.startswith("clans.1.wins")
    assert err.message


def test_player_profile_optional_subtrees(player_profile_payload):
    del player_profile_payload["user"]
    del player_profile_payload["games"]
    del player_profile_payload["stats"]
    profile = schemas.validate("player_profile", player_profile_payload)
    assert profile.user is None
    assert profile.games == []
    assert profile.stats == {}
    dumped = schemas.to_json("player_profile", profile)
    assert dumped == {"createdAt": "2024-06-01T10:00:00.000Z", "games": [], "stats": {}}


def test_player_stats_leaves_stay_strings(player_profile_payload):
    profile = schemas.validate("player_profile", player_profile_payload)
    leaf = profile.stats["Public"]["Free For All"]["Medium"]
    assert (leaf.wins, leaf.losses, leaf.total) == ("3", "1", "4")


def test_player_stats_numeric_leaf_rejected(player_profile_payload):
    player_profile_payload["stats"]["Public"]["Free For All"]["Medium"]["wins"] = 3
    with pytest.raises(SchemaValidationError) as exc_info:
        schemas.validate("player_profile", player_profile_payload)
    assert exc_info.value.field == "stats.Public.Free For All.Medium.wins"


def test_discord_identity_nullable_fields_and_extras(player_profile_payload):
    player_profile_payload["user"]["global_name"] = None
    profile = schemas.validate("player_profile", player_profile_payload)
    dumped = schemas.to_json("player_profile", profile)
    assert dumped["user"]["global_name"] is None
    assert dumped["user"]["locale"] == "en-US"


def test_player_lookup_summary(player_profile_payload):
    lookup = schemas.validate("player_lookup", player_profile_payload)
    assert schemas.lookup_summary("1234", lookup) == {
        "playerId": "1234",
        "username": "gunner",
        "globalName": "Gunner Prime",
    }
    empty = schemas.validate("player_lookup", {"createdAt": "x"})
    assert schemas.lookup_summary("9", empty) == {"playerId": "9", "username": None, "globalName": None}


def test_sessions_shape_is_a_list():
    with pytest.raises(SchemaValidationError):
        schemas.validate("clan_sessions", {"sessions": []})
    rows = schemas.validate("player_sessions", [{"gameId": "g", "clanTag": None, "extra": 1}])
    assert schemas.to_json("player_sessions", rows) == [{"gameId": "g", "clanTag": None, "extra": 1}]


def test_clan_session_fields_tolerate_mixed_types():
    rows = [
        {"gameId": 42, "gameStart": 1735689600000, "hasWon": "yes"},
        {"game": "g2", "players": [{"name": "a"}], "teams": "2", "score": None},
    ]
    sessions = schemas.validate("clan_sessions", rows)
    assert sessions[0].gameStart == 1735689600000
    assert sessions[1].players == [{"name": "a"}]
    assert schemas.to_json("clan_sessions", sessions) == rows


def test_route_params():
    assert schemas.ClanRouteParams.model_validate({"clanTag": "  abc "}).clanTag == "ABC"
    assert schemas.PlayerRouteParams.model_validate({"playerId": " AbC "}).playerId == "AbC"
    assert schemas.ClanRouteParams.model_validate({"clanTag": "abc"}).target == "ABC"


def test_unknown_shape():
    with pytest.raises(KeyError):
        schemas.validate("nope", {})
