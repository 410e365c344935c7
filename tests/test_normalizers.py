"""Tests for the per-game normalizers."""

from datetime import datetime, timezone

import pytest

from elo_insight.core.models import (
    ApexStats,
    CodStats,
    CS2Stats,
    Dota2Stats,
    LeagueStats,
    StatsUnavailable,
    ValorantStats,
)
from elo_insight.core.types import Game
from elo_insight.normalizers import (
    NORMALIZERS,
    combine_match_pools,
    extract_value,
    firewall,
    get_normalizer,
    normalize,
    ratio,
)


class TestSharedUtilities:
    def test_extract_value_shapes(self):
        assert extract_value({"value": 1520, "displayValue": "1,520"}) == 1520
        assert extract_value({"total": 7}) == 7
        assert extract_value("3.5") == 3.5
        assert extract_value("12") == 12
        assert extract_value("n/a") is None
        assert extract_value(True) is None
        assert extract_value(None) is None

    def test_ratio_falls_back_to_numerator(self):
        assert ratio(100, 50) == 2.0
        assert ratio(7, 0) == 7.0

    def test_get_normalizer_unknown_game(self):
        with pytest.raises(KeyError):
            get_normalizer("Minecraft")

    def test_every_game_registered(self):
        assert set(NORMALIZERS) == set(Game)


class TestEmptyPayloads:
    @pytest.mark.parametrize("game", list(Game))
    @pytest.mark.parametrize("raw", [None, {}, [], "", 0])
    def test_empty_payload_gives_sentinel(self, game, raw):
        result = normalize(game, raw)
        assert isinstance(result, StatsUnavailable)
        assert result.error == "no data"

    @pytest.mark.parametrize("game", list(Game))
    def test_error_payload_gives_sentinel(self, game):
        result = normalize(game, {"error": "player not found"})
        assert result == StatsUnavailable(error="player not found")


class TestFirewall:
    def test_exception_becomes_sentinel(self):
        @firewall(Game.CS2)
        def broken(raw):
            raise RuntimeError("unexpected shape")

        assert broken({"anything": 1}) == StatsUnavailable(error="malformed data")

    @pytest.mark.parametrize("game", list(Game))
    def test_hostile_payloads_never_raise(self, game):
        for raw in (
            {"segments": "nope", "matches": 5, "stats": [1, 2]},
            {"playerstats": {"stats": [{"name": 1}]}, "lifetime": "x"},
            {"data": {"segments": [None, 3]}, "profile": [], "heroes": {"a": 1}},
        ):
            result = normalize(game, raw)
            assert result is not None


class TestCS2:
    def test_flat_payload(self):
        result = normalize(
            Game.CS2,
            {
                "total_kills": 100,
                "total_deaths": 50,
                "total_shots_fired": 400,
                "total_shots_hit": 100,
                "total_kills_headshot": 25,
                "total_kills_ak47": 40,
                "total_kills_awp": 60,
                "total_kills_enemy_blinded": 9,
                "total_wins_map_de_dust2": 3,
                "total_rounds_map_de_dust2": 12,
            },
        )
        assert isinstance(result, CS2Stats)
        assert result.kd_ratio == 2.0
        assert result.accuracy == 25.0
        assert result.headshot_percentage == 25.0
        assert [w.name for w in result.weapons] == ["AWP", "AK-47"]
        assert result.maps[0].name == "DUST2"
        assert result.maps[0].win_rate == 25.0

    def test_zero_deaths_kd_equals_kills(self):
        result = normalize(Game.CS2, {"total_kills": 17, "total_deaths": 0})
        assert result.kd_ratio == 17.0

    def test_steam_playerstats_shape(self):
        raw = {
            "playerstats": {
                "steamID": "765",
                "stats": [
                    {"name": "total_kills", "value": 30},
                    {"name": "total_deaths", "value": 10},
                ],
            }
        }
        result = normalize(Game.CS2, raw)
        assert result.kills == 30
        assert result.kd_ratio == 3.0

    def test_partial_payload_defaults(self):
        result = normalize(Game.CS2, {"total_mvps": 4})
        assert result.mvps == 4
        assert result.kills == 0
        assert result.weapons == []
        assert result.maps == []


class TestApex:
    def test_tracker_profile(self):
        raw = {
            "data": {
                "platformInfo": {"platformSlug": "origin", "platformUserHandle": "apex_player"},
                "segments": [
                    {
                        "type": "overview",
                        "stats": {
                            "kills": {"value": 120},
                            "deaths": {"value": 60},
                            "matchesPlayed": {"value": 40},
                            "level": {"value": 250},
                            "weapon_r99_kills": {"value": 33},
                        },
                    },
                    {
                        "type": "legend",
                        "metadata": {"name": "Wraith", "imageUrl": "https://img/wraith.png"},
                        "stats": {"kills": {"value": 80}},
                    },
                ],
            }
        }
        result = normalize(Game.APEX, raw)
        assert isinstance(result, ApexStats)
        assert result.player_name == "apex_player"
        assert result.kd_ratio == 2.0
        assert result.kills_per_match == 3.0
        assert result.level == 250
        assert result.legends[0].name == "Wraith"
        assert result.legends[0].stats == {"kills": 80.0}
        assert result.weapons[0].name == "R-99"

    def test_no_segments_is_sentinel(self):
        assert isinstance(normalize(Game.APEX, {"data": {"other": 1}}), StatsUnavailable)

    def test_partial_defaults(self):
        result = normalize(Game.APEX, {"platformInfo": {"platformUserHandle": "x"}})
        assert result.kills == 0
        assert result.kills_per_match == 0.0
        assert result.legends == []


class TestDota2:
    def test_blocks_default_independently(self):
        result = normalize(
            Game.DOTA2,
            {
                "stats": {"matches_played": 10, "wins": 6, "kda": "3.2"},
                "recent_matches": [{"match_id": 1, "hero_name": "Axe", "win": True}],
            },
        )
        assert isinstance(result, Dota2Stats)
        assert result.player_name == "Unknown Player"
        assert result.matches_played == 10
        assert result.kda == 3.2
        assert result.heroes == []
        assert result.recent_matches[0].result == "Win"


class TestLeague:
    def test_weighted_win_rate(self):
        combined = combine_match_pools(
            {"totalGames": 10, "wins": 6},
            {"totalGames": 5, "wins": 2},
        )
        assert combined.total_games == 15
        assert combined.wins == 8
        assert combined.win_rate == 53.3

    def test_win_rate_only_pool(self):
        combined = combine_match_pools({"games": 10, "winRate": 60}, {"games": 5, "winRate": 40})
        assert combined.win_rate == 53.3

    def test_weighted_averages(self):
        combined = combine_match_pools(
            {"totalGames": 10, "wins": 5, "averageKills": 6, "kda": 3.0},
            {"totalGames": 5, "wins": 5, "averageKills": 3, "kda": 1.5},
        )
        assert combined.average_kills == 5.0
        assert combined.kda == 2.5

    def test_kda_derived_from_averages_when_missing(self):
        combined = combine_match_pools(
            {"totalGames": 10, "wins": 5, "kda": 3.0},
            {"totalGames": 10, "wins": 5, "averageKills": 2, "averageDeaths": 4, "averageAssists": 2},
        )
        assert combined.kda == 2.0

    def test_pool_without_kda_inputs_is_not_weighted(self):
        combined = combine_match_pools(
            {"totalGames": 10, "wins": 5, "kda": 3.0},
            {"totalGames": 10, "wins": 5},
        )
        assert combined.kda == 3.0

    def test_empty_pools(self):
        combined = combine_match_pools({}, None)
        assert combined.total_games == 0
        assert combined.win_rate == 0.0

    def test_full_payload(self):
        raw = {
            "summoner": {"name": "Faker", "summonerLevel": 500, "profileIconId": 6},
            "ranked": [
                {"queueType": "RANKED_SOLO_5x5", "tier": "CHALLENGER", "rank": "I", "wins": 30, "losses": 10},
            ],
            "matches": {
                "totalGames": 10,
                "wins": 6,
                "recentMatches": [{"matchId": "KR_1", "championName": "Ahri", "win": True}],
            },
            "quickPlay": {"totalGames": 5, "wins": 2},
            "champions": [{"championName": "Ahri", "games": 7}],
        }
        result = normalize(Game.LEAGUE, raw)
        assert isinstance(result, LeagueStats)
        assert result.summoner.name == "Faker"
        assert result.solo_duo.tier == "CHALLENGER"
        assert result.solo_duo.win_rate == 75.0
        assert result.flex.tier == "UNRANKED"
        assert result.matches.win_rate == 53.3
        assert result.champions[0].champion_name == "Ahri"
        assert result.recent_matches[0].win is True

    def test_partial_defaults(self):
        result = normalize(Game.LEAGUE, {"ranked": []})
        assert result.summoner.name == "Unknown Summoner"
        assert result.summoner.profile_icon_id == 1
        assert result.matches.total_games == 0


class TestValorant:
    def test_agents_sorted_and_match_times(self):
        raw = {
            "account": {"gameName": "TenZ", "tagLine": "0505"},
            "matches": {
                "totalGames": 20,
                "topAgents": [
                    {"agentName": "Jett", "matches": 5},
                    {"agentName": "Reyna", "matches": 9},
                    {"agentName": "Sova", "matches": 5},
                ],
                "recentMatches": [{"matchId": "m1", "gameStartTime": 1_700_000_000, "won": True}],
            },
        }
        result = normalize(Game.VALORANT, raw)
        assert isinstance(result, ValorantStats)
        assert result.account.name == "TenZ"
        assert [a.agent_name for a in result.top_agents] == ["Reyna", "Jett", "Sova"]
        assert result.recent_matches[0].started_at == datetime.fromtimestamp(
            1_700_000_000, tz=timezone.utc
        )
        assert result.profile.rank == "Unranked"

    def test_partial_defaults(self):
        result = normalize(Game.VALORANT, {"profile": {"accountLevel": 12}})
        assert result.account.name == "Unknown Player"
        assert result.account.tag_line == "#NA"
        assert result.profile.account_level == 12
        assert result.match_stats.total_matches == 0


class TestCod:
    def test_lifetime_weapons_maps(self):
        raw = {
            "lifetime": {"kills": 300, "deaths": 100, "win_percentage": 55.5},
            "weapons": [{"name": "M4", "kills": 120}],
            "maps": [{"name": "Rust", "wins": 10, "losses": 5, "win_percentage": 66.7}],
        }
        result = normalize(Game.COD, raw)
        assert isinstance(result, CodStats)
        assert result.lifetime.kd_ratio == 3.0
        assert result.lifetime.win_rate == 55.5
        assert result.weapons[0].kills == 120
        assert result.maps[0].win_rate == 66.7

    def test_missing_blocks_default(self):
        result = normalize(Game.COD, {"weapons": [{"name": "M4"}]})
        assert result.lifetime.kills == 0
        assert result.maps == []
