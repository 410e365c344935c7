"""
League of Legends normalizer - Riot summoner/league/match data -> LeagueStats.

Match aggregates arrive in two independent pools: ranked games under
``matches`` and quick-play games under ``quickPlay`` (older proxy builds
nest them as ``matches.quickPlayStats``).  Rate-like fields are combined
as a games-weighted average: a 10-game pool at 60% and a 5-game pool at
40% give 53.3%, not 50%.
"""

from __future__ import annotations

from typing import Any

from ..core.models import (
    LeagueChampion,
    LeagueMatch,
    LeagueMatchStats,
    LeagueStats,
    RankedQueue,
    StatsUnavailable,
    Summoner,
)
from ..core.types import Game
from . import as_dict, as_list, firewall, percentage, safe_float, safe_int, safe_str, unavailable

SOLO_DUO_QUEUE = "RANKED_SOLO_5x5"
FLEX_QUEUE = "RANKED_FLEX_SR"

# Per-game average keys in a pool -> LeagueMatchStats field
AVERAGE_FIELDS: dict[str, str] = {
    "averageKills": "average_kills",
    "averageDeaths": "average_deaths",
    "averageAssists": "average_assists",
    "averageCS": "average_cs",
    "averageVision": "average_vision",
    "averageDamage": "average_damage",
}

KDA_AVERAGE_KEYS = ("averageKills", "averageDeaths", "averageAssists")


def _pool_games(pool: dict[str, Any]) -> int:
    return safe_int(pool.get("totalGames", pool.get("games")))


def _pool_wins(pool: dict[str, Any], games: int) -> int:
    if "wins" in pool:
        return safe_int(pool.get("wins"))
    # Some pools only report a percentage.
    return round(safe_float(pool.get("winRate")) * games / 100)


def _weighted(pools: list[tuple[dict[str, Any], int]], key: str) -> float | None:
    """Games-weighted mean of ``key`` over the pools that report it."""
    reporting = [(safe_float(p[key]), g) for p, g in pools if p.get(key) is not None]
    games = sum(g for _, g in reporting)
    if not games:
        return None
    return sum(value * g for value, g in reporting) / games


def _pool_kda(pool: dict[str, Any]) -> float | None:
    """A pool's KDA: reported directly, or derived from its per-game averages."""
    if pool.get("kda") is not None:
        return safe_float(pool["kda"])
    if all(pool.get(key) is None for key in KDA_AVERAGE_KEYS):
        return None
    kills, deaths, assists = (safe_float(pool.get(key)) for key in KDA_AVERAGE_KEYS)
    return (kills + assists) / max(1.0, deaths)


def _weighted_kda(pools: list[tuple[dict[str, Any], int]]) -> float:
    reporting = [(kda, g) for kda, g in ((_pool_kda(p), g) for p, g in pools) if kda is not None]
    games = sum(g for _, g in reporting)
    if not games:
        return 0.0
    return sum(kda * g for kda, g in reporting) / games


def combine_match_pools(*pools: Any) -> LeagueMatchStats:
    """
    Combine independent match pools into one aggregate.

    Counts (games, wins) are summed.  Win rate is recomputed from the summed
    counts; KDA and per-game averages are weighted by each pool's games.
    A pool without a ``kda`` field contributes the KDA of its own averages.
    Pools with no games are ignored.
    """
    weighted = [(p, _pool_games(p)) for p in map(as_dict, pools)]
    weighted = [(p, g) for p, g in weighted if g > 0]
    total_games = sum(g for _, g in weighted)
    if not total_games:
        return LeagueMatchStats()

    wins = sum(_pool_wins(p, g) for p, g in weighted)
    averages = {
        field: round(_weighted(weighted, key) or 0.0, 2)
        for key, field in AVERAGE_FIELDS.items()
    }

    kda = _weighted_kda(weighted)

    return LeagueMatchStats(
        total_games=total_games,
        wins=wins,
        losses=total_games - wins,
        win_rate=percentage(wins, total_games, digits=1),
        kda=round(kda, 2),
        **averages,
    )


def _ranked_queue(raw: dict[str, Any]) -> RankedQueue:
    wins = safe_int(raw.get("wins"))
    losses = safe_int(raw.get("losses"))
    return RankedQueue(
        queue_type=safe_str(raw.get("queueType")),
        tier=safe_str(raw.get("tier"), "UNRANKED"),
        rank=safe_str(raw.get("rank")),
        league_points=safe_int(raw.get("leaguePoints")),
        wins=wins,
        losses=losses,
        win_rate=percentage(wins, wins + losses, digits=1),
    )


def _summoner(raw: dict[str, Any]) -> Summoner:
    summoner = as_dict(raw.get("summoner"))
    return Summoner(
        name=safe_str(
            summoner.get("name") or summoner.get("gameName") or raw.get("name") or raw.get("gameName"),
            "Unknown Summoner",
        ),
        summoner_level=safe_int(summoner.get("summonerLevel", raw.get("summonerLevel"))),
        profile_icon_id=safe_int(summoner.get("profileIconId", raw.get("profileIconId")), 1) or 1,
        last_play_time=safe_int(summoner.get("revisionDate", raw.get("revisionDate"))),
    )


def _champion(raw: dict[str, Any]) -> LeagueChampion:
    return LeagueChampion(
        champion_id=safe_int(raw.get("championId")),
        champion_name=safe_str(raw.get("championName")),
        games=safe_int(raw.get("games")),
        wins=safe_int(raw.get("wins")),
        losses=safe_int(raw.get("losses")),
        kda=safe_float(raw.get("kda")),
    )


def _match(raw: dict[str, Any]) -> LeagueMatch:
    return LeagueMatch(
        match_id=safe_str(raw.get("matchId")),
        champion_name=safe_str(raw.get("championName")),
        win=bool(raw.get("win")),
        kills=safe_int(raw.get("kills")),
        deaths=safe_int(raw.get("deaths")),
        assists=safe_int(raw.get("assists")),
    )


@firewall(Game.LEAGUE)
def normalize_league(raw: Any) -> LeagueStats | StatsUnavailable:
    sentinel = unavailable(raw)
    if sentinel:
        return sentinel

    ranked = [_ranked_queue(r) for r in as_list(raw.get("ranked")) if isinstance(r, dict)]
    by_queue = {queue.queue_type: queue for queue in ranked}

    ranked_pool = as_dict(raw.get("matches"))
    quick_pool = as_dict(raw.get("quickPlay")) or as_dict(ranked_pool.get("quickPlayStats"))

    champions = as_list(raw.get("champions")) or as_list(ranked_pool.get("topChampions"))

    return LeagueStats(
        summoner=_summoner(raw),
        ranked=ranked,
        solo_duo=by_queue.get(SOLO_DUO_QUEUE, RankedQueue(queue_type=SOLO_DUO_QUEUE)),
        flex=by_queue.get(FLEX_QUEUE, RankedQueue(queue_type=FLEX_QUEUE)),
        matches=combine_match_pools(ranked_pool, quick_pool),
        champions=[_champion(c) for c in champions if isinstance(c, dict)],
        recent_matches=[
            _match(m) for m in as_list(ranked_pool.get("recentMatches")) if isinstance(m, dict)
        ],
    )
