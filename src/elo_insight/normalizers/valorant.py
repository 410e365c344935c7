"""Valorant normalizer - account/profile/match data from the stats proxy -> ValorantStats."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..core.models import (
    StatsUnavailable,
    ValorantAccount,
    ValorantAgent,
    ValorantMatch,
    ValorantMatchStats,
    ValorantProfile,
    ValorantStats,
)
from ..core.types import Game
from . import as_dict, as_list, firewall, safe_float, safe_int, safe_str, unavailable


def _started_at(epoch_seconds: Any) -> datetime | None:
    seconds = safe_int(epoch_seconds)
    if seconds <= 0:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _match_stats(matches: dict[str, Any]) -> ValorantMatchStats:
    return ValorantMatchStats(
        win_rate=safe_float(matches.get("winRate")),
        kd_ratio=safe_float(matches.get("kdRatio")),
        total_matches=safe_int(matches.get("totalGames")),
        wins=safe_int(matches.get("wins")),
        losses=safe_int(matches.get("losses")),
        average_kills=safe_float(matches.get("averageKills")),
        average_deaths=safe_float(matches.get("averageDeaths")),
        average_assists=safe_float(matches.get("averageAssists")),
        average_combat_score=safe_float(matches.get("averageCombatScore")),
    )


def _agent(raw: dict[str, Any]) -> ValorantAgent:
    return ValorantAgent(
        agent_name=safe_str(raw.get("agentName")),
        matches=safe_int(raw.get("matches")),
        wins=safe_int(raw.get("wins")),
        win_rate=safe_float(raw.get("winRate")),
        kda=safe_float(raw.get("kda")),
    )


def _match(raw: dict[str, Any]) -> ValorantMatch:
    return ValorantMatch(
        match_id=safe_str(raw.get("matchId")),
        agent=safe_str(raw.get("agent")),
        game_mode=safe_str(raw.get("gameMode")),
        map_id=safe_str(raw.get("mapId")),
        kills=safe_int(raw.get("kills")),
        deaths=safe_int(raw.get("deaths")),
        assists=safe_int(raw.get("assists")),
        kda=safe_float(raw.get("kda")),
        combat_score=safe_float(raw.get("combatScore")),
        won=bool(raw.get("won")),
        game_length=safe_int(raw.get("gameLength")),
        started_at=_started_at(raw.get("gameStartTime")),
    )


@firewall(Game.VALORANT)
def normalize_valorant(raw: Any) -> ValorantStats | StatsUnavailable:
    sentinel = unavailable(raw)
    if sentinel:
        return sentinel

    account = as_dict(raw.get("account"))
    profile = as_dict(raw.get("profile"))
    matches = as_dict(raw.get("matches"))

    agents = [_agent(a) for a in as_list(matches.get("topAgents")) if isinstance(a, dict)]
    # Most-played first; sorted() is stable so provider order breaks ties.
    agents = sorted(agents, key=lambda a: a.matches, reverse=True)

    return ValorantStats(
        account=ValorantAccount(
            name=safe_str(account.get("gameName"), "Unknown Player"),
            tag_line=safe_str(account.get("tagLine"), "#NA"),
            puuid=safe_str(account.get("puuid")),
        ),
        profile=ValorantProfile(
            account_level=safe_int(profile.get("accountLevel")),
            rank=safe_str(profile.get("rank"), "Unranked"),
            rank_tier=safe_int(profile.get("rankTier")),
        ),
        match_stats=_match_stats(matches),
        top_agents=agents,
        recent_matches=[
            _match(m) for m in as_list(matches.get("recentMatches")) if isinstance(m, dict)
        ],
    )
