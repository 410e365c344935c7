"""
Dota 2 normalizer - stats proxy (OpenDota-backed) -> Dota2Stats.

The payload has four independent blocks: ``profile``, ``stats``,
``heroes`` and ``recent_matches``.  Any of them may be missing for a
private or brand-new account, so each one is defaulted on its own.
"""

from __future__ import annotations

from typing import Any

from ..core.models import Dota2Stats, DotaHero, DotaMatch, StatsUnavailable
from ..core.types import Game
from . import as_dict, as_list, firewall, safe_float, safe_int, safe_str, unavailable

AGGREGATE_INT_FIELDS = ("matches_played", "wins", "losses", "kills", "deaths", "assists")
AGGREGATE_FLOAT_FIELDS = ("win_rate", "kda", "gpm", "xpm")


def _hero(raw: dict[str, Any]) -> DotaHero:
    return DotaHero(
        name=safe_str(raw.get("name"), "Unknown Hero"),
        matches_played=safe_int(raw.get("matches_played")),
        wins=safe_int(raw.get("wins")),
        losses=safe_int(raw.get("losses")),
        win_rate=safe_float(raw.get("win_rate")),
        kills=safe_int(raw.get("kills")),
        deaths=safe_int(raw.get("deaths")),
        assists=safe_int(raw.get("assists")),
        kda=safe_float(raw.get("kda")),
    )


def _match(raw: dict[str, Any]) -> DotaMatch:
    return DotaMatch(
        match_id=safe_int(raw.get("match_id")),
        hero_name=safe_str(raw.get("hero_name"), "Unknown Hero"),
        result="Win" if raw.get("win") else "Loss",
        duration=safe_int(raw.get("duration")),
        kills=safe_int(raw.get("kills")),
        deaths=safe_int(raw.get("deaths")),
        assists=safe_int(raw.get("assists")),
        gpm=safe_int(raw.get("gpm")),
        xpm=safe_int(raw.get("xpm")),
        date=safe_str(raw.get("start_time")),
    )


@firewall(Game.DOTA2)
def normalize_dota2(raw: Any) -> Dota2Stats | StatsUnavailable:
    sentinel = unavailable(raw)
    if sentinel:
        return sentinel

    profile = as_dict(raw.get("profile"))
    stats = as_dict(raw.get("stats"))

    aggregates: dict[str, Any] = {name: safe_int(stats.get(name)) for name in AGGREGATE_INT_FIELDS}
    aggregates.update({name: safe_float(stats.get(name)) for name in AGGREGATE_FLOAT_FIELDS})

    return Dota2Stats(
        player_name=safe_str(profile.get("personaname"), "Unknown Player"),
        avatar=safe_str(profile.get("avatarfull")),
        steam_id=safe_str(profile.get("steamid")),
        heroes=[_hero(h) for h in as_list(raw.get("heroes")) if isinstance(h, dict)],
        recent_matches=[
            _match(m) for m in as_list(raw.get("recent_matches")) if isinstance(m, dict)
        ],
        **aggregates,
    )
