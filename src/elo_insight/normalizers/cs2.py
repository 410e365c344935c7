"""
CS2 normalizer - Steam GetUserStatsForGame (app 730) -> CS2Stats.

The stats proxy flattens Steam's ``playerstats.stats`` list of
``{"name": ..., "value": ...}`` pairs into one ``{name: value}`` dict.
Both shapes are accepted here.

Weapon and map fields are looked up from enumerated dictionaries rather
than by key prefix: Steam also emits ``total_kills_headshot``,
``total_kills_enemy_blinded`` and friends, which share the weapon prefix
but are not weapons.
"""

from __future__ import annotations

from typing import Any

from ..core.models import CS2Stats, MapRecord, StatsUnavailable, WeaponKills
from ..core.types import Game
from . import firewall, percentage, ratio, safe_int, unavailable

# Steam stat key -> display name
WEAPON_KEYS: dict[str, str] = {
    "total_kills_ak47": "AK-47",
    "total_kills_awp": "AWP",
    "total_kills_m4a1": "M4A1",
    "total_kills_deagle": "Desert Eagle",
    "total_kills_p90": "P90",
    "total_kills_glock": "Glock",
    "total_kills_hkp2000": "P2000",
    "total_kills_ssg08": "SSG 08",
    "total_kills_sg556": "SG 556",
    "total_kills_aug": "AUG",
}

# Steam map id -> display name; wins/rounds live under
# total_wins_map_<id> / total_rounds_map_<id>.
MAP_IDS: dict[str, str] = {
    "de_dust2": "DUST2",
    "de_inferno": "INFERNO",
    "de_nuke": "NUKE",
    "de_vertigo": "VERTIGO",
    "de_cbble": "CBBLE",
}


def _flatten_playerstats(raw: dict[str, Any]) -> dict[str, Any]:
    playerstats = raw.get("playerstats")
    if not isinstance(playerstats, dict):
        return raw
    flat: dict[str, Any] = {}
    for entry in playerstats.get("stats") or []:
        if isinstance(entry, dict) and isinstance(entry.get("name"), str):
            flat[entry["name"]] = entry.get("value")
    return flat


def _weapons(stats: dict[str, Any]) -> list[WeaponKills]:
    weapons = [
        WeaponKills(name=name, kills=safe_int(stats.get(key)))
        for key, name in WEAPON_KEYS.items()
    ]
    weapons = [w for w in weapons if w.kills > 0]
    return sorted(weapons, key=lambda w: w.kills, reverse=True)


def _maps(stats: dict[str, Any]) -> list[MapRecord]:
    maps = []
    for map_id, name in MAP_IDS.items():
        wins = safe_int(stats.get(f"total_wins_map_{map_id}"))
        if wins <= 0:
            continue
        rounds = safe_int(stats.get(f"total_rounds_map_{map_id}"))
        maps.append(
            MapRecord(
                name=name,
                wins=wins,
                rounds=rounds,
                win_rate=percentage(wins, rounds, digits=1),
            )
        )
    return sorted(maps, key=lambda m: m.wins, reverse=True)


@firewall(Game.CS2)
def normalize_cs2(raw: Any) -> CS2Stats | StatsUnavailable:
    sentinel = unavailable(raw)
    if sentinel:
        return sentinel

    stats = _flatten_playerstats(raw)
    if not stats:
        return StatsUnavailable()

    kills = safe_int(stats.get("total_kills"))
    deaths = safe_int(stats.get("total_deaths"))
    shots_fired = safe_int(stats.get("total_shots_fired"))
    shots_hit = safe_int(stats.get("total_shots_hit"))
    headshots = safe_int(stats.get("total_kills_headshot"))

    return CS2Stats(
        kills=kills,
        deaths=deaths,
        kd_ratio=ratio(kills, deaths),
        shots_fired=shots_fired,
        shots_hit=shots_hit,
        accuracy=percentage(shots_hit, shots_fired),
        headshot_kills=headshots,
        headshot_percentage=percentage(headshots, kills),
        mvps=safe_int(stats.get("total_mvps")),
        matches_played=safe_int(stats.get("total_matches_played")),
        matches_won=safe_int(stats.get("total_matches_won")),
        rounds_played=safe_int(stats.get("total_rounds_played")),
        time_played=safe_int(stats.get("total_time_played")),
        weapons=_weapons(stats),
        maps=_maps(stats),
    )
