"""Call of Duty normalizer - lifetime/weapons/maps blocks -> CodStats."""

from __future__ import annotations

from typing import Any

from ..core.models import CodLifetime, CodMap, CodStats, CodWeapon, StatsUnavailable
from ..core.types import Game
from . import as_dict, as_list, firewall, ratio, safe_float, safe_int, safe_str, unavailable


def _lifetime(raw: dict[str, Any]) -> CodLifetime:
    kills = safe_int(raw.get("kills"))
    deaths = safe_int(raw.get("deaths"))
    kd_ratio = safe_float(raw.get("kd_ratio")) if "kd_ratio" in raw else ratio(kills, deaths)
    return CodLifetime(
        level=safe_int(raw.get("level")),
        prestige=safe_int(raw.get("prestige")),
        time_played=safe_int(raw.get("time_played")),
        games_played=safe_int(raw.get("games_played")),
        wins=safe_int(raw.get("wins")),
        losses=safe_int(raw.get("losses")),
        win_rate=safe_float(raw.get("win_percentage")),
        kills=kills,
        deaths=deaths,
        kd_ratio=kd_ratio,
        accuracy=safe_float(raw.get("accuracy")),
        headshots=safe_int(raw.get("headshots")),
    )


@firewall(Game.COD)
def normalize_cod(raw: Any) -> CodStats | StatsUnavailable:
    sentinel = unavailable(raw)
    if sentinel:
        return sentinel

    weapons = [
        CodWeapon(
            name=safe_str(w.get("name")),
            kills=safe_int(w.get("kills")),
            accuracy=safe_float(w.get("accuracy")),
            headshots=safe_int(w.get("headshots")),
        )
        for w in as_list(raw.get("weapons"))
        if isinstance(w, dict)
    ]
    maps = [
        CodMap(
            name=safe_str(m.get("name")),
            wins=safe_int(m.get("wins")),
            losses=safe_int(m.get("losses")),
            win_rate=safe_float(m.get("win_percentage")),
        )
        for m in as_list(raw.get("maps"))
        if isinstance(m, dict)
    ]

    return CodStats(lifetime=_lifetime(as_dict(raw.get("lifetime"))), weapons=weapons, maps=maps)
