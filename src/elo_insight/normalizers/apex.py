"""
Apex Legends normalizer - tracker.gg profile -> ApexStats.

tracker.gg nests everything under ``segments``: one ``overview`` segment
with lifetime totals and one ``legend`` segment per legend played.  Each
stat is a node like ``{"value": 1520, "displayValue": "1,520"}``.  The
proxy may or may not strip the outer ``{"data": ...}`` envelope.
"""

from __future__ import annotations

from typing import Any

from ..core.models import ApexStats, LegendStats, StatsUnavailable, WeaponKills
from ..core.types import Game
from . import as_dict, as_list, firewall, ratio, safe_float, safe_int, safe_str, unavailable

# Overview stat key -> ApexStats field
OVERVIEW_FIELDS: dict[str, str] = {
    "kills": "kills",
    "damage": "damage",
    "headshots": "headshots",
    "matchesPlayed": "matches_played",
    "level": "level",
    "rankScore": "rank_score",
    "deaths": "deaths",
    "winningKills": "winning_kills",
    "wins": "wins",
}

# weapon_<id>_kills -> display name
WEAPON_IDS: dict[str, str] = {
    "r301": "R-301 Carbine",
    "r99": "R-99",
    "flatline": "VK-47 Flatline",
    "havoc": "HAVOC Rifle",
    "hemlok": "Hemlok Burst AR",
    "nemesis": "Nemesis Burst AR",
    "spitfire": "M600 Spitfire",
    "devotion": "Devotion LMG",
    "lstar": "L-STAR EMG",
    "rampage": "Rampage LMG",
    "alternator": "Alternator SMG",
    "prowler": "Prowler Burst PDW",
    "volt": "Volt SMG",
    "car": "C.A.R. SMG",
    "wingman": "Wingman",
    "re45": "RE-45 Auto",
    "p2020": "P2020",
    "peacekeeper": "Peacekeeper",
    "mastiff": "Mastiff",
    "eva8": "EVA-8 Auto",
    "mozambique": "Mozambique",
    "kraber": "Kraber .50-Cal",
    "longbow": "Longbow DMR",
    "sentinel": "Sentinel",
    "charge_rifle": "Charge Rifle",
    "g7_scout": "G7 Scout",
    "triple_take": "Triple Take",
    "bocek": "Bocek Compound Bow",
    "30_30": "30-30 Repeater",
}


def _segments(data: dict[str, Any], segment_type: str) -> list[dict[str, Any]]:
    return [
        seg for seg in as_list(data.get("segments"))
        if isinstance(seg, dict) and seg.get("type") == segment_type
    ]


def _weapons(*sources: dict[str, Any]) -> list[WeaponKills]:
    kills_by_weapon: dict[str, int] = {}
    for source in sources:
        for weapon_id, name in WEAPON_IDS.items():
            key = f"weapon_{weapon_id}_kills"
            if key in source:
                kills_by_weapon[name] = safe_int(source[key])
    weapons = [WeaponKills(name=n, kills=k) for n, k in kills_by_weapon.items() if k > 0]
    return sorted(weapons, key=lambda w: w.kills, reverse=True)


def _legend(segment: dict[str, Any]) -> LegendStats:
    metadata = as_dict(segment.get("metadata"))
    stats = {
        key: safe_float(node)
        for key, node in as_dict(segment.get("stats")).items()
    }
    return LegendStats(
        name=safe_str(metadata.get("name"), "Unknown Legend"),
        image_url=safe_str(metadata.get("imageUrl")),
        stats=stats,
    )


@firewall(Game.APEX)
def normalize_apex(raw: Any) -> ApexStats | StatsUnavailable:
    sentinel = unavailable(raw)
    if sentinel:
        return sentinel

    data = raw["data"] if isinstance(raw.get("data"), dict) else raw
    if not data.get("segments") and not data.get("platformInfo"):
        return StatsUnavailable()

    platform_info = as_dict(data.get("platformInfo"))
    overview_segments = _segments(data, "overview")
    overview = as_dict(overview_segments[0].get("stats")) if overview_segments else {}

    fields: dict[str, Any] = {
        field: safe_int(overview.get(key)) for key, field in OVERVIEW_FIELDS.items()
    }
    kills, deaths = fields["kills"], fields["deaths"]
    kd_ratio = safe_float(overview.get("kd")) if "kd" in overview else ratio(kills, deaths)
    if "killsPerMatch" in overview:
        kills_per_match = safe_float(overview.get("killsPerMatch"))
    elif fields["matches_played"]:
        kills_per_match = round(kills / fields["matches_played"], 2)
    else:
        kills_per_match = 0.0

    return ApexStats(
        player_name=safe_str(platform_info.get("platformUserHandle")),
        platform=safe_str(platform_info.get("platformSlug")),
        kd_ratio=kd_ratio,
        kills_per_match=kills_per_match,
        legends=[_legend(seg) for seg in _segments(data, "legend")],
        weapons=_weapons(data, overview),
        **fields,
    )
