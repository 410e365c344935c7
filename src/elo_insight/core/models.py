"""
Pydantic models for profiles, stat selections and canonical game stats.

These models are used for:
- Parsing backend responses (profile, saved selections)
- The canonical per-game records normalizers produce
- API response serialization

Every canonical field has a default: numbers default to 0 and collections
to empty, so a partially populated payload never yields missing fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .types import RIOT_FIELDS, Game, Platform, is_valid_pair, selection_key


# =============================================================================
# Profile
# =============================================================================


class Profile(BaseModel):
    """Read-only snapshot of the user's linked external identifiers."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    steam_id: Optional[str] = None
    ea_username: Optional[str] = None
    riot_id: Optional[str] = None
    riot_game_name: Optional[str] = None
    riot_tagline: Optional[str] = None
    riot_puuid: Optional[str] = None
    xbox_id: Optional[str] = None
    playstation_id: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        # The backend sends "" and null interchangeably for unlinked accounts.
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def linked(self, field_name: str) -> Optional[str]:
        """Value of a profile field, or None when it is not linked."""
        return getattr(self, field_name, None)

    @property
    def riot_params(self) -> dict[str, str]:
        """Every Riot identifier that is present, keyed by field name."""
        return {name: value for name in RIOT_FIELDS if (value := self.linked(name))}


# =============================================================================
# Canonical stat records
# =============================================================================


class StatsUnavailable(BaseModel):
    """Sentinel returned by a normalizer when a payload holds no usable data."""

    error: str = "no data"


class WeaponKills(BaseModel):
    name: str
    kills: int = 0


class MapRecord(BaseModel):
    name: str
    wins: int = 0
    rounds: int = 0
    win_rate: float = 0.0


class CS2Stats(BaseModel):
    game: Literal["CS2"] = "CS2"
    kills: int = 0
    deaths: int = 0
    kd_ratio: float = 0.0
    shots_fired: int = 0
    shots_hit: int = 0
    accuracy: float = 0.0
    headshot_kills: int = 0
    headshot_percentage: float = 0.0
    mvps: int = 0
    matches_played: int = 0
    matches_won: int = 0
    rounds_played: int = 0
    time_played: int = 0
    weapons: list[WeaponKills] = Field(default_factory=list)
    maps: list[MapRecord] = Field(default_factory=list)


class LegendStats(BaseModel):
    name: str = "Unknown Legend"
    image_url: str = ""
    stats: dict[str, float] = Field(default_factory=dict)


class ApexStats(BaseModel):
    game: Literal["Apex Legends"] = "Apex Legends"
    player_name: str = ""
    platform: str = ""
    level: int = 0
    rank_score: int = 0
    kills: int = 0
    deaths: int = 0
    kd_ratio: float = 0.0
    damage: int = 0
    headshots: int = 0
    wins: int = 0
    matches_played: int = 0
    kills_per_match: float = 0.0
    winning_kills: int = 0
    legends: list[LegendStats] = Field(default_factory=list)
    weapons: list[WeaponKills] = Field(default_factory=list)


class DotaHero(BaseModel):
    name: str = "Unknown Hero"
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    kda: float = 0.0


class DotaMatch(BaseModel):
    match_id: int = 0
    hero_name: str = "Unknown Hero"
    result: Literal["Win", "Loss"] = "Loss"
    duration: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    gpm: int = 0
    xpm: int = 0
    date: str = ""


class Dota2Stats(BaseModel):
    game: Literal["Dota 2"] = "Dota 2"
    player_name: str = "Unknown Player"
    avatar: str = ""
    steam_id: str = ""
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    kda: float = 0.0
    gpm: float = 0.0
    xpm: float = 0.0
    heroes: list[DotaHero] = Field(default_factory=list)
    recent_matches: list[DotaMatch] = Field(default_factory=list)


class Summoner(BaseModel):
    name: str = "Unknown Summoner"
    summoner_level: int = 0
    profile_icon_id: int = 1
    last_play_time: int = 0


class RankedQueue(BaseModel):
    queue_type: str = ""
    tier: str = "UNRANKED"
    rank: str = ""
    league_points: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0


class LeagueMatchStats(BaseModel):
    total_games: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    kda: float = 0.0
    average_kills: float = 0.0
    average_deaths: float = 0.0
    average_assists: float = 0.0
    average_cs: float = 0.0
    average_vision: float = 0.0
    average_damage: float = 0.0


class LeagueChampion(BaseModel):
    champion_id: int = 0
    champion_name: str = ""
    games: int = 0
    wins: int = 0
    losses: int = 0
    kda: float = 0.0


class LeagueMatch(BaseModel):
    match_id: str = ""
    champion_name: str = ""
    win: bool = False
    kills: int = 0
    deaths: int = 0
    assists: int = 0


class LeagueStats(BaseModel):
    game: Literal["League of Legends"] = "League of Legends"
    summoner: Summoner = Field(default_factory=Summoner)
    ranked: list[RankedQueue] = Field(default_factory=list)
    solo_duo: RankedQueue = Field(
        default_factory=lambda: RankedQueue(queue_type="RANKED_SOLO_5x5")
    )
    flex: RankedQueue = Field(
        default_factory=lambda: RankedQueue(queue_type="RANKED_FLEX_SR")
    )
    matches: LeagueMatchStats = Field(default_factory=LeagueMatchStats)
    champions: list[LeagueChampion] = Field(default_factory=list)
    recent_matches: list[LeagueMatch] = Field(default_factory=list)


class ValorantAccount(BaseModel):
    name: str = "Unknown Player"
    tag_line: str = "#NA"
    puuid: str = ""


class ValorantProfile(BaseModel):
    account_level: int = 0
    rank: str = "Unranked"
    rank_tier: int = 0


class ValorantMatchStats(BaseModel):
    win_rate: float = 0.0
    kd_ratio: float = 0.0
    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    average_kills: float = 0.0
    average_deaths: float = 0.0
    average_assists: float = 0.0
    average_combat_score: float = 0.0


class ValorantAgent(BaseModel):
    agent_name: str = ""
    matches: int = 0
    wins: int = 0
    win_rate: float = 0.0
    kda: float = 0.0


class ValorantMatch(BaseModel):
    match_id: str = ""
    agent: str = ""
    game_mode: str = ""
    map_id: str = ""
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    kda: float = 0.0
    combat_score: float = 0.0
    won: bool = False
    game_length: int = 0
    started_at: Optional[datetime] = None


class ValorantStats(BaseModel):
    game: Literal["Valorant"] = "Valorant"
    account: ValorantAccount = Field(default_factory=ValorantAccount)
    profile: ValorantProfile = Field(default_factory=ValorantProfile)
    match_stats: ValorantMatchStats = Field(default_factory=ValorantMatchStats)
    top_agents: list[ValorantAgent] = Field(default_factory=list)
    recent_matches: list[ValorantMatch] = Field(default_factory=list)


class CodLifetime(BaseModel):
    level: int = 0
    prestige: int = 0
    time_played: int = 0
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    kills: int = 0
    deaths: int = 0
    kd_ratio: float = 0.0
    accuracy: float = 0.0
    headshots: int = 0


class CodWeapon(BaseModel):
    name: str = ""
    kills: int = 0
    accuracy: float = 0.0
    headshots: int = 0


class CodMap(BaseModel):
    name: str = ""
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0


class CodStats(BaseModel):
    game: Literal["Call of Duty"] = "Call of Duty"
    lifetime: CodLifetime = Field(default_factory=CodLifetime)
    weapons: list[CodWeapon] = Field(default_factory=list)
    maps: list[CodMap] = Field(default_factory=list)


CanonicalGameStat = Annotated[
    Union[CS2Stats, ApexStats, Dota2Stats, LeagueStats, ValorantStats, CodStats],
    Field(discriminator="game"),
]

CANONICAL_MODELS: dict[Game, type[BaseModel]] = {
    Game.CS2: CS2Stats,
    Game.APEX: ApexStats,
    Game.DOTA2: Dota2Stats,
    Game.LEAGUE: LeagueStats,
    Game.VALORANT: ValorantStats,
    Game.COD: CodStats,
}


# =============================================================================
# Stat selection
# =============================================================================


class StatSelection(BaseModel):
    """
    A user's choice to track a game on a platform.

    The backend serializes rows with capitalized keys, so ``ID``,
    ``Game`` and ``Platform`` are accepted alongside the lower-case names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "ID"))
    game: Game = Field(validation_alias=AliasChoices("game", "Game"))
    platform: Platform = Field(validation_alias=AliasChoices("platform", "Platform"))
    canonical_data: Optional[Union[CanonicalGameStat, StatsUnavailable]] = None
    fetch_error: Optional[str] = None

    @model_validator(mode="after")
    def _check_pair(self) -> "StatSelection":
        if not is_valid_pair(self.game, self.platform):
            raise ValueError(f"{self.platform.value} is not a valid platform for {self.game.value}")
        if self.canonical_data is not None and not isinstance(
            self.canonical_data, (StatsUnavailable, CANONICAL_MODELS[self.game])
        ):
            raise ValueError(f"canonical data does not match game {self.game.value}")
        return self

    @property
    def key(self) -> str:
        """Freshness key for this selection."""
        return selection_key(self.game, self.platform)
