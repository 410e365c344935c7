"""
Core types and constants for Elo Insight.

This module provides:
- Game and Platform enums
- GameConfig dataclass describing where each game's stats come from
- GAME_REGISTRY, the static game -> platforms table

Every stat selection must pair a game with one of the platforms listed
for it here.  The table also records which profile field must be linked
before a selection can be saved.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Game(str, Enum):
    """Supported games."""

    CS2 = "CS2"
    APEX = "Apex Legends"
    DOTA2 = "Dota 2"
    LEAGUE = "League of Legends"
    VALORANT = "Valorant"
    COD = "Call of Duty"

    @classmethod
    def _missing_(cls, value):
        return _match_case_insensitive(cls, value)


class Platform(str, Enum):
    """Platforms a game can be tracked on."""

    STEAM = "Steam"
    EA = "EA"
    PLAYSTATION = "PlayStation"
    XBOX = "Xbox"
    RIOT = "Riot"
    BATTLENET = "Battle.net"

    @classmethod
    def _missing_(cls, value):
        return _match_case_insensitive(cls, value)


def _match_case_insensitive(enum_cls, value):
    # Stored rows and query strings are not consistent about casing.
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    return None


# Profile fields that count as a linked Riot account.  Any one is enough.
RIOT_FIELDS: tuple[str, ...] = ("riot_id", "riot_game_name", "riot_tagline", "riot_puuid")

# Profile field that must be non-empty for a platform.  None means no link
# is required (Battle.net has no account linking yet).  RIOT_FIELDS is
# checked as "any of" rather than a single field.
PLATFORM_LINK_FIELDS: dict[Platform, Optional[str | tuple[str, ...]]] = {
    Platform.STEAM: "steam_id",
    Platform.EA: "ea_username",
    Platform.PLAYSTATION: "playstation_id",
    Platform.XBOX: "xbox_id",
    Platform.RIOT: RIOT_FIELDS,
    Platform.BATTLENET: None,
}


@dataclass(frozen=True)
class GameConfig:
    """
    Configuration for a game.

    The stats proxy exposes one endpoint per game; the endpoint takes the
    resolved account identifier as a query parameter.
    """

    id: Game
    name: str
    endpoint: str
    platforms: tuple[Platform, ...] = field(default_factory=tuple)

    def supports(self, platform: Platform | str) -> bool:
        """Whether ``platform`` is valid for this game."""
        try:
            return Platform(platform) in self.platforms
        except ValueError:
            return False


# =============================================================================
# GAME REGISTRY - static game -> platforms table
# =============================================================================

GAME_REGISTRY: dict[Game, GameConfig] = {
    Game.CS2: GameConfig(
        id=Game.CS2,
        name="Counter-Strike 2",
        endpoint="/api/stats/cs2",
        platforms=(Platform.STEAM,),
    ),
    Game.DOTA2: GameConfig(
        id=Game.DOTA2,
        name="Dota 2",
        endpoint="/api/stats/dota2",
        platforms=(Platform.STEAM,),
    ),
    Game.APEX: GameConfig(
        id=Game.APEX,
        name="Apex Legends",
        endpoint="/api/stats/apex",
        platforms=(Platform.EA, Platform.PLAYSTATION, Platform.XBOX),
    ),
    Game.VALORANT: GameConfig(
        id=Game.VALORANT,
        name="Valorant",
        endpoint="/api/stats/valorant",
        platforms=(Platform.RIOT,),
    ),
    Game.LEAGUE: GameConfig(
        id=Game.LEAGUE,
        name="League of Legends",
        endpoint="/api/stats/lol",
        platforms=(Platform.RIOT,),
    ),
    Game.COD: GameConfig(
        id=Game.COD,
        name="Call of Duty",
        endpoint="/api/stats/cod",
        platforms=(Platform.PLAYSTATION, Platform.XBOX, Platform.BATTLENET),
    ),
}


def get_game_config(game: str | Game) -> GameConfig:
    """
    Get configuration for a game.

    Args:
        game: Game display name or Game enum

    Returns:
        GameConfig for the requested game

    Raises:
        KeyError: If the game is not in the registry
    """
    try:
        return GAME_REGISTRY[Game(game)]
    except ValueError:
        raise KeyError(game) from None


def is_valid_pair(game: str | Game, platform: str | Platform) -> bool:
    """Whether (game, platform) appears in the static table."""
    try:
        return get_game_config(game).supports(platform)
    except KeyError:
        return False


def selection_key(game: str | Game, platform: str | Platform) -> str:
    """Freshness key for a (game, platform) pair."""
    return f"{Game(game).value}_{Platform(platform).value}"
