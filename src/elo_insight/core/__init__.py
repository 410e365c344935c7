"""
Core module for Elo Insight.

This module provides the foundational components:
- Configuration management (config.py)
- Error taxonomy (errors.py)
- Profile, selection and canonical stat models (models.py)
- Game/platform registry (types.py)
- Shared HTTP client infrastructure (http.py)

Usage:
    from elo_insight.core import Settings, get_settings
    from elo_insight.core import Game, Platform, get_game_config
    from elo_insight.core import Profile, StatSelection
    from elo_insight.core.http import BaseApiClient, ExternalAPIError
"""

# Configuration
from .config import Settings, get_settings

# Errors
from .errors import (
    StatsError,
    MissingAccountError,
    UpstreamError,
    UpstreamTransientError,
    PersistenceError,
)

# Types
from .types import (
    Game,
    Platform,
    GameConfig,
    GAME_REGISTRY,
    PLATFORM_LINK_FIELDS,
    RIOT_FIELDS,
    get_game_config,
    is_valid_pair,
    selection_key,
)

# Models
from .models import (
    Profile,
    StatSelection,
    StatsUnavailable,
    CanonicalGameStat,
    CANONICAL_MODELS,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "StatsError",
    "MissingAccountError",
    "UpstreamError",
    "UpstreamTransientError",
    "PersistenceError",
    # Types
    "Game",
    "Platform",
    "GameConfig",
    "GAME_REGISTRY",
    "PLATFORM_LINK_FIELDS",
    "RIOT_FIELDS",
    "get_game_config",
    "is_valid_pair",
    "selection_key",
    # Models
    "Profile",
    "StatSelection",
    "StatsUnavailable",
    "CanonicalGameStat",
    "CANONICAL_MODELS",
]
