"""
Elo Insight Stats Engine

Aggregates a user's game statistics from per-game upstream providers,
validates account prerequisites, throttles re-fetches, and normalizes
each provider's payload into a stable per-game schema.

Key Features:
- Static game/platform table with linked-account validation
- Freshness window per (game, platform) to avoid duplicate fetches
- Parallel fan-out/fan-in refresh with stale-result protection
- Normalizers that never raise: unusable payloads become a "no data" sentinel

Usage:
    from elo_insight import AggregationOrchestrator, BackendClient, UpstreamFetchDispatcher

    orchestrator = AggregationOrchestrator(BackendClient(), UpstreamFetchDispatcher())
    await orchestrator.start()
    await orchestrator.add_selection("Dota 2", "Steam")
"""

from .cache import FreshnessCache
from .core import (
    Game,
    MissingAccountError,
    PersistenceError,
    Platform,
    Profile,
    Settings,
    StatSelection,
    StatsError,
    StatsUnavailable,
    UpstreamError,
    UpstreamTransientError,
    get_settings,
)
from .normalizers import normalize
from .providers import BackendClient, UpstreamFetchDispatcher
from .services import AggregationOrchestrator
from .validation import validate

__version__ = "1.0.0"

__all__ = [
    "AggregationOrchestrator",
    "BackendClient",
    "FreshnessCache",
    "Game",
    "MissingAccountError",
    "PersistenceError",
    "Platform",
    "Profile",
    "Settings",
    "StatSelection",
    "StatsError",
    "StatsUnavailable",
    "UpstreamError",
    "UpstreamFetchDispatcher",
    "UpstreamTransientError",
    "get_settings",
    "normalize",
    "validate",
]
