"""
Per-game normalizers: raw provider payload -> canonical stat record.

Each game's provider returns its own ad-hoc JSON shape.  A normalizer
collapses it into the canonical model registered for the game (see
core.models).  Normalizers are pure and never raise: empty input yields
StatsUnavailable("no data"), and anything unexpected is caught by the
``firewall`` decorator and reported as StatsUnavailable("malformed data").

Usage:
    from elo_insight.normalizers import normalize

    record = normalize(Game.CS2, {"total_kills": 100, "total_deaths": 50})
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from ..core.models import StatsUnavailable
from ..core.types import Game

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared utilities used by multiple normalizers (defined BEFORE the game
# imports so that `from . import safe_int` works without circular import)
# ---------------------------------------------------------------------------


def extract_value(val: Any) -> Any:
    """Normalize a stat value from various provider formats.

    tracker.gg returns nodes like {"value": 1520, "displayValue": "1,520"}.
    Steam and the stats proxy return flat numbers.  This handles both.

    Returns:
        int | float | None - the scalar value, or None if not extractable.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return val
    if isinstance(val, dict):
        for key in ("value", "total", "count"):
            if key in val and val[key] is not None:
                return extract_value(val[key])
        return None
    if isinstance(val, str):
        try:
            return float(val) if "." in val else int(val)
        except (ValueError, TypeError):
            return None
    return None


def safe_int(value: Any, default: int = 0) -> int:
    value = extract_value(value)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def safe_float(value: Any, default: float = 0.0) -> float:
    value = extract_value(value)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def safe_str(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return str(value)


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def ratio(numerator: float, denominator: float, digits: int = 2) -> float:
    """numerator / denominator, falling back to the numerator when the denominator is 0."""
    if not denominator:
        return round(float(numerator), digits)
    return round(numerator / denominator, digits)


def percentage(part: float, whole: float, digits: int = 2) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, digits)


def unavailable(raw: Any) -> StatsUnavailable | None:
    """Sentinel for payloads that carry nothing to normalize, else None."""
    if not raw or not isinstance(raw, dict):
        return StatsUnavailable()
    error = raw.get("error")
    if isinstance(error, str) and error:
        return StatsUnavailable(error=error)
    return None


def firewall(game: Game) -> Callable:
    """Decorator: guarantee a normalizer never raises."""

    def decorator(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
        @functools.wraps(func)
        def wrapper(raw: Any) -> Any:
            try:
                return func(raw)
            except Exception:
                logger.exception("Failed to normalize %s payload", game.value)
                return StatsUnavailable(error="malformed data")

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Game normalizers (imported after utilities to avoid circular import)
# ---------------------------------------------------------------------------

from .cs2 import normalize_cs2
from .apex import normalize_apex
from .dota2 import normalize_dota2
from .league import combine_match_pools, normalize_league
from .valorant import normalize_valorant
from .cod import normalize_cod

NORMALIZERS: dict[Game, Callable[[Any], Any]] = {
    Game.CS2: normalize_cs2,
    Game.APEX: normalize_apex,
    Game.DOTA2: normalize_dota2,
    Game.LEAGUE: normalize_league,
    Game.VALORANT: normalize_valorant,
    Game.COD: normalize_cod,
}


def get_normalizer(game: Game | str) -> Callable[[Any], Any]:
    """
    Get the normalizer for a game.

    Raises:
        KeyError: If no normalizer is registered for the game
    """
    try:
        return NORMALIZERS[Game(game)]
    except ValueError:
        raise KeyError(game) from None


def normalize(game: Game | str, raw: Any):
    """Normalize ``raw`` with the normalizer registered for ``game``."""
    return get_normalizer(game)(raw)


__all__ = [
    "NORMALIZERS",
    "combine_match_pools",
    "extract_value",
    "get_normalizer",
    "normalize",
    "normalize_apex",
    "normalize_cod",
    "normalize_cs2",
    "normalize_dota2",
    "normalize_league",
    "normalize_valorant",
]
