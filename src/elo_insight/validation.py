"""
Prerequisite validation: is the account a game/platform needs linked?

A pure decision function driven by the static GAME_REGISTRY and
PLATFORM_LINK_FIELDS tables.  It returns the error instead of raising so
callers can check it repeatedly (e.g. to grey out platforms in a picker).
"""

from __future__ import annotations

import logging

from .core.errors import MissingAccountError
from .core.models import Profile
from .core.types import (
    PLATFORM_LINK_FIELDS,
    Game,
    Platform,
    get_game_config,
    is_valid_pair,
)

logger = logging.getLogger(__name__)


def validate(
    game: Game | str,
    platform: Platform | str,
    profile: Profile | None,
) -> MissingAccountError | None:
    """
    Decide whether the required account link exists.

    Args:
        game: Game display name or enum
        platform: Platform display name or enum
        profile: Current profile snapshot (None if not loaded yet)

    Returns:
        None when the selection may be saved, otherwise a MissingAccountError
        describing the link the user has to add.
    """
    game_label = game.value if isinstance(game, Game) else str(game)
    platform_label = platform.value if isinstance(platform, Platform) else str(platform)

    if not is_valid_pair(game, platform):
        logger.debug("Rejecting unknown pair %s/%s", game_label, platform_label)
        return MissingAccountError(
            game_label,
            platform_label,
            message=f"{platform_label} is not a supported platform for {game_label}.",
        )

    config = get_game_config(game)
    platform = Platform(platform)
    required = PLATFORM_LINK_FIELDS[platform]

    if required is None:
        return None
    if profile is None:
        return MissingAccountError(config.id.value, platform.value)

    if isinstance(required, tuple):
        linked = any(profile.linked(name) for name in required)
    else:
        linked = bool(profile.linked(required))

    if not linked:
        return MissingAccountError(config.id.value, platform.value)
    return None


def linked_platforms(game: Game | str, profile: Profile | None) -> list[Platform]:
    """Platforms of ``game`` the profile is ready to track."""
    config = get_game_config(game)
    return [p for p in config.platforms if validate(config.id, p, profile) is None]
