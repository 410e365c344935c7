"""
Stats router - tracked games and their canonical stats.

Endpoints:
- GET    /stats                 - All selections with canonical data
- POST   /stats                 - Track a new (game, platform) pair
- DELETE /stats/{selection_id}  - Stop tracking a selection
- POST   /stats/refresh         - Refresh every selection outside the freshness window
- POST   /stats/{selection_id}/refresh - Refresh one selection now
- GET    /profile               - Linked-account snapshot
- GET    /games                 - Game -> platforms table with link status

Engine errors propagate and are rendered by the handlers in ``api.errors``.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from ..dependencies import OrchestratorDependency
from ..errors import NotFoundError
from ...core.models import Profile, StatSelection
from ...core.types import GAME_REGISTRY, PLATFORM_LINK_FIELDS, Game, Platform
from ...validation import linked_platforms

logger = logging.getLogger(__name__)

router = APIRouter()


class SelectionRequest(BaseModel):
    game: Game
    platform: Platform


@router.get("/stats")
async def list_stats(orchestrator: OrchestratorDependency) -> list[StatSelection]:
    """Return every selection; canonical_data is null until fetched."""
    return orchestrator.selections


@router.post("/stats", status_code=status.HTTP_201_CREATED)
async def add_stat(body: SelectionRequest, orchestrator: OrchestratorDependency) -> StatSelection:
    """
    Start tracking a game on a platform.

    The matching account must be linked on the profile.  The new selection
    is returned immediately without data; its first refresh is scheduled
    in the background.
    """
    return await orchestrator.add_selection(body.game, body.platform)


@router.post("/stats/refresh")
async def refresh_stats(orchestrator: OrchestratorDependency) -> list[StatSelection]:
    """Refresh selections outside the freshness window."""
    return await orchestrator.refresh_all()


@router.delete("/stats/{selection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_stat(selection_id: int, orchestrator: OrchestratorDependency) -> None:
    try:
        await orchestrator.remove_selection(selection_id)
    except KeyError:
        raise NotFoundError("Stat selection", selection_id)


@router.post("/stats/{selection_id}/refresh")
async def refresh_stat(selection_id: int, orchestrator: OrchestratorDependency) -> StatSelection:
    """Refresh one selection, ignoring the freshness window."""
    try:
        return await orchestrator.refresh_one(selection_id)
    except KeyError:
        raise NotFoundError("Stat selection", selection_id)


@router.get("/profile")
async def get_profile(orchestrator: OrchestratorDependency) -> Profile:
    if orchestrator.profile is None:
        await orchestrator.load_profile()
    return orchestrator.profile


@router.get("/games")
async def list_games(orchestrator: OrchestratorDependency) -> list[dict[str, Any]]:
    """
    Supported games, their platforms and the profile field each platform needs.

    ``linked`` tells a platform picker whether the current profile already
    has the account that platform requires.
    """
    if orchestrator.profile is None:
        await orchestrator.load_profile()

    games = []
    for config in GAME_REGISTRY.values():
        ready = set(linked_platforms(config.id, orchestrator.profile))
        platforms = []
        for platform in config.platforms:
            required = PLATFORM_LINK_FIELDS[platform]
            if isinstance(required, str):
                required = [required]
            platforms.append({
                "platform": platform.value,
                "requires": list(required or []),
                "linked": platform in ready,
            })
        games.append({"game": config.id.value, "name": config.name, "platforms": platforms})
    return games
