"""
Upstream fetch dispatcher - one stats endpoint per game.

Resolves which linked identifier a selection needs, calls the matching
per-game endpoint on the stats proxy, and hands back the raw JSON.  It
never interprets the payload; that is the normalizers' job.

Identifier rules:
- CS2, Dota 2: steam_id
- Apex Legends: ea_username on EA, playstation_id / xbox_id on consoles
- League of Legends: every Riot field that is present (relaxed; any one works)
- Valorant: riot_id only (strict)
- Call of Duty: playstation_id / xbox_id; Battle.net borrows ea_username
  until Battle.net linking exists
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from ..core.config import Settings, get_settings
from ..core.errors import MissingAccountError, UpstreamError, UpstreamTransientError
from ..core.http import BaseApiClient, ExternalAPIError
from ..core.models import Profile, StatSelection
from ..core.types import Game, Platform, get_game_config

logger = logging.getLogger(__name__)

ParamsResolver = Callable[[StatSelection, Profile], "dict[str, str] | None"]


def _steam_params(selection: StatSelection, profile: Profile) -> dict[str, str] | None:
    if not profile.steam_id:
        return None
    return {"steam_id": profile.steam_id}


def _apex_params(selection: StatSelection, profile: Profile) -> dict[str, str] | None:
    username = {
        Platform.EA: profile.ea_username,
        Platform.PLAYSTATION: profile.playstation_id,
        Platform.XBOX: profile.xbox_id,
    }.get(selection.platform)
    if not username:
        return None
    return {"username": username, "platform": selection.platform.value.lower()}


def _league_params(selection: StatSelection, profile: Profile) -> dict[str, str] | None:
    return profile.riot_params or None


def _valorant_params(selection: StatSelection, profile: Profile) -> dict[str, str] | None:
    if not profile.riot_id:
        return None
    return {"riot_id": profile.riot_id}


def _cod_params(selection: StatSelection, profile: Profile) -> dict[str, str] | None:
    username = {
        Platform.PLAYSTATION: profile.playstation_id,
        Platform.XBOX: profile.xbox_id,
        Platform.BATTLENET: profile.ea_username,
    }.get(selection.platform)
    if not username:
        return None
    return {"username": username, "platform": selection.platform.value.lower()}


PARAM_RESOLVERS: dict[Game, ParamsResolver] = {
    Game.CS2: _steam_params,
    Game.DOTA2: _steam_params,
    Game.APEX: _apex_params,
    Game.LEAGUE: _league_params,
    Game.VALORANT: _valorant_params,
    Game.COD: _cod_params,
}


class UpstreamFetchDispatcher(BaseApiClient):
    """Fetches raw per-game stats from the stats proxy."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        super().__init__(
            base_url=settings.stats_url,
            headers=settings.auth_headers,
            requests_per_minute=settings.requests_per_minute,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            transport=transport,
        )

    @staticmethod
    def resolve_params(selection: StatSelection, profile: Profile | None) -> dict[str, str]:
        """
        Query parameters identifying the account to fetch.

        Raises:
            MissingAccountError: If the profile lacks the identifier the game needs
        """
        params = PARAM_RESOLVERS[selection.game](selection, profile or Profile())
        if not params:
            raise MissingAccountError(selection.game.value, selection.platform.value)
        return params

    async def fetch(self, selection: StatSelection, profile: Profile | None) -> Any:
        """
        Fetch the raw payload for one selection.

        Returns:
            Decoded JSON body, or None when the provider answered with an
            empty or non-JSON body (the normalizer turns that into "no data").

        Raises:
            MissingAccountError: Identifier missing; no request is made
            UpstreamTransientError: Network error, 5xx, or rate limit exhausted
            UpstreamError: Any other non-success response
        """
        params = self.resolve_params(selection, profile)
        endpoint = get_game_config(selection.game).endpoint
        game = selection.game.value

        logger.info("Fetching %s stats (%s) from %s", game, selection.platform.value, endpoint)
        try:
            return await self._get(endpoint, params=params)
        except ExternalAPIError as e:
            if e.code == "INVALID_RESPONSE":
                logger.warning("Unreadable %s payload, treating as empty: %s", game, e.message)
                return None
            if e.is_transient:
                raise UpstreamTransientError(game, e.message, status_code=e.status_code) from e
            raise UpstreamError(game, e.message, status_code=e.status_code) from e
