"""
Backend client - persisted stat selections and the user profile.

Extends BaseApiClient for HTTP infrastructure.  Every failure is surfaced
as PersistenceError so the orchestrator can leave its local collection
untouched when the backend did not confirm a change.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import httpx
from pydantic import ValidationError

from ..core.config import Settings, get_settings
from ..core.errors import PersistenceError
from ..core.http import BaseApiClient, ExternalAPIError
from ..core.models import Profile, StatSelection
from ..core.types import Game, Platform

logger = logging.getLogger(__name__)


class BackendClient(BaseApiClient):
    """Reads and writes stat selections and reads the linked-account profile."""

    SELECTIONS_PATH = "/user/stats/"
    CREATE_SELECTION_PATH = "/user/stats/save"
    DELETE_SELECTION_PATH = "/user/stats/{id}"
    PROFILE_PATH = "/user/profile"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        super().__init__(
            base_url=settings.backend_url,
            headers=settings.auth_headers,
            requests_per_minute=settings.requests_per_minute,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            transport=transport,
        )

    @contextmanager
    def _persistence(self, action: str) -> Iterator[None]:
        try:
            yield
        except ExternalAPIError as e:
            logger.error("Backend %s failed: %s", action, e.message)
            raise PersistenceError(e.message, status_code=e.status_code) from e

    # =========================================================================
    # Profile
    # =========================================================================

    async def get_profile(self) -> Profile:
        """Fetch the profile snapshot; null fields become absent."""
        with self._persistence("profile fetch"):
            data = await self._get(self.PROFILE_PATH)
        return Profile.model_validate(data or {})

    # =========================================================================
    # Selections
    # =========================================================================

    async def list_selections(self) -> list[StatSelection]:
        """Return the authoritative list of saved selections.

        Rows naming a game or platform this engine does not know are
        skipped with a warning rather than failing the whole load.
        """
        with self._persistence("selection list"):
            rows = await self._get(self.SELECTIONS_PATH)

        selections: list[StatSelection] = []
        for row in rows or []:
            try:
                selections.append(StatSelection.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping unusable selection row %r: %s", row, e.errors()[0]["msg"])
        return selections

    async def create_selection(self, game: Game, platform: Platform) -> int:
        """Persist a selection and return its backend id."""
        with self._persistence("selection save"):
            data = await self._post(
                self.CREATE_SELECTION_PATH,
                json={"game": game.value, "platform": platform.value},
            )
        data = data if isinstance(data, dict) else {}
        selection_id = data.get("ID", data.get("id"))
        if selection_id is None:
            raise PersistenceError("Backend did not return an id for the new selection")
        return int(selection_id)

    async def delete_selection(self, selection_id: int) -> None:
        """Delete a persisted selection."""
        with self._persistence(f"delete of selection {selection_id}"):
            await self._delete(self.DELETE_SELECTION_PATH.format(id=selection_id))
