"""
Aggregation orchestrator - owns the selection collection.

Ties the other components together:
- Backend client: authoritative list of selections and the profile
- Prerequisite validation before anything is persisted
- Freshness cache gating automatic refreshes
- Upstream dispatcher + normalizers for each selection

Refreshes fan out over every due selection with asyncio.gather and fan in
once all of them have settled.  Each dispatched selection is stamped with
the batch generation; a result is merged only if no newer batch dispatched
the same selection in the meantime, so a slow response cannot overwrite a
fresher one.  Merging is by id onto the *current* collection: selections
removed while a batch was in flight stay removed, and ones added meanwhile
are kept.

Usage:
    orchestrator = AggregationOrchestrator(BackendClient(), UpstreamFetchDispatcher())
    await orchestrator.start()
    for selection in orchestrator.selections:
        print(selection.game, selection.canonical_data)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from ..cache import FreshnessCache
from ..core.config import Settings, get_settings
from ..core.errors import StatsError
from ..core.models import Profile, StatSelection
from ..core.types import Game, Platform
from ..normalizers import normalize
from ..providers.backend import BackendClient
from ..providers.dispatcher import UpstreamFetchDispatcher
from ..validation import validate

logger = logging.getLogger(__name__)


class AggregationOrchestrator:
    """
    Stateful owner of stat selections, their canonical data and the profile.

    Collaborators are injected so tests can substitute in-memory fakes.
    """

    def __init__(
        self,
        backend: BackendClient,
        dispatcher: UpstreamFetchDispatcher,
        cache: FreshnessCache | None = None,
        settings: Settings | None = None,
        normalizer: Callable[[Game, Any], Any] = normalize,
    ):
        self.settings = settings or get_settings()
        self.backend = backend
        self.dispatcher = dispatcher
        self.cache = cache or FreshnessCache(window_ms=self.settings.freshness_window_ms)
        self._normalize = normalizer

        self.selections: list[StatSelection] = []
        self.profile: Profile | None = None

        self._generation = 0
        # selection id -> generation of the newest batch that dispatched it
        self._dispatched: dict[int, int] = {}
        self._pending: set[asyncio.Task] = set()

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_selection(self, selection_id: int) -> StatSelection | None:
        for selection in self.selections:
            if selection.id == selection_id:
                return selection
        return None

    # =========================================================================
    # Loading
    # =========================================================================

    async def load_profile(self) -> Profile:
        """Fetch the linked-account snapshot from the backend."""
        self.profile = await self.backend.get_profile()
        return self.profile

    async def load_selections(self, preserve_data: bool | None = None) -> list[StatSelection]:
        """
        Replace the collection with the backend's list.

        Args:
            preserve_data: Keep already-fetched data for ids that are still
                present (defaults to settings.preserve_data_on_reload).
                Otherwise every selection starts with canonical_data=None.

        Raises:
            PersistenceError: If the backend call fails (collection unchanged)
        """
        if preserve_data is None:
            preserve_data = self.settings.preserve_data_on_reload

        rows = await self.backend.list_selections()
        previous = {s.id: s for s in self.selections if s.id is not None} if preserve_data else {}

        loaded: list[StatSelection] = []
        for row in rows:
            kept = previous.get(row.id)
            if kept is not None and kept.key == row.key:
                loaded.append(
                    row.model_copy(
                        update={"canonical_data": kept.canonical_data, "fetch_error": kept.fetch_error}
                    )
                )
            else:
                loaded.append(row.model_copy(update={"canonical_data": None, "fetch_error": None}))

        self.selections = loaded
        logger.info("Loaded %d stat selections", len(loaded))
        return self.selections

    async def start(self) -> list[StatSelection]:
        """Load profile and selections, then run the first refresh."""
        await self.load_profile()
        await self.load_selections()
        return await self.refresh_all()

    # =========================================================================
    # Mutations
    # =========================================================================

    async def add_selection(self, game: Game | str, platform: Platform | str) -> StatSelection:
        """
        Validate, persist and start tracking a (game, platform) pair.

        The new selection is inserted without data; a refresh of it is
        scheduled after settings.refresh_on_add_delay seconds.

        Raises:
            MissingAccountError: Account link missing (nothing persisted)
            PersistenceError: Backend rejected the save (collection unchanged)
        """
        if self.profile is None:
            await self.load_profile()

        error = validate(game, platform, self.profile)
        if error is not None:
            logger.info("Refusing %s/%s: %s", error.game, error.platform, error.message)
            raise error

        game, platform = Game(game), Platform(platform)
        selection_id = await self.backend.create_selection(game, platform)
        selection = StatSelection(id=selection_id, game=game, platform=platform)
        self.selections = [*self.selections, selection]
        logger.info("Added selection %d (%s on %s)", selection_id, game.value, platform.value)

        self._schedule_refresh(selection_id)
        return selection

    async def remove_selection(self, selection_id: int) -> StatSelection:
        """
        Delete a selection on the backend, then locally.

        Raises:
            KeyError: Unknown selection id
            PersistenceError: Backend delete failed (nothing changed locally)
        """
        selection = self.get_selection(selection_id)
        if selection is None:
            raise KeyError(selection_id)

        await self.backend.delete_selection(selection_id)

        self.selections = [s for s in self.selections if s.id != selection_id]
        self._dispatched.pop(selection_id, None)
        if not any(s.key == selection.key for s in self.selections):
            self.cache.forget(selection.key)
        logger.info("Removed selection %d (%s)", selection_id, selection.key)
        return selection

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh_all(self) -> list[StatSelection]:
        """Refresh every selection whose key is outside the freshness window."""
        if self.profile is None:
            logger.info("Profile not loaded, skipping refresh")
            return self.selections

        now = self.cache.now()
        claimed: set[str] = set()
        due: list[StatSelection] = []
        for selection in self.selections:
            if selection.key in claimed or self.cache.should_fetch(selection.key, now):
                # Recorded before awaiting so a concurrent refresh skips this key.
                self.cache.record_fetch(selection.key, now)
                claimed.add(selection.key)
                due.append(selection)
            else:
                age = now - (self.cache.last_fetched(selection.key) or now)
                logger.debug("Skipping %s, fetched %.0fms ago", selection.key, age)

        if not due:
            logger.debug("All %d selections are fresh", len(self.selections))
            return self.selections

        await self._run_batch(due)
        return self.selections

    async def refresh_one(self, selection_id: int) -> StatSelection:
        """
        Refresh a single selection regardless of the freshness window.

        Raises:
            KeyError: Unknown selection id
        """
        selection = self.get_selection(selection_id)
        if selection is None:
            raise KeyError(selection_id)
        if self.profile is None:
            logger.info("Profile not loaded, skipping refresh of %d", selection_id)
            return selection

        self.cache.record_fetch(selection.key)
        await self._run_batch([selection])
        return self.get_selection(selection_id) or selection

    async def _run_batch(self, batch: list[StatSelection]) -> None:
        self._generation += 1
        generation = self._generation
        for selection in batch:
            if selection.id is not None:
                self._dispatched[selection.id] = generation

        profile = self.profile
        results = await asyncio.gather(*(self._fetch(s, profile) for s in batch))
        self._merge(results, generation)

    async def _fetch(self, selection: StatSelection, profile: Profile | None) -> StatSelection:
        try:
            raw = await self.dispatcher.fetch(selection, profile)
            data = self._normalize(selection.game, raw)
        except StatsError as e:
            logger.warning("Fetch failed for %s: %s", selection.key, e.message)
            return selection.model_copy(update={"canonical_data": None, "fetch_error": e.message})
        except Exception as e:
            logger.exception("Unexpected error fetching %s", selection.key)
            return selection.model_copy(update={"canonical_data": None, "fetch_error": str(e)})
        return selection.model_copy(update={"canonical_data": data, "fetch_error": None})

    def _merge(self, results: list[StatSelection], generation: int) -> None:
        updates: dict[int, StatSelection] = {}
        for result in results:
            if result.id is None or self._dispatched.get(result.id) != generation:
                logger.debug("Discarding stale result for %s (batch %d)", result.key, generation)
                continue
            updates[result.id] = result
            del self._dispatched[result.id]

        self.selections = [updates.get(s.id, s) for s in self.selections]
        logger.info("Batch %d merged %d of %d results", generation, len(updates), len(results))

    # =========================================================================
    # Deferred refresh after add
    # =========================================================================

    def _schedule_refresh(self, selection_id: int) -> None:
        task = asyncio.create_task(self._refresh_after_delay(selection_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refresh_after_delay(self, selection_id: int) -> None:
        await asyncio.sleep(self.settings.refresh_on_add_delay)
        if self.get_selection(selection_id) is None:
            return
        await self.refresh_one(selection_id)

    async def drain(self) -> None:
        """Wait for scheduled post-add refreshes to finish."""
        while self._pending:
            await asyncio.gather(*self._pending)

    async def close(self) -> None:
        """Cancel scheduled refreshes."""
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()
