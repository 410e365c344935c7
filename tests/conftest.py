"""
Pytest configuration for elo-insight tests.

Provides in-memory fakes for the orchestrator's collaborators (backend,
upstream dispatcher, clock) so nothing touches the network.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from elo_insight.cache import FreshnessCache
from elo_insight.core.config import Settings
from elo_insight.core.errors import PersistenceError
from elo_insight.core.models import Profile, StatSelection
from elo_insight.core.types import Game, Platform
from elo_insight.services import AggregationOrchestrator


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeBackend:
    """In-memory stand-in for BackendClient."""

    def __init__(self, profile: Profile | None = None, rows: list[StatSelection] | None = None):
        self.profile = profile or Profile()
        self.rows = list(rows or [])
        self.next_id = 100
        self.fail_create = False
        self.fail_delete = False
        self.fail_list = False
        self.deleted: list[int] = []

    async def get_profile(self) -> Profile:
        return self.profile

    async def list_selections(self) -> list[StatSelection]:
        if self.fail_list:
            raise PersistenceError("HTTP 500: backend down", status_code=500)
        return [row.model_copy() for row in self.rows]

    async def create_selection(self, game: Game, platform: Platform) -> int:
        if self.fail_create:
            raise PersistenceError("HTTP 500: could not save", status_code=500)
        self.next_id += 1
        self.rows.append(StatSelection(id=self.next_id, game=game, platform=platform))
        return self.next_id

    async def delete_selection(self, selection_id: int) -> None:
        if self.fail_delete:
            raise PersistenceError("HTTP 500: could not delete", status_code=500)
        self.deleted.append(selection_id)
        self.rows = [row for row in self.rows if row.id != selection_id]

    async def close(self) -> None:
        pass


class FakeDispatcher:
    """
    In-memory stand-in for UpstreamFetchDispatcher.

    ``payloads`` maps a game to its raw payload, ``failures`` maps a game to
    the exception to raise.  ``gates`` maps a selection id to events; each
    call for that id waits on the next event before returning the payload
    captured when the call started.
    """

    def __init__(self):
        self.payloads: dict[Game, Any] = {}
        self.failures: dict[Game, Exception] = {}
        self.gates: dict[int, list[asyncio.Event]] = {}
        self.calls: list[int | None] = []

    async def fetch(self, selection: StatSelection, profile: Profile | None) -> Any:
        self.calls.append(selection.id)
        raw = self.payloads.get(selection.game)
        failure = self.failures.get(selection.game)
        gates = self.gates.get(selection.id)
        if gates:
            await gates.pop(0).wait()
        if failure is not None:
            raise failure
        return raw

    async def close(self) -> None:
        pass


def make_selection(selection_id: int, game: Game, platform: Platform, **kwargs) -> StatSelection:
    return StatSelection(id=selection_id, game=game, platform=platform, **kwargs)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        freshness_window_ms=30_000,
        refresh_on_add_delay=0.0,
        http_max_retries=1,
        requests_per_minute=60_000,
    )


@pytest.fixture
def profile() -> Profile:
    return Profile(
        steam_id="76561198000000000",
        ea_username="apex_player",
        riot_id="Faker#KR1",
        playstation_id="psn_player",
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock) -> FreshnessCache:
    return FreshnessCache(window_ms=30_000, clock=clock)


@pytest.fixture
def backend(profile) -> FakeBackend:
    return FakeBackend(profile=profile)


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def orchestrator(backend, dispatcher, cache, settings) -> AggregationOrchestrator:
    return AggregationOrchestrator(backend, dispatcher, cache=cache, settings=settings)
