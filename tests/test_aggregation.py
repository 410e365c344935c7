"""Tests for the aggregation orchestrator using in-memory collaborators."""

import asyncio

import pytest

from conftest import make_selection
from elo_insight.core.errors import (
    MissingAccountError,
    PersistenceError,
    UpstreamError,
    UpstreamTransientError,
)
from elo_insight.core.models import CS2Stats, Dota2Stats, Profile, StatsUnavailable
from elo_insight.core.types import Game, Platform

CS2_RAW = {"total_kills": 100, "total_deaths": 50}
DOTA_RAW = {"profile": {"personaname": "Miracle-"}, "stats": {"matches_played": 3}}
LEAGUE_RAW = {"matches": {"totalGames": 10, "wins": 6}}


async def wait_for_calls(dispatcher, count: int) -> None:
    while len(dispatcher.calls) < count:
        await asyncio.sleep(0)


class TestLoading:
    @pytest.mark.asyncio
    async def test_start_loads_and_refreshes(self, orchestrator, backend, dispatcher):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        dispatcher.payloads[Game.CS2] = CS2_RAW

        selections = await orchestrator.start()

        assert orchestrator.profile == backend.profile
        assert isinstance(selections[0].canonical_data, CS2Stats)
        assert selections[0].canonical_data.kd_ratio == 2.0

    @pytest.mark.asyncio
    async def test_reload_discards_data_by_default(self, orchestrator, backend, dispatcher):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        dispatcher.payloads[Game.CS2] = CS2_RAW
        await orchestrator.start()

        await orchestrator.load_selections()

        assert orchestrator.selections[0].canonical_data is None

    @pytest.mark.asyncio
    async def test_reload_can_preserve_data(self, orchestrator, backend, dispatcher):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        dispatcher.payloads[Game.CS2] = CS2_RAW
        await orchestrator.start()
        backend.rows.append(make_selection(2, Game.DOTA2, Platform.STEAM))

        await orchestrator.load_selections(preserve_data=True)

        by_id = {s.id: s for s in orchestrator.selections}
        assert isinstance(by_id[1].canonical_data, CS2Stats)
        assert by_id[2].canonical_data is None

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_collection(self, orchestrator, backend):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        await orchestrator.load_selections()
        backend.fail_list = True

        with pytest.raises(PersistenceError):
            await orchestrator.load_selections()
        assert [s.id for s in orchestrator.selections] == [1]


class TestRefreshAll:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_block_others(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [
            make_selection(1, Game.CS2, Platform.STEAM),
            make_selection(2, Game.DOTA2, Platform.STEAM),
            make_selection(3, Game.LEAGUE, Platform.RIOT),
        ]
        dispatcher.payloads = {Game.CS2: CS2_RAW, Game.LEAGUE: LEAGUE_RAW}
        dispatcher.failures[Game.DOTA2] = UpstreamTransientError("Dota 2", "HTTP 503", 503)

        await orchestrator.refresh_all()

        by_id = {s.id: s for s in orchestrator.selections}
        assert isinstance(by_id[1].canonical_data, CS2Stats)
        assert by_id[3].canonical_data.matches.win_rate == 60.0
        assert by_id[2].canonical_data is None
        assert by_id[2].fetch_error == "HTTP 503"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_isolated(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [
            make_selection(1, Game.CS2, Platform.STEAM),
            make_selection(2, Game.DOTA2, Platform.STEAM),
        ]
        dispatcher.payloads[Game.DOTA2] = DOTA_RAW
        dispatcher.failures[Game.CS2] = RuntimeError("boom")

        await orchestrator.refresh_all()

        by_id = {s.id: s for s in orchestrator.selections}
        assert by_id[1].fetch_error == "boom"
        assert isinstance(by_id[2].canonical_data, Dota2Stats)

    @pytest.mark.asyncio
    async def test_empty_payload_gives_sentinel(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]

        await orchestrator.refresh_all()

        assert orchestrator.selections[0].canonical_data == StatsUnavailable()
        assert orchestrator.selections[0].fetch_error is None

    @pytest.mark.asyncio
    async def test_respects_freshness_window(self, orchestrator, backend, dispatcher, clock):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]

        await orchestrator.refresh_all()
        clock.advance(29_999)
        await orchestrator.refresh_all()
        assert dispatcher.calls == [1]

        clock.advance(1)
        await orchestrator.refresh_all()
        assert dispatcher.calls == [1, 1]

    @pytest.mark.asyncio
    async def test_logs_age_of_skipped_keys(self, orchestrator, backend, clock, caplog):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]
        await orchestrator.refresh_all()
        clock.advance(1_500)

        with caplog.at_level("DEBUG", logger="elo_insight.services.aggregation"):
            await orchestrator.refresh_all()

        assert "Skipping CS2_Steam, fetched 1500ms ago" in caplog.text

    @pytest.mark.asyncio
    async def test_concurrent_refresh_does_not_duplicate(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]

        await asyncio.gather(orchestrator.refresh_all(), orchestrator.refresh_all())

        assert dispatcher.calls == [1]

    @pytest.mark.asyncio
    async def test_skipped_without_profile(self, orchestrator, dispatcher):
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]

        await orchestrator.refresh_all()

        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_missing_account_recorded_per_selection(self, orchestrator, dispatcher):
        orchestrator.profile = Profile(steam_id="765")
        orchestrator.selections = [make_selection(1, Game.VALORANT, Platform.RIOT)]
        dispatcher.failures[Game.VALORANT] = MissingAccountError("Valorant", "Riot")

        await orchestrator.refresh_all()

        assert "Link your Riot account" in orchestrator.selections[0].fetch_error


class TestRefreshOne:
    @pytest.mark.asyncio
    async def test_bypasses_freshness_window(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]
        dispatcher.payloads[Game.CS2] = CS2_RAW

        await orchestrator.refresh_all()
        refreshed = await orchestrator.refresh_one(1)

        assert dispatcher.calls == [1, 1]
        assert refreshed.canonical_data.kills == 100

    @pytest.mark.asyncio
    async def test_records_fetch_time(self, orchestrator, backend, dispatcher, cache):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]

        await orchestrator.refresh_one(1)

        assert not cache.should_fetch("CS2_Steam")

    @pytest.mark.asyncio
    async def test_unknown_id(self, orchestrator):
        with pytest.raises(KeyError):
            await orchestrator.refresh_one(999)


class TestStaleResults:
    @pytest.mark.asyncio
    async def test_older_batch_does_not_overwrite_newer(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]
        gate = asyncio.Event()
        dispatcher.gates[1] = [gate]
        dispatcher.payloads[Game.CS2] = {"total_kills": 1, "total_deaths": 1}

        slow = asyncio.create_task(orchestrator.refresh_one(1))
        await wait_for_calls(dispatcher, 1)

        dispatcher.payloads[Game.CS2] = CS2_RAW
        await orchestrator.refresh_one(1)
        gate.set()
        await slow

        assert orchestrator.selections[0].canonical_data.kills == 100

    @pytest.mark.asyncio
    async def test_removed_selection_not_resurrected(self, orchestrator, backend, dispatcher):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        await orchestrator.load_profile()
        await orchestrator.load_selections()
        gate = asyncio.Event()
        dispatcher.gates[1] = [gate]
        dispatcher.payloads[Game.CS2] = CS2_RAW

        refresh = asyncio.create_task(orchestrator.refresh_all())
        await wait_for_calls(dispatcher, 1)
        await orchestrator.remove_selection(1)
        gate.set()
        await refresh

        assert orchestrator.selections == []

    @pytest.mark.asyncio
    async def test_added_selection_survives_merge(self, orchestrator, backend, dispatcher):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        await orchestrator.load_profile()
        await orchestrator.load_selections()
        gate = asyncio.Event()
        dispatcher.gates[1] = [gate]

        refresh = asyncio.create_task(orchestrator.refresh_all())
        await wait_for_calls(dispatcher, 1)
        added = await orchestrator.add_selection(Game.DOTA2, Platform.STEAM)
        gate.set()
        await refresh
        await orchestrator.drain()

        assert [s.id for s in orchestrator.selections] == [1, added.id]


class TestAddSelection:
    @pytest.mark.asyncio
    async def test_add_persists_and_schedules_refresh(self, orchestrator, backend, dispatcher):
        dispatcher.payloads[Game.DOTA2] = DOTA_RAW

        added = await orchestrator.add_selection("Dota 2", "Steam")

        assert added.id == 101
        assert added.canonical_data is None
        assert [row.id for row in backend.rows] == [101]

        await orchestrator.drain()
        stored = orchestrator.get_selection(101)
        assert stored.canonical_data.player_name == "Miracle-"

    @pytest.mark.asyncio
    async def test_missing_account_rejected_without_persisting(self, orchestrator, backend):
        backend.profile = Profile(steam_id="765")

        with pytest.raises(MissingAccountError) as exc_info:
            await orchestrator.add_selection(Game.APEX, Platform.XBOX)

        assert exc_info.value == MissingAccountError("Apex Legends", "Xbox")
        assert backend.rows == []
        assert orchestrator.selections == []

    @pytest.mark.asyncio
    async def test_invalid_pair_rejected(self, orchestrator, backend):
        with pytest.raises(MissingAccountError):
            await orchestrator.add_selection("CS2", "Riot")
        assert backend.rows == []

    @pytest.mark.asyncio
    async def test_backend_failure_leaves_collection(self, orchestrator, backend):
        backend.fail_create = True

        with pytest.raises(PersistenceError):
            await orchestrator.add_selection(Game.CS2, Platform.STEAM)
        assert orchestrator.selections == []


class TestRemoveSelection:
    @pytest.mark.asyncio
    async def test_add_then_remove(self, orchestrator, cache, dispatcher):
        added = await orchestrator.add_selection(Game.CS2, Platform.STEAM)
        await orchestrator.drain()
        assert cache.last_fetched("CS2_Steam") is not None

        await orchestrator.remove_selection(added.id)

        assert orchestrator.selections == []
        assert cache.last_fetched("CS2_Steam") is None

    @pytest.mark.asyncio
    async def test_shared_key_kept_while_in_use(self, orchestrator, backend, cache):
        backend.rows = [
            make_selection(1, Game.CS2, Platform.STEAM),
            make_selection(2, Game.CS2, Platform.STEAM),
        ]
        await orchestrator.start()

        await orchestrator.remove_selection(1)

        assert cache.last_fetched("CS2_Steam") is not None

    @pytest.mark.asyncio
    async def test_failed_delete_changes_nothing(self, orchestrator, backend, cache, dispatcher):
        backend.rows = [make_selection(1, Game.CS2, Platform.STEAM)]
        dispatcher.payloads[Game.CS2] = CS2_RAW
        await orchestrator.start()
        before = list(orchestrator.selections)
        last = cache.last_fetched("CS2_Steam")
        backend.fail_delete = True

        with pytest.raises(PersistenceError):
            await orchestrator.remove_selection(1)

        assert orchestrator.selections == before
        assert cache.last_fetched("CS2_Steam") == last

    @pytest.mark.asyncio
    async def test_unknown_id(self, orchestrator, backend):
        with pytest.raises(KeyError):
            await orchestrator.remove_selection(5)
        assert backend.deleted == []


class TestUpstreamErrors:
    @pytest.mark.asyncio
    async def test_permanent_error_message_kept(self, orchestrator, backend, dispatcher):
        orchestrator.profile = backend.profile
        orchestrator.selections = [make_selection(1, Game.CS2, Platform.STEAM)]
        dispatcher.failures[Game.CS2] = UpstreamError("CS2", "HTTP 403: private profile", 403)

        await orchestrator.refresh_all()

        assert orchestrator.selections[0].fetch_error == "HTTP 403: private profile"
