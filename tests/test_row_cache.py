"""Tests for RowWindowCache: coalesced fetches, staleness and eviction."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from rowwindow.application.runners import SynchronousTaskRunner
from rowwindow.cache import ReloadController, RowWindowCache
from rowwindow.domain.models.rows import FetchOutcome, LookupState
from rowwindow.domain.models.sort import ColumnSort, SortState
from rowwindow.domain.models.window import Window
from rowwindow.errors import ProviderError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _states(cache: RowWindowCache, window: Window):
    return [slot.state for slot in cache.get(window)]


@pytest.fixture
def cache(provider, reload_controller, deferred_runner) -> RowWindowCache:
    return RowWindowCache(provider, reload_controller, deferred_runner, retention_margin=0)


@pytest.fixture
def sync_cache(provider, reload_controller) -> RowWindowCache:
    return RowWindowCache(provider, reload_controller, SynchronousTaskRunner(), retention_margin=0)


# ---------------------------------------------------------------------------
# ReloadController
# ---------------------------------------------------------------------------


class TestReloadController:
    def test_invalidate_increments_version(self, reload_controller):
        assert reload_controller.current_version() == 0
        assert reload_controller.invalidate() == 1
        assert reload_controller.invalidate() == 2
        assert reload_controller.current_version() == 2

    def test_invalidate_notifies(self, reload_controller):
        handler = Mock()
        reload_controller.reloaded.connect(handler)
        reload_controller.invalidate()
        handler.assert_called_once_with(1)


# ---------------------------------------------------------------------------
# Lookup and fetching
# ---------------------------------------------------------------------------


class TestLookup:
    def test_unknown_index_is_miss(self, cache):
        slot = cache.lookup(3)
        assert slot.state is LookupState.MISS
        assert slot.row is None

    def test_ensure_marks_pending(self, cache, deferred_runner):
        cache.ensure(Window(0, 3))
        assert _states(cache, Window(0, 3)) == [LookupState.PENDING] * 3
        assert deferred_runner.pending == 1
        assert cache.in_flight == 1

    def test_result_becomes_hit(self, cache, deferred_runner, rows):
        cache.ensure(Window(0, 3))
        deferred_runner.run()
        slots = cache.get(Window(0, 3))
        assert [slot.row for slot in slots] == rows[0:3]
        assert all(slot.is_loaded for slot in slots)
        assert cache.entry(1).fetched_at_version == 0
        assert cache.in_flight == 0

    def test_get_never_calls_provider(self, cache, provider):
        cache.get(Window(0, 50))
        assert provider.fetch_calls == []

    def test_rows_loaded_signal(self, cache, deferred_runner):
        handler = Mock()
        cache.rows_loaded.connect(handler)
        cache.ensure(Window(4, 8))
        deferred_runner.run()
        handler.assert_called_once_with(Window(4, 8))

    def test_fetch_uses_current_sort(self, cache, deferred_runner, provider):
        sort = SortState.of(("score", ColumnSort.DESCENDING))
        cache.set_sort(sort)
        cache.ensure(Window(0, 5))
        deferred_runner.run()
        assert provider.fetch_calls == [(Window(0, 5), sort)]

    def test_index_of(self, cache, deferred_runner):
        cache.ensure(Window(0, 5))
        deferred_runner.run()
        assert cache.index_of(3) == 3
        assert cache.index_of(99) is None


class TestCoalescing:
    def test_one_call_per_missing_run(self, cache, deferred_runner, provider):
        cache.ensure(Window(10, 13))
        deferred_runner.run()
        cache.ensure(Window(30, 32))
        deferred_runner.run()
        provider.fetch_calls.clear()

        runs = cache.ensure(Window(0, 40))

        assert runs == [Window(0, 10), Window(13, 30), Window(32, 40)]
        assert deferred_runner.pending == 3
        deferred_runner.run_all()
        assert [call[0] for call in provider.fetch_calls] == runs

    def test_fully_cached_window_issues_nothing(self, cache, deferred_runner):
        cache.ensure(Window(0, 10))
        deferred_runner.run()
        assert cache.ensure(Window(2, 8)) == []
        assert deferred_runner.pending == 0

    def test_pending_indices_not_refetched(self, cache, deferred_runner):
        cache.ensure(Window(0, 10))
        assert cache.ensure(Window(5, 15)) == [Window(10, 15)]
        assert deferred_runner.pending == 2

    def test_reentrant_ensure_from_handler(self, sync_cache, provider):
        # A synchronous runner delivers inside ``ensure``; a handler asking
        # for the same window again must not trigger duplicate fetches.
        sync_cache.rows_loaded.connect(lambda window: sync_cache.ensure(Window(0, 20)))
        sync_cache.ensure(Window(0, 20))
        assert len(provider.fetch_calls) == 1


# ---------------------------------------------------------------------------
# Staleness
# ---------------------------------------------------------------------------


class TestStaleness:
    def test_result_from_old_version_is_discarded(self, cache, reload_controller):
        cache.ensure(Window(0, 2))
        reload_controller.invalidate()
        outcome = cache.on_fetch_result(Window(0, 2), 0, rows=["old", "old"])
        assert outcome is FetchOutcome.STALE
        assert _states(cache, Window(0, 2)) == [LookupState.MISS] * 2

    def test_late_old_version_never_overwrites_new(self, cache, deferred_runner, reload_controller):
        cache.ensure(Window(0, 10))
        reload_controller.invalidate()
        cache.ensure(Window(0, 10))
        assert deferred_runner.pending == 2

        # Version 1 arrives first, version 0 last.
        deferred_runner.run(1)
        deferred_runner.run(0)

        assert all(cache.entry(index).fetched_at_version == 1 for index in range(10))
        assert cache.in_flight == 0

    def test_old_version_failure_is_ignored(self, cache, deferred_runner, reload_controller):
        failed = Mock()
        cache.fetch_failed.connect(failed)
        cache.ensure(Window(0, 5))
        reload_controller.invalidate()
        deferred_runner.fail(RuntimeError("late"))
        failed.assert_not_called()
        assert _states(cache, Window(0, 5)) == [LookupState.MISS] * 5

    def test_invalidate_clears_everything(self, cache, deferred_runner, reload_controller):
        cache.ensure(Window(0, 5))
        deferred_runner.run()
        cache.ensure(Window(5, 8))
        reload_controller.invalidate()
        assert len(cache) == 0
        assert cache.pending_indices == []


# ---------------------------------------------------------------------------
# Short and surplus results
# ---------------------------------------------------------------------------


class TestResultSize:
    def test_short_result_reports_end_of_data(self, provider_factory, reload_controller):
        provider = provider_factory(10)
        cache = RowWindowCache(provider, reload_controller, SynchronousTaskRunner())
        ended = Mock()
        cache.end_of_data.connect(ended)

        cache.ensure(Window(5, 20))

        ended.assert_called_once_with(10)
        assert _states(cache, Window(5, 10)) == [LookupState.HIT] * 5
        assert _states(cache, Window(10, 20)) == [LookupState.MISS] * 10

    def test_surplus_rows_are_ignored(self, cache):
        cache.ensure(Window(0, 2))
        outcome = cache.on_fetch_result(Window(0, 2), 0, rows=["a", "b", "c"])
        assert outcome is FetchOutcome.INSTALLED
        assert [slot.row for slot in cache.get(Window(0, 3))] == ["a", "b", None]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_failure_marks_rows_as_error(self, sync_cache, provider):
        failed = Mock()
        sync_cache.fetch_failed.connect(failed)
        provider.fail_fetch = RuntimeError("boom")

        sync_cache.ensure(Window(0, 3))

        slot = sync_cache.lookup(1)
        assert slot.state is LookupState.ERROR
        assert isinstance(slot.error, ProviderError)
        assert isinstance(slot.error.__cause__, RuntimeError)
        failed.assert_called_once()
        assert failed.call_args.args[0] == Window(0, 3)

    def test_errors_are_not_refetched_by_ensure(self, sync_cache, provider):
        provider.fail_fetch = RuntimeError("boom")
        sync_cache.ensure(Window(0, 3))
        provider.fail_fetch = None
        assert sync_cache.ensure(Window(0, 3)) == []
        assert len(provider.fetch_calls) == 1

    def test_retry_refetches(self, sync_cache, provider, rows):
        provider.fail_fetch = RuntimeError("boom")
        sync_cache.ensure(Window(0, 3))
        provider.fail_fetch = None

        assert sync_cache.retry(Window(0, 3)) == [Window(0, 3)]
        assert [slot.row for slot in sync_cache.get(Window(0, 3))] == rows[0:3]

    def test_provider_error_passes_through_unwrapped(self, sync_cache, provider):
        error = ProviderError("offline")
        provider.fail_fetch = error
        sync_cache.ensure(Window(0, 1))
        assert sync_cache.lookup(0).error is error


# ---------------------------------------------------------------------------
# Eviction
# ---------------------------------------------------------------------------


class TestEviction:
    def test_evicts_outside_keep(self, sync_cache):
        sync_cache.ensure(Window(0, 50))
        removed = sync_cache.evict(Window(20, 30))
        assert removed == 40
        assert _states(sync_cache, Window(0, 20)) == [LookupState.MISS] * 20
        assert _states(sync_cache, Window(20, 30)) == [LookupState.HIT] * 10
        assert _states(sync_cache, Window(30, 50)) == [LookupState.MISS] * 20

    def test_kept_rows_are_not_refetched(self, sync_cache, provider):
        sync_cache.ensure(Window(0, 50))
        sync_cache.evict(Window(20, 30))
        provider.fetch_calls.clear()
        sync_cache.ensure(Window(20, 30))
        assert provider.fetch_calls == []

    def test_retention_margin_keeps_neighbours(self, provider, reload_controller):
        cache = RowWindowCache(provider, reload_controller, SynchronousTaskRunner(), retention_margin=5)
        cache.ensure(Window(0, 50))
        cache.evict(Window(20, 30))
        assert cache.loaded_indices == list(range(15, 35))

    def test_none_margin_disables_eviction(self, provider, reload_controller):
        cache = RowWindowCache(provider, reload_controller, SynchronousTaskRunner(), retention_margin=None)
        cache.ensure(Window(0, 50))
        assert cache.evict(Window(0, 1)) == 0
        assert len(cache) == 50

    def test_negative_margin_rejected(self, cache):
        with pytest.raises(ValueError):
            cache.retention_margin = -1

    def test_evicted_in_flight_rows_are_dropped(self, cache, deferred_runner):
        cache.ensure(Window(0, 10))
        cache.evict(Window(100, 110))
        deferred_runner.run()
        assert _states(cache, Window(0, 10)) == [LookupState.MISS] * 10

    def test_evicted_in_flight_rows_are_not_fetched_twice(self, cache, deferred_runner, provider):
        cache.ensure(Window(0, 10))
        cache.evict(Window(50, 60))

        assert cache.ensure(Window(0, 10)) == []
        assert deferred_runner.pending == 1
        assert cache.in_flight == 1
        assert _states(cache, Window(0, 10)) == [LookupState.PENDING] * 10

        deferred_runner.run()
        assert _states(cache, Window(0, 10)) == [LookupState.HIT] * 10
        assert [call[0] for call in provider.fetch_calls] == [Window(0, 10)]

    def test_evicted_in_flight_rows_installed_when_kept_again(self, cache, deferred_runner):
        cache.ensure(Window(0, 10))
        cache.evict(Window(50, 60))
        cache.evict(Window(0, 10))
        deferred_runner.run()
        assert _states(cache, Window(0, 10)) == [LookupState.HIT] * 10

    def test_partially_evicted_run_is_not_refetched(self, cache, deferred_runner):
        cache.ensure(Window(0, 10))
        cache.evict(Window(5, 10))
        assert cache.ensure(Window(0, 10)) == []
        assert cache.pending_indices == list(range(10))

    def test_reload_forgets_evicted_in_flight_rows(self, cache, deferred_runner, reload_controller):
        cache.ensure(Window(0, 10))
        cache.evict(Window(50, 60))
        reload_controller.invalidate()

        assert cache.ensure(Window(0, 10)) == [Window(0, 10)]
        assert cache.in_flight == 2
        deferred_runner.run()
        assert _states(cache, Window(0, 10)) == [LookupState.PENDING] * 10
        deferred_runner.run()
        assert _states(cache, Window(0, 10)) == [LookupState.HIT] * 10
        assert cache.in_flight == 0


# ---------------------------------------------------------------------------
# Editing support
# ---------------------------------------------------------------------------


class TestReplaceRow:
    def test_replace_loaded_row(self, sync_cache):
        sync_cache.ensure(Window(0, 2))
        entry = sync_cache.replace_row(1, {"id": 1, "name": "edited"})
        assert sync_cache.lookup(1).row == {"id": 1, "name": "edited"}
        assert entry.fetched_at_version == 0

    def test_replace_missing_row(self, sync_cache):
        with pytest.raises(KeyError):
            sync_cache.replace_row(7, {})
