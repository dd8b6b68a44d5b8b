"""Tests for dashboard state reducers."""

import pytest

from fieldlog.models import ActivityStatus
from fieldlog.services.log_state import (
    DashboardState,
    DashboardTab,
    LogFilter,
    add_logs,
    apply_filter,
    remove_transcription,
    request_sort,
    select_log,
    set_filter,
    set_logs,
    set_tab,
    visible_logs,
)
from fieldlog.services.table_sorter import SortDirection


@pytest.fixture
def logs(make_log):
    """A small mixed set of logs."""
    return [
        make_log(id="a", location="North Pad", equipment="Crane 3", transcription_id="T1"),
        make_log(id="b", location="Gate 2", status=ActivityStatus.DELAYED,
                 activity_category="Delivery", transcription_id="T1"),
        make_log(id="c", location="Yard", notes="Crane parked overnight", transcription_id="T2"),
    ]


class TestLogFilter:
    """Test filtering."""

    def test_empty_filter_matches_all(self, logs):
        """An empty filter passes everything."""
        assert LogFilter().is_empty
        assert apply_filter(logs, LogFilter()) == logs

    def test_query_searches_text_fields(self, logs):
        """Search is case-insensitive across text fields."""
        result = apply_filter(logs, LogFilter(query="crane"))
        assert [log.id for log in result] == ["a", "c"]

    def test_status_facet(self, logs):
        """Status filter matches exactly."""
        result = apply_filter(logs, LogFilter(status=ActivityStatus.DELAYED))
        assert [log.id for log in result] == ["b"]

    def test_combined(self, logs):
        """All criteria must pass."""
        result = apply_filter(logs, LogFilter(query="crane", location="Yard"))
        assert [log.id for log in result] == ["c"]


class TestReducers:
    """Test state transitions."""

    def test_set_logs_keeps_valid_selection(self, logs):
        """Selection survives a refresh when the log still exists."""
        state = select_log(set_logs(DashboardState(), logs), "b")
        state = set_logs(state, logs[1:])
        assert state.selected_log_id == "b"
        assert state.selected_log.id == "b"

    def test_set_logs_clears_stale_selection(self, logs):
        """Selection is cleared when the log disappears."""
        state = select_log(set_logs(DashboardState(), logs), "a")
        state = set_logs(state, logs[1:])
        assert state.selected_log_id is None
        assert state.selected_log is None

    def test_add_logs_prepends_and_shows_map(self, logs, make_log):
        """New logs go first and the map tab is shown."""
        state = set_tab(set_logs(DashboardState(), logs), DashboardTab.TABLE)
        fresh = make_log(id="new")
        state = add_logs(state, [fresh])
        assert state.logs[0].id == "new"
        assert len(state.logs) == 4
        assert state.active_tab == DashboardTab.MAP

    def test_select_unknown_log(self, logs):
        """Selecting an unknown ID is an error."""
        with pytest.raises(KeyError):
            select_log(set_logs(DashboardState(), logs), "zzz")

    def test_clear_selection(self, logs):
        """None clears the selection."""
        state = select_log(set_logs(DashboardState(), logs), "a")
        assert select_log(state, None).selected_log_id is None

    def test_reducers_do_not_mutate(self, logs):
        """Reducers return new state objects."""
        state = set_logs(DashboardState(), logs)
        set_filter(state, LogFilter(query="crane"))
        assert state.log_filter.is_empty

    def test_remove_transcription(self, logs):
        """Logs from a deleted transcription disappear."""
        state = select_log(set_logs(DashboardState(), logs), "a")
        state = remove_transcription(state, "T1")
        assert [log.id for log in state.logs] == ["c"]
        assert state.selected_log_id is None

    def test_visible_logs_filters_then_sorts(self, logs):
        """visible_logs applies the filter and sort config."""
        state = set_logs(DashboardState(), logs)
        state = set_filter(state, LogFilter(query="crane"))
        state = request_sort(state, "location")
        assert state.sort.direction == SortDirection.ASCENDING
        assert [log.id for log in visible_logs(state)] == ["a", "c"]

        state = request_sort(state, "location")
        assert [log.id for log in visible_logs(state)] == ["c", "a"]
