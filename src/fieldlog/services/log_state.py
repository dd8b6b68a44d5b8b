"""Dashboard state - the log list, filter, selection and view as immutable state.

Every transition is a pure reducer returning a new DashboardState.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

from fieldlog.models import ActivityLog, ActivityStatus
from fieldlog.services.table_sorter import SortConfig, next_sort_config, sort_logs


class DashboardTab(str, Enum):
    """Views over the current log list."""
    MAP = "map"
    TABLE = "table"
    TIMELINE = "timeline"


SEARCH_FIELDS = (
    "location",
    "activity_category",
    "activity_type",
    "equipment",
    "personnel",
    "material",
    "notes",
    "reference_id",
)


@dataclass(frozen=True)
class LogFilter:
    """Search text plus optional exact-match facets."""

    query: str = ""
    status: Optional[ActivityStatus] = None
    category: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.query.strip() and self.status is None \
            and self.category is None and self.location is None

    def matches(self, log: ActivityLog) -> bool:
        """Whether a log passes every active criterion."""
        if self.status is not None and log.status != ActivityStatus(self.status).value:
            return False
        if self.category is not None and log.activity_category != self.category:
            return False
        if self.location is not None and log.location != self.location:
            return False

        needle = self.query.strip().lower()
        if not needle:
            return True
        return any(
            needle in (getattr(log, name) or "").lower()
            for name in SEARCH_FIELDS
        )


def apply_filter(logs: Iterable[ActivityLog], log_filter: LogFilter) -> list[ActivityLog]:
    """Logs passing the filter, in input order."""
    return [log for log in logs if log_filter.matches(log)]


@dataclass(frozen=True)
class DashboardState:
    """Application state for the log dashboard."""

    logs: tuple[ActivityLog, ...] = ()
    log_filter: LogFilter = LogFilter()
    selected_log_id: Optional[str] = None
    active_tab: DashboardTab = DashboardTab.MAP
    sort: SortConfig = SortConfig()

    @property
    def selected_log(self) -> Optional[ActivityLog]:
        for log in self.logs:
            if log.id == self.selected_log_id:
                return log
        return None


def set_logs(state: DashboardState, logs: Iterable[ActivityLog]) -> DashboardState:
    """Replace the log list wholesale after a fetch.

    The selection is kept only if the selected log is still present.
    """
    logs = tuple(logs)
    selected = state.selected_log_id
    if selected is not None and all(log.id != selected for log in logs):
        selected = None
    return replace(state, logs=logs, selected_log_id=selected)


def add_logs(state: DashboardState, new_logs: Iterable[ActivityLog]) -> DashboardState:
    """Prepend freshly generated logs and switch to the map."""
    return replace(
        state,
        logs=tuple(new_logs) + state.logs,
        active_tab=DashboardTab.MAP,
    )


def select_log(state: DashboardState, log_id: Optional[str]) -> DashboardState:
    """Select a log by ID, or clear the selection with None."""
    if log_id is not None and all(log.id != log_id for log in state.logs):
        raise KeyError(f"No log with id {log_id!r}")
    return replace(state, selected_log_id=log_id)


def set_filter(state: DashboardState, log_filter: LogFilter) -> DashboardState:
    return replace(state, log_filter=log_filter)


def set_tab(state: DashboardState, tab: DashboardTab) -> DashboardState:
    return replace(state, active_tab=DashboardTab(tab))


def request_sort(state: DashboardState, key: str) -> DashboardState:
    """Toggle or change the table sort column."""
    return replace(state, sort=next_sort_config(state.sort, key))


def remove_transcription(state: DashboardState, transcription_id: str) -> DashboardState:
    """Drop every log derived from a deleted transcription."""
    return set_logs(
        state,
        (log for log in state.logs if log.transcription_id != transcription_id),
    )


def visible_logs(state: DashboardState) -> list[ActivityLog]:
    """Logs to display: filtered, then sorted by the current config."""
    filtered = apply_filter(state.logs, state.log_filter)
    return sort_logs(filtered, state.sort.key, state.sort.direction)
