"""Table Sorter - stable in-memory sorting of activity log tables."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable

from fieldlog.models import ActivityLog


class SortDirection(str, Enum):
    """Sort direction for a table column."""
    ASCENDING = "ascending"
    DESCENDING = "descending"


SORTABLE_FIELDS = frozenset(ActivityLog.model_fields)


@dataclass(frozen=True)
class SortConfig:
    """Current sort column and direction. Defaults to newest first."""

    key: str = "timestamp"
    direction: SortDirection = SortDirection.DESCENDING


def next_sort_config(config: SortConfig, key: str) -> SortConfig:
    """Sort config after the user requests a sort on ``key``.

    Repeated requests on the current key toggle the direction; a new key
    starts ascending.
    """
    _check_key(key)
    if config.key == key and config.direction == SortDirection.ASCENDING:
        return replace(config, direction=SortDirection.DESCENDING)
    return SortConfig(key=key, direction=SortDirection.ASCENDING)


def _check_key(key: str) -> None:
    if key not in SORTABLE_FIELDS:
        raise ValueError(
            f"Cannot sort by {key!r}. Must be one of {sorted(SORTABLE_FIELDS)}"
        )


def sort_logs(
    logs: Iterable[ActivityLog],
    key: str,
    direction: SortDirection | str = SortDirection.ASCENDING,
) -> list[ActivityLog]:
    """Stable sort on one field.

    Strings sort lexicographically and timestamps chronologically. Logs
    with equal keys keep their input order in either direction. Absent
    values sort after present ones when ascending.

    Args:
        logs: Logs to sort
        key: ActivityLog field name
        direction: Ascending or descending

    Returns:
        New sorted list
    """
    _check_key(key)
    descending = SortDirection(direction) == SortDirection.DESCENDING

    def sort_key(log: ActivityLog) -> tuple[bool, Any]:
        value = getattr(log, key)
        if value is None:
            return (True, "")
        return (False, value)

    # reverse=True keeps equal elements in their original order
    return sorted(logs, key=sort_key, reverse=descending)


class TableSorter:
    """Holds the sort config for a log table."""

    def __init__(self, config: SortConfig | None = None):
        self.config = config or SortConfig()

    def request_sort(self, key: str) -> SortConfig:
        """Apply a user sort request on ``key`` and return the new config."""
        self.config = next_sort_config(self.config, key)
        return self.config

    def sort(self, logs: Iterable[ActivityLog]) -> list[ActivityLog]:
        """Sort logs with the current config."""
        return sort_logs(logs, self.config.key, self.config.direction)
