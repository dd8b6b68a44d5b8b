"""Derived location views - groups of logs and the map markers built from them.

These are recomputed from the current log list on every render and are
never persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from fieldlog.models.activity_log import ActivityLog, Coordinates


@dataclass(frozen=True)
class LocationGroup:
    """All logs sharing one exact location string.

    ``coordinates`` is the last non-absent value seen across member logs
    in input order.
    """

    location: str
    coordinates: Optional[Coordinates]
    logs: tuple[ActivityLog, ...]

    @property
    def count(self) -> int:
        """Number of logs at this location."""
        return len(self.logs)

    @property
    def log_ids(self) -> tuple[str, ...]:
        return tuple(log.id for log in self.logs)

    def contains(self, log_id: Optional[str]) -> bool:
        """Whether the group holds the log with this ID."""
        return log_id is not None and log_id in self.log_ids


@dataclass(frozen=True)
class MapMarker:
    """Declarative description of one map marker."""

    location: str
    coordinates: Coordinates
    count: int
    size: int
    log_ids: tuple[str, ...]
    selected: bool = False
    show_popup: bool = False


@dataclass(frozen=True)
class MapView:
    """Camera target for the map."""

    center: Coordinates
    zoom: float


@dataclass(frozen=True)
class MapScene:
    """Everything the rendering layer needs to draw the activity map.

    ``bounds`` is (min_lon, min_lat, max_lon, max_lat). When ``fly_to`` is
    set the renderer centers on it instead of fitting ``bounds``.
    """

    markers: tuple[MapMarker, ...]
    groups: tuple[LocationGroup, ...]
    bounds: Optional[tuple[float, float, float, float]]
    default_view: MapView
    fly_to: Optional[MapView] = None
    heat_features: dict[str, Any] = field(default_factory=dict)

    @property
    def unlocated_groups(self) -> tuple[LocationGroup, ...]:
        """Groups that cannot be drawn because no log carried coordinates."""
        return tuple(g for g in self.groups if g.coordinates is None)
