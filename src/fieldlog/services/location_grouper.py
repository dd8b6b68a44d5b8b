"""Location Grouper - clusters activity logs by location for map rendering.

Responsible for:
- Partitioning logs into one group per exact location string
- Tracking the last-seen coordinates for each location
- Building declarative marker scenes for the map renderer
"""

import logging
from typing import Iterable, Optional, Sequence

from fieldlog.models import (
    ActivityLog,
    Coordinates,
    LocationGroup,
    MapMarker,
    MapScene,
    MapView,
)

logger = logging.getLogger(__name__)


def group_by_location(logs: Iterable[ActivityLog]) -> list[LocationGroup]:
    """Group logs by exact location string.

    Groups come out in first-occurrence order. Each group's coordinates
    start from its first log and are overwritten by every later log that
    carries coordinates, so the last located log in input order wins.

    Args:
        logs: Activity logs in display order

    Returns:
        One LocationGroup per unique location
    """
    members: dict[str, list[ActivityLog]] = {}
    coordinates: dict[str, Optional[Coordinates]] = {}

    for log in logs:
        if log.location not in members:
            members[log.location] = []
            coordinates[log.location] = log.coordinates
        members[log.location].append(log)
        if log.coordinates is not None:
            coordinates[log.location] = log.coordinates

    return [
        LocationGroup(
            location=location,
            coordinates=coordinates[location],
            logs=tuple(group_logs),
        )
        for location, group_logs in members.items()
    ]


class LocationGrouper:
    """Turns activity logs into location groups and map marker scenes."""

    DEFAULT_CENTER: Coordinates = (-97.1722, 25.9969)
    DEFAULT_ZOOM = 13
    SELECTED_ZOOM = 14

    # Marker diameter in pixels by group size
    MARKER_SIZE_SMALL = 30
    MARKER_SIZE_MEDIUM = 40
    MARKER_SIZE_LARGE = 50

    def group(self, logs: Iterable[ActivityLog]) -> list[LocationGroup]:
        """Group logs by location. See ``group_by_location``."""
        return group_by_location(logs)

    def marker_size(self, count: int) -> int:
        """Marker diameter for a group of ``count`` logs."""
        if count > 10:
            return self.MARKER_SIZE_LARGE
        if count > 5:
            return self.MARKER_SIZE_MEDIUM
        return self.MARKER_SIZE_SMALL

    def build_scene(
        self,
        logs: Sequence[ActivityLog],
        selected_log_id: Optional[str] = None,
    ) -> MapScene:
        """Build the marker scene for a list of logs.

        Args:
            logs: Logs to place on the map
            selected_log_id: ID of the currently selected log, if any

        Returns:
            MapScene with one marker per located group
        """
        groups = self.group(logs)
        markers = [
            self._build_marker(group, selected_log_id)
            for group in groups
            if group.coordinates is not None
        ]

        unlocated = len(groups) - len(markers)
        if unlocated:
            logger.debug("%d location(s) have no coordinates and get no marker", unlocated)

        fly_to = self._selected_view(groups, selected_log_id)

        return MapScene(
            markers=tuple(markers),
            groups=tuple(groups),
            bounds=self._compute_bounds(markers),
            default_view=MapView(center=self.DEFAULT_CENTER, zoom=self.DEFAULT_ZOOM),
            fly_to=fly_to,
            heat_features=self._build_heat_features(markers),
        )

    def _build_marker(
        self,
        group: LocationGroup,
        selected_log_id: Optional[str],
    ) -> MapMarker:
        return MapMarker(
            location=group.location,
            coordinates=group.coordinates,
            count=group.count,
            size=self.marker_size(group.count),
            log_ids=group.log_ids,
            selected=group.contains(selected_log_id),
            show_popup=group.count > 1,
        )

    def _selected_view(
        self,
        groups: list[LocationGroup],
        selected_log_id: Optional[str],
    ) -> Optional[MapView]:
        """Center on the selected log when it is alone at its location."""
        if selected_log_id is None:
            return None

        for group in groups:
            if (
                group.coordinates is not None
                and group.count == 1
                and group.logs[0].id == selected_log_id
            ):
                return MapView(
                    center=group.coordinates,
                    zoom=max(self.DEFAULT_ZOOM, self.SELECTED_ZOOM),
                )
        return None

    def _compute_bounds(
        self,
        markers: list[MapMarker],
    ) -> Optional[tuple[float, float, float, float]]:
        if not markers:
            return None

        longitudes = [m.coordinates[0] for m in markers]
        latitudes = [m.coordinates[1] for m in markers]
        return (min(longitudes), min(latitudes), max(longitudes), max(latitudes))

    def _build_heat_features(self, markers: list[MapMarker]) -> dict:
        """GeoJSON point collection weighted by log count."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": {"count": marker.count},
                    "geometry": {
                        "type": "Point",
                        "coordinates": list(marker.coordinates),
                    },
                }
                for marker in markers
            ],
        }
