"""Map Renderer - draws a marker scene as a standalone HTML map.

The scene comes from LocationGrouper.build_scene; this module only
serializes it into the Leaflet page template.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from fieldlog.models import ActivityLog, MapScene
from fieldlog.services.location_grouper import LocationGrouper
from fieldlog.utils.time_utils import format_timestamp

logger = logging.getLogger(__name__)


class MapRenderer:
    """Renders activity maps to HTML."""

    # Marker fill per status of the most recent log at a location
    STATUS_COLORS = {
        "completed": "#22C55E",   # Green
        "in-progress": "#3B82F6", # Blue
        "planned": "#A855F7",     # Purple
        "delayed": "#EAB308",     # Yellow
        "cancelled": "#EF4444",   # Red
    }

    def __init__(self, grouper: Optional[LocationGrouper] = None):
        """Initialize the renderer.

        Args:
            grouper: Grouper used to build scenes (default: LocationGrouper())
        """
        self.grouper = grouper or LocationGrouper()

        template_dir = Path(__file__).parent.parent / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def scene_to_dict(self, scene: MapScene) -> dict[str, Any]:
        """JSON-ready form of a scene for the page script."""
        logs_by_location = {group.location: group.logs for group in scene.groups}

        markers = []
        for marker in scene.markers:
            logs = logs_by_location.get(marker.location, ())
            latest_status = logs[-1].status if logs else "completed"
            markers.append({
                "location": marker.location,
                # Leaflet takes [lat, lng]
                "latlng": [marker.coordinates[1], marker.coordinates[0]],
                "count": marker.count,
                "size": marker.size,
                "selected": marker.selected,
                "showPopup": marker.show_popup,
                "color": self.STATUS_COLORS.get(latest_status, "#6B7280"),
                "logs": [self._log_summary(log) for log in logs],
            })

        data: dict[str, Any] = {
            "markers": markers,
            "defaultView": {
                "center": [scene.default_view.center[1], scene.default_view.center[0]],
                "zoom": scene.default_view.zoom,
            },
            "bounds": None,
            "flyTo": None,
            "heat": scene.heat_features,
            "heatPoints": self._heat_points(scene),
        }
        if scene.bounds:
            min_lon, min_lat, max_lon, max_lat = scene.bounds
            data["bounds"] = [[min_lat, min_lon], [max_lat, max_lon]]
        if scene.fly_to:
            data["flyTo"] = {
                "center": [scene.fly_to.center[1], scene.fly_to.center[0]],
                "zoom": scene.fly_to.zoom,
            }
        return data

    def heat_weight(self, count: int) -> float:
        """Heat intensity for a location: 0.5 for one log rising linearly to 1.0 at ten."""
        clamped = min(max(count, 1), 10)
        return 0.5 + (clamped - 1) * 0.5 / 9

    def _heat_points(self, scene: MapScene) -> list[list[float]]:
        """Leaflet.heat points [lat, lng, weight] from the heat GeoJSON."""
        points = []
        for feature in scene.heat_features.get("features", []):
            lon, lat = feature["geometry"]["coordinates"]
            points.append([lat, lon, self.heat_weight(feature["properties"]["count"])])
        return points

    def _log_summary(self, log: ActivityLog) -> dict[str, Any]:
        return {
            "id": log.id,
            "referenceId": log.reference_id,
            "timestamp": format_timestamp(log.timestamp),
            "activityType": log.activity_type,
            "activityCategory": log.activity_category,
            "status": log.status,
        }

    def render_html(self, scene: MapScene, title: str = "Activity Map") -> str:
        """Render a scene to a complete HTML document."""
        template = self.jinja_env.get_template("map.html")
        return template.render(
            title=title,
            scene=self.scene_to_dict(scene),
            marker_count=len(scene.markers),
            unlocated=[group.location for group in scene.unlocated_groups],
        )

    def write_map(
        self,
        logs: Sequence[ActivityLog],
        output_path: str | Path,
        selected_log_id: Optional[str] = None,
        title: str = "Activity Map",
    ) -> Path:
        """Build a scene from logs and write it as HTML.

        Args:
            logs: Logs to draw
            output_path: Destination HTML file
            selected_log_id: Log to highlight, if any
            title: Page title

        Returns:
            Path to the written file
        """
        scene = self.grouper.build_scene(logs, selected_log_id)
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render_html(scene, title=title))
        logger.info("Wrote map with %d marker(s) to %s", len(scene.markers), path)
        return path
