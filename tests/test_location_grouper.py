"""Tests for the LocationGrouper service."""

import pytest

from fieldlog.services.location_grouper import LocationGrouper, group_by_location


@pytest.fixture
def grouper():
    """Create a LocationGrouper."""
    return LocationGrouper()


class TestGroupByLocation:
    """Test partitioning logs by location."""

    def test_empty(self):
        """No logs should give no groups."""
        assert group_by_location([]) == []

    def test_groups_partition_logs(self, make_log):
        """Every log should land in exactly one group."""
        logs = [
            make_log(location="Site A"),
            make_log(location="Site B"),
            make_log(location="Site A"),
            make_log(location="Site C"),
        ]
        groups = group_by_location(logs)

        assert [g.location for g in groups] == ["Site A", "Site B", "Site C"]
        assert sum(g.count for g in groups) == len(logs)
        all_ids = [log_id for g in groups for log_id in g.log_ids]
        assert sorted(all_ids) == sorted(log.id for log in logs)

    def test_group_preserves_member_order(self, make_log):
        """Members should stay in input order."""
        logs = [make_log(id="x", location="A"), make_log(id="y", location="B"),
                make_log(id="z", location="A")]
        groups = group_by_location(logs)
        assert groups[0].log_ids == ("x", "z")

    def test_location_match_is_exact(self, make_log):
        """Different case or whitespace should be separate groups."""
        groups = group_by_location([
            make_log(location="Site A"),
            make_log(location="site a"),
            make_log(location="Site A "),
        ])
        assert len(groups) == 3

    def test_absent_coordinates_do_not_overwrite(self, make_log):
        """A later log without coordinates keeps the earlier point."""
        groups = group_by_location([
            make_log(location="Site A", coordinates=[1, 1]),
            make_log(location="Site A"),
        ])
        assert len(groups) == 1
        assert groups[0].coordinates == (1.0, 1.0)

    def test_last_coordinates_win(self, make_log):
        """The last log carrying coordinates should set the group point."""
        groups = group_by_location([
            make_log(location="Site A", coordinates=[1, 1]),
            make_log(location="Site A", coordinates=[2, 2]),
            make_log(location="Site A"),
        ])
        assert groups[0].coordinates == (2.0, 2.0)

    def test_later_coordinates_fill_in(self, make_log):
        """A group seeded without coordinates picks them up later."""
        groups = group_by_location([
            make_log(location="Site A"),
            make_log(location="Site A", coordinates=[3, 4]),
        ])
        assert groups[0].coordinates == (3.0, 4.0)

    def test_no_coordinates_anywhere(self, make_log):
        """Groups with no located logs have no coordinates."""
        groups = group_by_location([make_log(location="Yard"), make_log(location="Yard")])
        assert groups[0].coordinates is None


class TestMarkerSize:
    """Test marker sizing thresholds."""

    @pytest.mark.parametrize("count,size", [
        (1, 30), (5, 30), (6, 40), (10, 40), (11, 50), (40, 50),
    ])
    def test_sizes(self, grouper, count, size):
        """Sizes step up above 5 and above 10 logs."""
        assert grouper.marker_size(count) == size


class TestBuildScene:
    """Test map scene construction."""

    def test_unlocated_groups_get_no_marker(self, grouper, make_log):
        """Only groups with coordinates become markers."""
        scene = grouper.build_scene([
            make_log(location="Site A", coordinates=[-97.1, 25.9]),
            make_log(location="Yard"),
        ])
        assert [m.location for m in scene.markers] == ["Site A"]
        assert [g.location for g in scene.unlocated_groups] == ["Yard"]

    def test_default_view(self, grouper):
        """An empty scene uses the default center and zoom."""
        scene = grouper.build_scene([])
        assert scene.markers == ()
        assert scene.bounds is None
        assert scene.fly_to is None
        assert scene.default_view.center == (-97.1722, 25.9969)
        assert scene.default_view.zoom == 13

    def test_bounds(self, grouper, make_log):
        """Bounds should cover every marker."""
        scene = grouper.build_scene([
            make_log(location="A", coordinates=[-97.0, 26.0]),
            make_log(location="B", coordinates=[-96.5, 25.5]),
        ])
        assert scene.bounds == (-97.0, 25.5, -96.5, 26.0)

    def test_popup_for_multi_log_groups(self, grouper, make_log):
        """Groups of more than one log open a popup."""
        scene = grouper.build_scene([
            make_log(location="A", coordinates=[1, 1]),
            make_log(location="A"),
            make_log(location="B", coordinates=[2, 2]),
        ])
        by_location = {m.location: m for m in scene.markers}
        assert by_location["A"].show_popup
        assert by_location["A"].count == 2
        assert not by_location["B"].show_popup

    def test_selected_marker_highlighted(self, grouper, make_log):
        """The marker holding the selected log is flagged."""
        scene = grouper.build_scene(
            [
                make_log(id="a1", location="A", coordinates=[1, 1]),
                make_log(id="a2", location="A"),
                make_log(id="b1", location="B", coordinates=[2, 2]),
            ],
            selected_log_id="a2",
        )
        by_location = {m.location: m for m in scene.markers}
        assert by_location["A"].selected
        assert not by_location["B"].selected
        # Shared location: no fly-to
        assert scene.fly_to is None

    def test_fly_to_single_log_location(self, grouper, make_log):
        """Selecting the only log at a location centers on it."""
        scene = grouper.build_scene(
            [
                make_log(id="a1", location="A", coordinates=[1, 1]),
                make_log(id="b1", location="B", coordinates=[2, 3]),
            ],
            selected_log_id="b1",
        )
        assert scene.fly_to is not None
        assert scene.fly_to.center == (2.0, 3.0)
        assert scene.fly_to.zoom == 14

    def test_heat_features(self, grouper, make_log):
        """Heat data is a GeoJSON collection weighted by count."""
        scene = grouper.build_scene([
            make_log(location="A", coordinates=[1, 2]),
            make_log(location="A"),
        ])
        features = scene.heat_features["features"]
        assert scene.heat_features["type"] == "FeatureCollection"
        assert len(features) == 1
        assert features[0]["geometry"]["coordinates"] == [1.0, 2.0]
        assert features[0]["properties"]["count"] == 2
