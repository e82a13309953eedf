"""
Unit tests for obstacle line-of-sight queries.

Tests segment intersection, penetration angle factor and the ObstacleField
collection (ordering, editing, hit-testing).
"""

import numpy as np
import pytest

from rssisim.obstacles.field import (
    ObstacleField,
    penetration_angle_factor,
    segment_intersection,
)
from rssisim.obstacles.types import Material, Obstacle


class TestSegmentIntersection:
    """Test parametric segment intersection."""

    def test_crossing_segments(self):
        """Perpendicular segments crossing at their midpoints."""
        result = segment_intersection(
            np.array([0.0, 0.0]),
            np.array([10.0, 0.0]),
            np.array([5.0, -1.0]),
            np.array([5.0, 1.0]),
        )

        assert result is not None
        point, t, u = result
        np.testing.assert_allclose(point, [5.0, 0.0])
        assert np.isclose(t, 0.5)
        assert np.isclose(u, 0.5)

    def test_parallel_segments(self):
        """Parallel segments never intersect."""
        result = segment_intersection(
            np.array([0.0, 0.0]),
            np.array([10.0, 0.0]),
            np.array([0.0, 1.0]),
            np.array([10.0, 1.0]),
        )

        assert result is None

    def test_collinear_overlapping_segments_are_parallel(self):
        """Overlapping collinear segments fall in the parallel case."""
        result = segment_intersection(
            np.array([0.0, 0.0]),
            np.array([10.0, 0.0]),
            np.array([2.0, 0.0]),
            np.array([4.0, 0.0]),
        )

        assert result is None

    def test_crossing_beyond_first_segment(self):
        """Lines cross, but outside the first segment (t > 1)."""
        result = segment_intersection(
            np.array([0.0, 0.0]),
            np.array([4.0, 0.0]),
            np.array([5.0, -1.0]),
            np.array([5.0, 1.0]),
        )

        assert result is None

    def test_crossing_beyond_second_segment(self):
        """Lines cross, but outside the second segment (u > 1)."""
        result = segment_intersection(
            np.array([0.0, 0.0]),
            np.array([10.0, 0.0]),
            np.array([5.0, 1.0]),
            np.array([5.0, 3.0]),
        )

        assert result is None

    def test_touching_endpoint_counts(self):
        """A crossing exactly at the segment end (t = 1) is included."""
        result = segment_intersection(
            np.array([0.0, 0.0]),
            np.array([5.0, 0.0]),
            np.array([5.0, -1.0]),
            np.array([5.0, 1.0]),
        )

        assert result is not None
        assert np.isclose(result[1], 1.0)


class TestPenetrationAngleFactor:
    """Test incidence angle scaling of obstacle loss."""

    def test_perpendicular_incidence(self):
        """Signal perpendicular to the wall gives factor 1.0."""
        wall = Obstacle([5.0, -1.0], [5.0, 1.0])

        factor = penetration_angle_factor(np.array([1.0, 0.0]), wall)

        assert np.isclose(factor, 1.0)

    def test_grazing_incidence(self):
        """Signal parallel to the wall gives factor 0.5."""
        wall = Obstacle([0.0, 1.0], [10.0, 1.0])

        factor = penetration_angle_factor(np.array([1.0, 0.0]), wall)

        assert np.isclose(factor, 0.5)

    def test_diagonal_incidence(self):
        """45 degree incidence gives 0.5 + 0.5 * cos(45°)."""
        wall = Obstacle([4.0, -1.0], [6.0, 1.0])

        factor = penetration_angle_factor(np.array([1.0, 0.0]), wall)

        assert np.isclose(factor, 0.5 + 0.5 / np.sqrt(2.0))

    def test_independent_of_direction_length_and_sign(self):
        """Only the direction's orientation matters."""
        wall = Obstacle([4.0, -1.0], [6.0, 1.0])

        f1 = penetration_angle_factor(np.array([1.0, 0.0]), wall)
        f2 = penetration_angle_factor(np.array([-25.0, 0.0]), wall)

        assert np.isclose(f1, f2)

    def test_factor_range(self):
        """Factor stays within [0.5, 1.0] for arbitrary directions."""
        rng = np.random.default_rng(3)
        wall = Obstacle([0.0, 0.0], [3.0, 7.0])

        for _ in range(100):
            direction = rng.normal(size=2)
            factor = penetration_angle_factor(direction, wall)
            assert 0.5 <= factor <= 1.0

    def test_zero_direction_raises(self):
        """Zero-length direction is rejected."""
        wall = Obstacle([5.0, -1.0], [5.0, 1.0])

        with pytest.raises(ValueError):
            penetration_angle_factor(np.array([0.0, 0.0]), wall)


class TestObstacleFieldIntersections:
    """Test ordered obstacle crossing queries."""

    def test_sorted_nearest_first(self):
        """Intersections are returned by ascending distance from the start."""
        far = Obstacle([7.0, -1.0], [7.0, 1.0], obstacle_id="far")
        near = Obstacle([3.0, -1.0], [3.0, 1.0], obstacle_id="near")
        field = ObstacleField([far, near])

        hits = field.intersections(np.array([0.0, 0.0]), np.array([10.0, 0.0]))

        assert [h.obstacle.obstacle_id for h in hits] == ["near", "far"]
        assert np.isclose(hits[0].distance, 3.0)
        assert np.isclose(hits[1].distance, 7.0)

    def test_order_follows_direction(self):
        """Reversing the sight line reverses the crossing order."""
        field = ObstacleField([
            Obstacle([7.0, -1.0], [7.0, 1.0], obstacle_id="a"),
            Obstacle([3.0, -1.0], [3.0, 1.0], obstacle_id="b"),
        ])

        hits = field.intersections(np.array([10.0, 0.0]), np.array([0.0, 0.0]))

        assert [h.obstacle.obstacle_id for h in hits] == ["a", "b"]

    def test_strictly_ascending_for_random_field(self):
        """Distances are non-decreasing and every t, u lies in [0, 1]."""
        rng = np.random.default_rng(11)
        field = ObstacleField(
            Obstacle(rng.uniform(0, 20, size=2), rng.uniform(0, 20, size=2))
            for _ in range(40)
        )

        hits = field.intersections(np.array([0.0, 0.0]), np.array([20.0, 20.0]))

        distances = [h.distance for h in hits]
        assert distances == sorted(distances)
        for hit in hits:
            assert 0.0 <= hit.t <= 1.0
            assert 0.0 <= hit.u <= 1.0

    def test_excludes_obstacles_off_the_segment(self):
        """Obstacles beyond the receiver or beside the path are ignored."""
        field = ObstacleField([
            Obstacle([12.0, -1.0], [12.0, 1.0], obstacle_id="behind_receiver"),
            Obstacle([5.0, 2.0], [5.0, 4.0], obstacle_id="beside"),
            Obstacle([5.0, -1.0], [5.0, 1.0], obstacle_id="crossed"),
        ])

        hits = field.intersections(np.array([0.0, 0.0]), np.array([10.0, 0.0]))

        assert [h.obstacle.obstacle_id for h in hits] == ["crossed"]

    def test_empty_field(self):
        """No obstacles, no intersections."""
        field = ObstacleField()

        assert field.intersections(np.array([0.0, 0.0]), np.array([1.0, 1.0])) == []


class TestObstacleFieldEditing:
    """Test registration, removal and hit-testing."""

    def test_add_and_remove(self):
        wall = Obstacle([0.0, 0.0], [1.0, 0.0], obstacle_id="w1")
        field = ObstacleField()

        field.add(wall)
        assert "w1" in field
        assert len(field) == 1
        assert field.get("w1") is wall

        removed = field.remove("w1")
        assert removed is wall
        assert len(field) == 0
        assert field.get("w1") is None

    def test_duplicate_id_rejected(self):
        field = ObstacleField([Obstacle([0.0, 0.0], [1.0, 0.0], obstacle_id="w1")])

        with pytest.raises(ValueError):
            field.add(Obstacle([2.0, 0.0], [3.0, 0.0], obstacle_id="w1"))

    def test_remove_unknown_raises(self):
        field = ObstacleField()

        with pytest.raises(KeyError):
            field.remove("missing")

    def test_clear(self):
        field = ObstacleField([
            Obstacle([0.0, 0.0], [1.0, 0.0]),
            Obstacle([0.0, 1.0], [1.0, 1.0]),
        ])

        field.clear()

        assert len(field) == 0
        assert field.obstacles == []

    def test_iteration_keeps_insertion_order(self):
        ids = ["c", "a", "b"]
        field = ObstacleField(
            Obstacle([float(i), 0.0], [float(i), 1.0], obstacle_id=obstacle_id)
            for i, obstacle_id in enumerate(ids)
        )

        assert [o.obstacle_id for o in field] == ids

    def test_find_near_returns_closest(self):
        """Hit-test picks the closest obstacle within the threshold."""
        field = ObstacleField([
            Obstacle([0.0, 0.0], [10.0, 0.0], obstacle_id="bottom", material=Material.CONCRETE),
            Obstacle([0.0, 0.3], [10.0, 0.3], obstacle_id="top"),
        ])

        found = field.find_near(np.array([5.0, 0.1]))

        assert found is not None
        assert found.obstacle_id == "bottom"

    def test_find_near_outside_threshold(self):
        field = ObstacleField([Obstacle([0.0, 0.0], [10.0, 0.0])])

        assert field.find_near(np.array([5.0, 1.0])) is None
        assert field.find_near(np.array([5.0, 1.0]), threshold=1.5) is not None
