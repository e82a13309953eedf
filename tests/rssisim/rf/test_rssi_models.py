"""
Unit tests for RSS measurement models.

Tests path loss and its inverse, Box-Muller noise, RSSI clamping, obstacle
loss accumulation and signal quality classes.
"""

import numpy as np
import pytest

from rssisim.obstacles.field import ObstacleField
from rssisim.obstacles.types import Material, Obstacle
from rssisim.rf.measurement_models import (
    RSSI_MAX_DBM,
    RSSI_MIN_DBM,
    clamp_rssi,
    compute_obstacle_loss,
    gaussian_noise_box_muller,
    rss_pathloss,
    rss_to_distance,
    signal_quality,
)


class TestPathLoss:
    """Test log-distance path-loss model."""

    def test_reference_distance(self):
        """At d_ref the RSS equals the reference power."""
        assert np.isclose(rss_pathloss(-59.0, 1.0, path_loss_exp=2.7), -59.0)

    def test_ten_meters_free_space(self):
        """n=2: 20 dB per decade."""
        assert np.isclose(rss_pathloss(-59.0, 10.0, path_loss_exp=2.0), -79.0)

    def test_inverse(self):
        for d in [0.5, 1.0, 3.7, 12.0, 80.0]:
            rss = rss_pathloss(-59.0, d, path_loss_exp=2.7)
            assert np.isclose(rss_to_distance(rss, -59.0, path_loss_exp=2.7), d)

    def test_non_positive_distance_raises(self):
        with pytest.raises(ValueError):
            rss_pathloss(-59.0, 0.0)
        with pytest.raises(ValueError):
            rss_pathloss(-59.0, -1.0)


class TestGaussianNoise:
    """Test Box-Muller noise generation."""

    def test_reproducible_with_seed(self):
        rng1 = np.random.default_rng(123)
        rng2 = np.random.default_rng(123)

        a = [gaussian_noise_box_muller(5.0, rng=rng1) for _ in range(20)]
        b = [gaussian_noise_box_muller(5.0, rng=rng2) for _ in range(20)]

        assert a == b

    def test_sample_statistics(self):
        rng = np.random.default_rng(0)

        samples = np.array([gaussian_noise_box_muller(5.0, rng=rng) for _ in range(5000)])

        assert abs(np.mean(samples)) < 0.3
        assert abs(np.std(samples) - 5.0) < 0.3

    def test_zero_std(self):
        rng = np.random.default_rng(0)

        assert gaussian_noise_box_muller(0.0, rng=rng, mean=-70.0) == -70.0

    def test_samples_are_finite(self):
        rng = np.random.default_rng(5)

        samples = [gaussian_noise_box_muller(1.0, rng=rng) for _ in range(1000)]

        assert np.all(np.isfinite(samples))

    def test_negative_std_raises(self):
        with pytest.raises(ValueError):
            gaussian_noise_box_muller(-1.0)


class TestClampAndQuality:
    """Test RSSI clamping and quality classes."""

    def test_clamp(self):
        assert clamp_rssi(-10.0) == RSSI_MAX_DBM
        assert clamp_rssi(-200.0) == RSSI_MIN_DBM
        assert clamp_rssi(-75.5) == -75.5

    def test_quality_classes(self):
        assert signal_quality(-45.0) == "strong"
        assert signal_quality(-60.0) == "strong"
        assert signal_quality(-60.1) == "medium"
        assert signal_quality(-80.0) == "medium"
        assert signal_quality(-80.1) == "weak"


class TestObstacleLoss:
    """Test accumulation of penetration loss along a sight line."""

    @staticmethod
    def _hits(*walls, reverse=False):
        field = ObstacleField(walls)
        start, end = np.array([0.0, 0.0]), np.array([10.0, 0.0])
        if reverse:
            start, end = end, start
        return field.intersections(start, end), end - start

    def test_no_obstacles(self):
        total, per_obstacle = compute_obstacle_loss([], np.array([1.0, 0.0]))

        assert total == 0.0
        assert per_obstacle == []

    def test_single_perpendicular_drywall(self):
        hits, direction = self._hits(Obstacle([5.0, -1.0], [5.0, 1.0]))

        total, _ = compute_obstacle_loss(hits, direction)

        assert np.isclose(total, 3.0)

    def test_angle_effect(self):
        hits, direction = self._hits(Obstacle([4.0, -1.0], [6.0, 1.0]))

        with_angle, _ = compute_obstacle_loss(hits, direction, angle_effect=True)
        without_angle, _ = compute_obstacle_loss(hits, direction, angle_effect=False)

        assert np.isclose(without_angle, 3.0)
        assert np.isclose(with_angle, 3.0 * (0.5 + 0.5 / np.sqrt(2.0)))

    def test_cumulative_compounding(self):
        """Second obstacle x1.1, third x1.21 (running factor)."""
        hits, direction = self._hits(
            Obstacle([2.0, -1.0], [2.0, 1.0]),
            Obstacle([5.0, -1.0], [5.0, 1.0]),
            Obstacle([8.0, -1.0], [8.0, 1.0]),
        )

        total, per_obstacle = compute_obstacle_loss(hits, direction)

        np.testing.assert_allclose(per_obstacle, [3.0, 3.3, 3.63])
        assert np.isclose(total, 9.93)

    def test_cumulative_disabled(self):
        hits, direction = self._hits(
            Obstacle([2.0, -1.0], [2.0, 1.0]),
            Obstacle([5.0, -1.0], [5.0, 1.0]),
        )

        total, _ = compute_obstacle_loss(hits, direction, cumulative_effect=False)

        assert np.isclose(total, 6.0)

    def test_cumulative_depends_on_traversal_order(self):
        """The compounding factor applies to whichever obstacle comes later."""
        concrete = Obstacle([3.0, -1.0], [3.0, 1.0], material=Material.CONCRETE)
        drywall = Obstacle([7.0, -1.0], [7.0, 1.0], material=Material.DRYWALL)

        hits, direction = self._hits(concrete, drywall)
        forward, _ = compute_obstacle_loss(hits, direction)
        hits, direction = self._hits(concrete, drywall, reverse=True)
        backward, _ = compute_obstacle_loss(hits, direction)

        assert np.isclose(forward, 10.0 + 3.3)
        assert np.isclose(backward, 3.0 + 11.0)
