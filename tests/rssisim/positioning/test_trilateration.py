"""
Unit tests for RSSI trilateration.

Tests measurement weighting, closed-form trilateration, weighted
Gauss-Newton and the PositionEstimator failure handling.
"""

import numpy as np
import pytest

from rssisim.positioning.trilateration import (
    PositionEstimator,
    geometric_trilaterate,
    rssi_weight,
    weighted_centroid,
    weighted_least_squares,
    working_region,
)
from rssisim.positioning.types import (
    Anchor,
    FailureReason,
    Measurement,
    PositionStatus,
    SolverStatus,
)
from rssisim.rf.measurement_models import rss_pathloss

TRIANGLE = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
SQUARE = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
LINE = np.array([[0.0, 0.0], [5.0, 0.0], [10.0, 0.0]])


def _ranges(anchors, receiver):
    return np.linalg.norm(anchors - np.asarray(receiver, dtype=float), axis=1)


def _rssi(distances, tx_power=-59.0, n=2.0):
    return np.array([rss_pathloss(tx_power, d, path_loss_exp=n) for d in distances])


class TestRssiWeight:
    """Test signal-strength weighting."""

    def test_weight_values(self):
        assert np.isclose(rssi_weight(-60.0), 10.0)
        assert np.isclose(rssi_weight(-100.0), 1.0)
        assert np.isclose(rssi_weight(-80.0), 10 ** 0.5)

    def test_weight_clamped(self):
        assert np.isclose(rssi_weight(-20.0), 10.0)
        assert np.isclose(rssi_weight(-130.0), 1.0)

    def test_weight_array(self):
        w = rssi_weight(np.array([-100.0, -80.0, -60.0]))

        np.testing.assert_allclose(w, [1.0, 10 ** 0.5, 10.0])

    def test_weighted_centroid_equal_signals(self):
        centroid = weighted_centroid(SQUARE, np.full(4, -70.0))

        np.testing.assert_allclose(centroid, [5.0, 5.0])

    def test_weighted_centroid_pulled_to_strong_anchor(self):
        centroid = weighted_centroid(SQUARE, np.array([-60.0, -100.0, -100.0, -100.0]))

        assert centroid[0] < 5.0 and centroid[1] < 5.0


class TestGeometricTrilateration:
    """Test closed-form three-circle trilateration."""

    def test_exact_ranges(self):
        position = geometric_trilaterate(TRIANGLE, _ranges(TRIANGLE, [3.0, 4.0]))

        np.testing.assert_allclose(position, [3.0, 4.0], atol=1e-9)

    def test_collinear_reports_failure(self):
        assert geometric_trilaterate(LINE, _ranges(LINE, [3.0, 4.0])) is None

    def test_nearly_collinear_below_threshold(self):
        anchors = np.array([[0.0, 0.0], [5.0, 0.0], [10.0, 1e-5]])

        assert geometric_trilaterate(anchors, np.array([5.0, 4.0, 8.0])) is None

    def test_wrong_shape_raises(self):
        with pytest.raises(ValueError):
            geometric_trilaterate(SQUARE, np.ones(4))


class TestWeightedLeastSquares:
    """Test weighted Gauss-Newton solver."""

    def test_converges_from_offset_guess(self):
        truth = np.array([3.0, 4.0])
        ranges = _ranges(SQUARE, truth)

        result = weighted_least_squares(SQUARE, ranges, _rssi(ranges), np.array([6.0, 6.0]))

        assert result.status is SolverStatus.CONVERGED
        assert result.converged
        np.testing.assert_allclose(result.x, truth, atol=0.01)
        assert result.history.shape == (result.iterations + 1, 2)
        np.testing.assert_allclose(result.history[0], [6.0, 6.0])

    def test_max_iterations_status(self):
        truth = np.array([3.0, 4.0])
        ranges = _ranges(SQUARE, truth)

        result = weighted_least_squares(
            SQUARE, ranges, _rssi(ranges), np.array([8.0, 8.0]), max_iter=1
        )

        assert result.status is SolverStatus.MAX_ITERATIONS
        assert result.iterations == 1

    def test_singular_status_keeps_current_estimate(self):
        """Collinear anchors with the guess on their line: J'WJ is singular."""
        ranges = _ranges(LINE, [3.0, 4.0])
        guess = np.array([4.0, 0.0])

        result = weighted_least_squares(LINE, ranges, np.full(3, -70.0), guess)

        assert result.status is SolverStatus.SINGULAR
        assert result.iterations == 0
        np.testing.assert_allclose(result.x, guess)

    def test_inconsistent_inputs_raise(self):
        with pytest.raises(ValueError):
            weighted_least_squares(SQUARE, np.ones(3), np.ones(4), np.zeros(2))


class TestWorkingRegion:
    def test_anchor_bounding_box(self):
        lower, upper = working_region(TRIANGLE, margin=2.0)

        np.testing.assert_allclose(lower, [-2.0, -2.0])
        np.testing.assert_allclose(upper, [12.0, 12.0])

    def test_explicit_area(self):
        lower, upper = working_region(TRIANGLE, margin=1.0, area=(0.0, 0.0, 20.0, 15.0))

        np.testing.assert_allclose(lower, [-1.0, -1.0])
        np.testing.assert_allclose(upper, [21.0, 16.0])


class TestPositionEstimator:
    """Test the complete estimation pipeline."""

    def test_convergence_accuracy_three_anchors(self):
        """Anchors (0,0),(10,0),(0,10), tx=-59 dBm, n=2, receiver (3,4)."""
        truth = np.array([3.0, 4.0])
        ranges = _ranges(TRIANGLE, truth)
        rssi = _rssi(ranges)
        # Ranges recovered from the signal strengths as the simulator does
        recovered = 10 ** ((-59.0 - rssi) / 20.0)

        estimate = PositionEstimator().estimate(TRIANGLE, recovered, rssi)

        assert estimate.status is PositionStatus.OK
        assert np.linalg.norm(estimate.position - truth) < 0.05
        assert estimate.info["method"] == "geometric+wls"
        assert estimate.notes == ()

    def test_four_anchors_use_iterative_solver(self):
        truth = np.array([7.0, 2.5])
        ranges = _ranges(SQUARE, truth)

        estimate = PositionEstimator().estimate(SQUARE, ranges, _rssi(ranges))

        assert estimate.ok
        assert estimate.info["method"] == "wls"
        assert estimate.info["solver_status"] is SolverStatus.CONVERGED
        np.testing.assert_allclose(estimate.position, truth, atol=0.05)

    def test_collinear_fallback(self):
        """Closed form fails, the iterative fallback still gives a result."""
        ranges = _ranges(LINE, [3.0, 4.0])

        estimate = PositionEstimator().estimate(LINE, ranges, _rssi(ranges))

        assert FailureReason.DEGENERATE_GEOMETRY in estimate.notes
        assert estimate.status in (PositionStatus.OK, PositionStatus.NO_SOLUTION)
        if estimate.ok:
            assert np.all(np.isfinite(estimate.position))
        else:
            assert estimate.position is None

    def test_collinear_singularity_keeps_seed(self):
        """Centroid on the anchor line: singular at the first step, seed kept."""
        ranges = _ranges(LINE, [3.0, 4.0])
        rssi = _rssi(ranges)

        estimate = PositionEstimator().estimate(LINE, ranges, rssi)

        assert estimate.ok
        assert estimate.notes == (
            FailureReason.DEGENERATE_GEOMETRY,
            FailureReason.NUMERICAL_SINGULARITY,
        )
        assert estimate.info["solver_status"] is SolverStatus.SINGULAR
        np.testing.assert_allclose(estimate.position, weighted_centroid(LINE, rssi))

    def test_insufficient_measurements(self):
        estimate = PositionEstimator().estimate(
            TRIANGLE[:2], np.array([5.0, 5.0]), np.array([-70.0, -70.0])
        )

        assert estimate.status is PositionStatus.NO_SOLUTION
        assert estimate.reason is FailureReason.INSUFFICIENT_MEASUREMENTS
        assert estimate.position is None

    def test_empty_input(self):
        estimate = PositionEstimator().estimate(np.zeros((0, 2)), np.zeros(0), np.zeros(0))

        assert estimate.reason is FailureReason.INSUFFICIENT_MEASUREMENTS

    def test_invalid_rows_dropped(self):
        """Non-finite or non-positive ranges do not count as measurements."""
        truth = np.array([3.0, 4.0])
        ranges = _ranges(SQUARE, truth)
        rssi = _rssi(ranges)

        ranges_bad = ranges.copy()
        ranges_bad[1] = np.nan
        estimate = PositionEstimator().estimate(SQUARE, ranges_bad, rssi)
        assert estimate.ok
        assert estimate.info["n_measurements"] == 3

        ranges_bad[2] = 0.0
        estimate = PositionEstimator().estimate(SQUARE, ranges_bad, rssi)
        assert estimate.reason is FailureReason.INSUFFICIENT_MEASUREMENTS

    def test_out_of_bounds(self):
        """An estimate outside the working area is rejected."""
        ranges = _ranges(TRIANGLE, [3.0, 4.0])
        estimator = PositionEstimator(sanity_margin=0.0, area=(0.0, 0.0, 1.0, 1.0))

        estimate = estimator.estimate(TRIANGLE, ranges, _rssi(ranges))

        assert estimate.status is PositionStatus.NO_SOLUTION
        assert estimate.reason is FailureReason.OUT_OF_BOUNDS
        assert estimate.position is None

    def test_mismatched_lengths_raise(self):
        with pytest.raises(ValueError):
            PositionEstimator().estimate(TRIANGLE, np.ones(2), np.ones(3))

    def test_estimate_measurements_uses_filtered_rssi(self):
        truth = np.array([3.0, 4.0])
        ranges = _ranges(TRIANGLE, truth)
        measurements = [
            Measurement(
                anchor=Anchor(f"R{i + 1}", TRIANGLE[i]),
                rssi=-120.0,
                distance=float(ranges[i]),
                filtered_rssi=-70.0,
            )
            for i in range(3)
        ]

        estimate = PositionEstimator().estimate_measurements(measurements)

        assert estimate.ok
        np.testing.assert_allclose(estimate.position, truth, atol=0.05)

    def test_estimate_measurements_empty(self):
        estimate = PositionEstimator().estimate_measurements([])

        assert estimate.reason is FailureReason.INSUFFICIENT_MEASUREMENTS
