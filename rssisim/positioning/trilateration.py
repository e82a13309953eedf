"""
RSSI trilateration algorithms.

This module implements 2D positioning from RSSI-derived ranges:
- RSSI-based measurement weighting
- Weighted centroid (initial guess)
- Closed-form trilateration from exactly three circles
- Weighted Gauss-Newton nonlinear least squares
- PositionEstimator combining the above with a validity gate

Range model for anchor i at (x_i, y_i) and position p = (x, y):
    h_i(p) = sqrt((x - x_i)^2 + (y - y_i)^2)
    r_i    = h_i(p) - d_i                 (residual, predicted - measured)
    J_i    = [(x - x_i)/h_i, (y - y_i)/h_i]

Gauss-Newton step:
    (J'WJ) Δp = -J'W r,   W = diag(weight(rssi_i))
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from rssisim.config import SimulationConfig
from rssisim.positioning.types import (
    FailureReason,
    Measurement,
    PositionEstimate,
    SolverStatus,
    WLSResult,
)
from rssisim.utils.geometry import normalize_jacobian_singularities

# |A*E - B*D| below this means the three anchors are collinear
COLLINEAR_EPSILON = 1e-3
# |det(J'WJ)| below this aborts Gauss-Newton
SINGULAR_EPSILON = 1e-10

MIN_MEASUREMENTS = 3


def rssi_weight(rssi_dbm):
    """
    Measurement weight from signal strength.

        w = 10 ^ clamp((rssi + 100) / 40, 0, 1)

    Strong signals (-60 dBm and above) get weight 10, weak signals
    (-100 dBm and below) get weight 1.

    Args:
        rssi_dbm: RSSI in dBm, scalar or array.

    Returns:
        Weight(s) in [1, 10], same shape as the input.

    Example:
        >>> rssi_weight(-60.0)
        10.0
        >>> rssi_weight(np.array([-100.0, -80.0]))
        array([1.        , 3.16227766])
    """
    normalized = np.clip((np.asarray(rssi_dbm, dtype=float) + 100.0) / 40.0, 0.0, 1.0)
    weights = 10.0 ** normalized
    if np.ndim(weights) == 0:
        return float(weights)
    return weights


def weighted_centroid(anchors: np.ndarray, rssi_dbm: np.ndarray) -> np.ndarray:
    """
    RSSI-weighted centroid of anchor positions.

    Args:
        anchors: Anchor positions, shape (N, 2).
        rssi_dbm: RSSI per anchor, shape (N,).

    Returns:
        Centroid [x, y].
    """
    anchors = np.asarray(anchors, dtype=float)
    weights = np.atleast_1d(rssi_weight(rssi_dbm))
    return (weights[:, None] * anchors).sum(axis=0) / weights.sum()


def geometric_trilaterate(
    anchors: np.ndarray,
    distances: np.ndarray,
) -> Optional[np.ndarray]:
    """
    Closed-form trilateration from exactly three range circles.

    Subtracting circle 2 from circle 1 and circle 3 from circle 2 gives the
    linear system:
        A x + B y = C,   D x + E y = F
    with
        A = 2(x2 - x1),  B = 2(y2 - y1)
        C = r1² - r2² - x1² + x2² - y1² + y2²
        D = 2(x3 - x2),  E = 2(y3 - y2)
        F = r2² - r3² - x2² + x3² - y2² + y3²
    solved by Cramer's rule.

    Args:
        anchors: Anchor positions, shape (3, 2).
        distances: Ranges to the anchors, shape (3,).

    Returns:
        Position [x, y], or None if the anchors are collinear
        (|A*E - B*D| < 1e-3).

    Raises:
        ValueError: If not given exactly three anchors and ranges.

    Example:
        >>> anchors = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
        >>> ranges = np.linalg.norm(anchors - np.array([3.0, 4.0]), axis=1)
        >>> geometric_trilaterate(anchors, ranges)
        array([3., 4.])
    """
    anchors = np.asarray(anchors, dtype=float)
    distances = np.asarray(distances, dtype=float)
    if anchors.shape != (3, 2) or distances.shape != (3,):
        raise ValueError(
            f"Expected 3 anchors (3, 2) and 3 ranges, got {anchors.shape} and {distances.shape}"
        )

    (x1, y1), (x2, y2), (x3, y3) = anchors
    r1, r2, r3 = distances

    A = 2 * (x2 - x1)
    B = 2 * (y2 - y1)
    C = r1**2 - r2**2 - x1**2 + x2**2 - y1**2 + y2**2
    D = 2 * (x3 - x2)
    E = 2 * (y3 - y2)
    F = r2**2 - r3**2 - x2**2 + x3**2 - y2**2 + y3**2

    denominator = A * E - B * D
    if abs(denominator) < COLLINEAR_EPSILON:
        return None

    x = (C * E - F * B) / denominator
    y = (A * F - D * C) / denominator

    return np.array([x, y])


def weighted_least_squares(
    anchors: np.ndarray,
    distances: np.ndarray,
    rssi_dbm: np.ndarray,
    initial_guess: np.ndarray,
    max_iter: int = 100,
    tol: float = 0.01,
) -> WLSResult:
    """
    Weighted Gauss-Newton solver for RSSI range positioning.

    **Algorithm (per iteration):**

    1. Predicted ranges h_i and residuals r_i = h_i - d_i
    2. Jacobian rows J_i = (p - a_i) / h_i
    3. Weighted normal equations N = J'WJ, g = J'W r with W = diag(w(rssi))
    4. If |det N| < 1e-10: stop, keep the current estimate (SINGULAR)
    5. Δp = -N⁻¹ g via the explicit 2×2 inverse; p ← p + Δp
    6. Converged when ‖Δp‖ < tol

    Args:
        anchors: Anchor positions, shape (N, 2).
        distances: Measured ranges, shape (N,).
        rssi_dbm: RSSI per anchor used for weighting, shape (N,).
        initial_guess: Starting position [x, y].
        max_iter: Maximum number of iterations. Defaults to 100.
        tol: Step-size convergence threshold in meters. Defaults to 0.01.

    Returns:
        WLSResult with the final estimate and a status telling apart
        converged, capped at max_iter, and aborted on singularity.
    """
    anchors = np.asarray(anchors, dtype=float)
    distances = np.asarray(distances, dtype=float)
    weights = np.atleast_1d(rssi_weight(rssi_dbm))
    position = np.asarray(initial_guess, dtype=float).copy()

    if anchors.ndim != 2 or anchors.shape[1] != 2:
        raise ValueError(f"Anchors must be an (N, 2) array, got shape {anchors.shape}")
    if len(distances) != anchors.shape[0] or len(weights) != anchors.shape[0]:
        raise ValueError(
            f"Expected {anchors.shape[0]} ranges and RSSI values, "
            f"got {len(distances)} and {len(weights)}"
        )

    history = [position.copy()]
    status = SolverStatus.MAX_ITERATIONS
    iterations = 0

    for _ in range(max_iter):
        diff = position - anchors
        predicted = np.linalg.norm(diff, axis=1)
        residuals = predicted - distances
        H = normalize_jacobian_singularities(diff, predicted)

        # Weighted normal equations (2x2) and right-hand side
        WH = weights[:, None] * H
        N = H.T @ WH
        g = WH.T @ residuals

        det = N[0, 0] * N[1, 1] - N[0, 1] * N[1, 0]
        if abs(det) < SINGULAR_EPSILON:
            status = SolverStatus.SINGULAR
            break

        N_inv = np.array([[N[1, 1], -N[0, 1]], [-N[1, 0], N[0, 0]]]) / det
        delta = -N_inv @ g

        position = position + delta
        history.append(position.copy())
        iterations += 1

        if np.linalg.norm(delta) < tol:
            status = SolverStatus.CONVERGED
            break

    final_residuals = np.linalg.norm(position - anchors, axis=1) - distances

    return WLSResult(
        x=position,
        status=status,
        iterations=iterations,
        residuals=final_residuals,
        history=np.array(history),
    )


def working_region(
    anchors: np.ndarray,
    margin: float,
    area: Optional[Tuple[float, float, float, float]] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sanity region for position estimates.

    Args:
        anchors: Anchor positions, shape (N, 2).
        margin: Extra margin in meters added on every side.
        area: Optional working area (xmin, ymin, xmax, ymax). When given it
              is used instead of the anchor bounding box.

    Returns:
        (lower, upper) corners of the region.
    """
    if area is not None:
        xmin, ymin, xmax, ymax = area
        lower = np.array([xmin, ymin], dtype=float)
        upper = np.array([xmax, ymax], dtype=float)
    else:
        anchors = np.asarray(anchors, dtype=float)
        lower = anchors.min(axis=0)
        upper = anchors.max(axis=0)
    return lower - margin, upper + margin


class PositionEstimator:
    """
    2D position estimation from RSSI-derived ranges.

    Combines closed-form trilateration (exactly 3 anchors) with weighted
    Gauss-Newton refinement (3 or more anchors), then rejects estimates
    outside the working region.

    **Failure handling:**

    - fewer than 3 valid measurements: NO_SOLUTION (INSUFFICIENT_MEASUREMENTS),
      no solver is run
    - 3 collinear anchors: closed form skipped, Gauss-Newton from the weighted
      centroid; DEGENERATE_GEOMETRY is recorded in ``notes``
    - singular normal matrix: last valid estimate kept;
      NUMERICAL_SINGULARITY is recorded in ``notes``
    - estimate outside the region or non-finite: NO_SOLUTION (OUT_OF_BOUNDS)

    Attributes:
        max_iterations: Gauss-Newton iteration cap.
        convergence_tol: Gauss-Newton step threshold (m).
        sanity_margin: Margin around the working region (m).
        area: Optional working area (xmin, ymin, xmax, ymax).

    Example:
        >>> anchors = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
        >>> ranges = np.linalg.norm(anchors - np.array([3.0, 4.0]), axis=1)
        >>> estimator = PositionEstimator()
        >>> result = estimator.estimate(anchors, ranges, np.array([-70.0, -75.0, -73.0]))
        >>> result.ok, np.round(result.position, 3)
        (True, array([3., 4.]))
    """

    def __init__(
        self,
        max_iterations: int = 100,
        convergence_tol: float = 0.01,
        sanity_margin: float = 10.0,
        area: Optional[Tuple[float, float, float, float]] = None,
    ):
        self.max_iterations = max_iterations
        self.convergence_tol = convergence_tol
        self.sanity_margin = sanity_margin
        self.area = area

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        area: Optional[Tuple[float, float, float, float]] = None,
    ) -> "PositionEstimator":
        return cls(
            max_iterations=config.max_iterations,
            convergence_tol=config.convergence_tol,
            sanity_margin=config.sanity_margin,
            area=area,
        )

    def estimate_measurements(self, measurements: Sequence[Measurement]) -> PositionEstimate:
        """Estimate from Measurement records (ranging RSSI used for weights)."""
        if len(measurements) == 0:
            return self.estimate(np.zeros((0, 2)), np.zeros(0), np.zeros(0))
        anchors = np.array([m.anchor.position for m in measurements], dtype=float)
        distances = np.array([m.distance for m in measurements], dtype=float)
        rssi = np.array([m.ranging_rssi for m in measurements], dtype=float)
        return self.estimate(anchors, distances, rssi)

    def estimate(
        self,
        anchors: np.ndarray,
        distances: np.ndarray,
        rssi_dbm: np.ndarray,
    ) -> PositionEstimate:
        """
        Estimate the receiver position.

        Args:
            anchors: Anchor positions, shape (N, 2).
            distances: Estimated ranges, shape (N,).
            rssi_dbm: Ranging RSSI per anchor, shape (N,).

        Returns:
            PositionEstimate with status OK or NO_SOLUTION. Never raises for
            geometric or numerical failures.
        """
        anchors = np.asarray(anchors, dtype=float).reshape(-1, 2)
        distances = np.asarray(distances, dtype=float).reshape(-1)
        rssi_dbm = np.asarray(rssi_dbm, dtype=float).reshape(-1)
        if not (len(anchors) == len(distances) == len(rssi_dbm)):
            raise ValueError(
                f"Inconsistent inputs: {len(anchors)} anchors, "
                f"{len(distances)} ranges, {len(rssi_dbm)} RSSI values"
            )

        # Drop unusable rows (non-finite values, non-positive ranges)
        valid = (
            np.all(np.isfinite(anchors), axis=1)
            & np.isfinite(distances)
            & np.isfinite(rssi_dbm)
            & (distances > 0)
        )
        anchors = anchors[valid]
        distances = distances[valid]
        rssi_dbm = rssi_dbm[valid]

        info = {"n_measurements": int(len(distances))}
        if len(distances) < MIN_MEASUREMENTS:
            return PositionEstimate.no_solution(
                FailureReason.INSUFFICIENT_MEASUREMENTS, info=info
            )

        notes = []
        initial_guess = weighted_centroid(anchors, rssi_dbm)
        method = "wls"
        if len(distances) == 3:
            closed_form = geometric_trilaterate(anchors, distances)
            if closed_form is None:
                notes.append(FailureReason.DEGENERATE_GEOMETRY)
            elif np.all(np.isfinite(closed_form)):
                initial_guess = closed_form
                method = "geometric+wls"

        result = weighted_least_squares(
            anchors,
            distances,
            rssi_dbm,
            initial_guess,
            max_iter=self.max_iterations,
            tol=self.convergence_tol,
        )
        if result.status is SolverStatus.SINGULAR:
            notes.append(FailureReason.NUMERICAL_SINGULARITY)

        lower, upper = working_region(anchors, self.sanity_margin, self.area)
        info.update(
            {
                "method": method,
                "initial_guess": initial_guess,
                "solver_status": result.status,
                "iterations": result.iterations,
                "residuals": result.residuals,
                "region": (lower, upper),
            }
        )

        position = result.x
        if (
            not np.all(np.isfinite(position))
            or np.any(position < lower)
            or np.any(position > upper)
        ):
            return PositionEstimate.no_solution(
                FailureReason.OUT_OF_BOUNDS, notes=tuple(notes), info=info
            )

        return PositionEstimate.valid(position, notes=tuple(notes), info=info)
