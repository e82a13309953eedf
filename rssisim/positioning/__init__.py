"""
Positioning module.

Turns RSSI-derived ranges into a 2D position estimate.

Submodules:
    types: Anchor, Measurement, PositionEstimate and status enums
    trilateration: Weighting, closed-form and Gauss-Newton solvers
"""

from rssisim.positioning.trilateration import (
    COLLINEAR_EPSILON,
    MIN_MEASUREMENTS,
    SINGULAR_EPSILON,
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
    PositionEstimate,
    PositionStatus,
    SolverStatus,
    WLSResult,
)

__all__ = [
    # Types
    "Anchor",
    "Measurement",
    "PositionEstimate",
    "PositionStatus",
    "FailureReason",
    "SolverStatus",
    "WLSResult",
    # Constants
    "COLLINEAR_EPSILON",
    "SINGULAR_EPSILON",
    "MIN_MEASUREMENTS",
    # Algorithms
    "rssi_weight",
    "weighted_centroid",
    "geometric_trilaterate",
    "weighted_least_squares",
    "working_region",
    "PositionEstimator",
]
