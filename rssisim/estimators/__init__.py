"""
Recursive estimators for measurement smoothing.

Available estimators:
    - ScalarKalmanFilter: one-dimensional random-walk Kalman filter
    - FilterBank: per-anchor collection of scalar filters
"""

from rssisim.estimators.base import StateEstimator
from rssisim.estimators.kalman_filter import FilterBank, ScalarKalmanFilter

__all__ = [
    "StateEstimator",
    "ScalarKalmanFilter",
    "FilterBank",
]
