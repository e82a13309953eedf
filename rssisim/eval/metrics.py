"""
Evaluation metrics for simulated RSSI positioning.

This module provides functions to compute position error metrics over a run
of simulation ticks, including solution availability and failure counts.
"""

from collections import Counter
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from rssisim.sim.session import TickResult


def compute_position_errors(
    truth: np.ndarray, estimated: np.ndarray
) -> np.ndarray:
    """
    Compute position errors between true and estimated positions.

    Args:
        truth: True positions, shape (N, 2)
        estimated: Estimated positions, shape (N, 2)

    Returns:
        errors: Position error vectors, shape (N, 2)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.asarray(truth)
    estimated = np.asarray(estimated)

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )

    return estimated - truth


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over everything, 0 per dimension, 1 per sample
    """
    errors = np.asarray(errors)
    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_error_stats(errors: np.ndarray) -> Dict[str, float]:
    """
    Compute error statistics.

    Args:
        errors: Error vectors, shape (N, d) or error magnitudes, shape (N,)

    Returns:
        stats: Dictionary with keys 'mean', 'median', 'std', 'rmse',
               'p50', 'p75', 'p90', 'p95', 'max'. All NaN for empty input.
    """
    errors = np.asarray(errors, dtype=float)

    if errors.ndim > 1:
        error_magnitudes = np.linalg.norm(errors, axis=1)
    else:
        error_magnitudes = np.abs(errors)

    keys = ("mean", "median", "std", "rmse", "p50", "p75", "p90", "p95", "max")
    if error_magnitudes.size == 0:
        return {key: float("nan") for key in keys}

    return {
        "mean": float(np.mean(error_magnitudes)),
        "median": float(np.median(error_magnitudes)),
        "std": float(np.std(error_magnitudes)),
        "rmse": float(np.sqrt(np.mean(error_magnitudes**2))),
        "p50": float(np.percentile(error_magnitudes, 50)),
        "p75": float(np.percentile(error_magnitudes, 75)),
        "p90": float(np.percentile(error_magnitudes, 90)),
        "p95": float(np.percentile(error_magnitudes, 95)),
        "max": float(np.max(error_magnitudes)),
    }


def summarize_ticks(results: Sequence[TickResult]) -> Dict[str, Any]:
    """
    Summarize a simulation run.

    Args:
        results: Tick results in time order.

    Returns:
        Dictionary with:
            - 'n_ticks': Number of ticks
            - 'availability': Fraction of ticks with an OK estimate
            - 'error_stats': :func:`compute_error_stats` over OK ticks
            - 'failures': {reason value: count} for NO_SOLUTION ticks
            - 'mean_active_anchors': Mean number of anchors above min_signal
    """
    errors = np.array([r.error for r in results if r.error is not None], dtype=float)
    failures = Counter(
        r.estimate.reason.value for r in results if not r.estimate.ok
    )
    n_ticks = len(results)

    return {
        "n_ticks": n_ticks,
        "availability": (len(errors) / n_ticks) if n_ticks else 0.0,
        "error_stats": compute_error_stats(errors),
        "failures": dict(failures),
        "mean_active_anchors": (
            float(np.mean([r.active_count for r in results])) if n_ticks else 0.0
        ),
    }
