"""
Geometric utilities for positioning and obstacle handling.

Provides functions for:
- Singularity handling in range Jacobians
- Anchor geometry checking
- Point-to-segment distance (obstacle hit-testing)
"""

import numpy as np
from typing import Tuple, Optional
import warnings


# Singularity threshold constants
EPSILON_RANGE = 1e-10  # Minimum range for Jacobian computation
EPSILON_COLINEAR = 1e-6  # Threshold for colinearity detection


def normalize_jacobian_singularities(
    diff: np.ndarray,
    ranges: np.ndarray,
    epsilon: float = EPSILON_RANGE
) -> np.ndarray:
    """
    Safely compute normalized range Jacobian, avoiding singularities.

    Computes H[i] = diff[i] / range[i] with protection against division by zero
    when range → 0 (position estimate on top of an anchor).

    Args:
        diff: Difference vectors (estimate - anchor), shape (N, 2)
        ranges: Range values, shape (N,) or (N, 1)
        epsilon: Minimum range threshold (default: 1e-10 m)

    Returns:
        Normalized Jacobian H = diff / range, shape (N, 2)
        At singularities (range < epsilon), returns zero vector

    Example:
        >>> diff = np.array([[1.0, 0.0], [1e-12, 1e-12], [3.0, 4.0]])
        >>> ranges = np.array([1.0, 1e-12, 5.0])
        >>> H = normalize_jacobian_singularities(diff, ranges)
        >>> H[1]  # Singularity -> zero vector
        array([0., 0.])
    """
    ranges = np.asarray(ranges, dtype=float).reshape(-1, 1)
    diff = np.asarray(diff, dtype=float)

    ranges_safe = np.maximum(ranges, epsilon)
    H = diff / ranges_safe

    # Zero out rows where range is below epsilon (true singularity)
    singular_mask = (ranges < epsilon).flatten()
    if np.any(singular_mask):
        H[singular_mask, :] = 0.0
        warnings.warn(
            f"{np.sum(singular_mask)} measurement(s) at singularity (range < {epsilon}m). "
            "Setting Jacobian rows to zero. Estimate coincides with an anchor.",
            RuntimeWarning
        )

    return H


def check_anchor_geometry(
    anchors: np.ndarray,
    min_anchors: int = 3,
    warn_degenerate: bool = True
) -> Tuple[bool, str]:
    """
    Check if a 2D anchor layout is suitable for trilateration.

    Performs geometric checks:
    1. Sufficient number of anchors
    2. Anchors are not colinear

    Args:
        anchors: Anchor positions, shape (N, 2)
        min_anchors: Minimum number of anchors (default: 3)
        warn_degenerate: If True, issue a RuntimeWarning for degenerate layouts

    Returns:
        Tuple of (is_valid, message):
            - is_valid: True if geometry is acceptable
            - message: Description of geometry issue (empty if valid)

    Example:
        >>> anchors = np.array([[0, 0], [5, 0], [10, 0]])
        >>> is_valid, msg = check_anchor_geometry(anchors, warn_degenerate=False)
        >>> is_valid
        False
        >>> 'colinear' in msg.lower()
        True
    """
    anchors = np.asarray(anchors, dtype=float)

    if anchors.ndim != 2 or anchors.shape[1] != 2:
        return False, f"Anchors must be an (N, 2) array, got shape {anchors.shape}"

    n_anchors = anchors.shape[0]
    if n_anchors < min_anchors:
        return False, (
            f"Insufficient anchors: need at least {min_anchors} for 2D positioning, "
            f"got {n_anchors}"
        )

    # Rank of the centered anchor matrix via SVD
    anchors_centered = anchors - np.mean(anchors, axis=0)
    singular_values = np.linalg.svd(anchors_centered, compute_uv=False)
    if singular_values[0] == 0.0:
        rank = 0
    else:
        rank = int(np.sum(singular_values > EPSILON_COLINEAR * singular_values[0]))

    if rank < 2:
        msg = f"Anchors are colinear (rank {rank} < 2). Closed-form trilateration will fail."
        if warn_degenerate:
            warnings.warn(msg, RuntimeWarning)
        return False, msg

    return True, ""


def point_to_segment_distance(
    point: np.ndarray,
    seg_start: np.ndarray,
    seg_end: np.ndarray,
) -> float:
    """
    Shortest Euclidean distance from a point to a line segment.

    The point is projected onto the segment's supporting line; the projection
    parameter is clamped to [0, 1] so that points beyond either end measure
    to the nearest endpoint. A degenerate segment (start == end) measures to
    its start point.

    Args:
        point: Query point [x, y].
        seg_start: Segment start [x, y].
        seg_end: Segment end [x, y].

    Returns:
        Distance in the same unit as the inputs.

    Example:
        >>> point_to_segment_distance(np.array([5.0, 3.0]),
        ...                           np.array([0.0, 0.0]), np.array([10.0, 0.0]))
        3.0
    """
    p = np.asarray(point, dtype=float)
    a = np.asarray(seg_start, dtype=float)
    b = np.asarray(seg_end, dtype=float)

    ab = b - a
    len_sq = float(ab @ ab)
    if len_sq == 0.0:
        closest = a
    else:
        param = float((p - a) @ ab) / len_sq
        param = min(max(param, 0.0), 1.0)
        closest = a + param * ab

    return float(np.linalg.norm(p - closest))
