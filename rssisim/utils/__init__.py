"""
Utility functions for the positioning core.

This module provides common geometric helpers used across the codebase,
including singularity handling, anchor geometry checks and segment distance.
"""

from .geometry import (
    normalize_jacobian_singularities,
    check_anchor_geometry,
    point_to_segment_distance,
)

__all__ = [
    'normalize_jacobian_singularities',
    'check_anchor_geometry',
    'point_to_segment_distance',
]
