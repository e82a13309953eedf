"""
Obstacle module.

Line-segment obstacles (walls, doors, windows) with material-dependent
attenuation, and the obstacle field answering line-of-sight queries.

Submodules:
    types: Material enumeration, Obstacle and Intersection records
    field: Segment intersection, penetration angle factor, ObstacleField
"""

from rssisim.obstacles.field import (
    PARALLEL_EPSILON,
    ObstacleField,
    penetration_angle_factor,
    segment_intersection,
)
from rssisim.obstacles.types import Intersection, Material, Obstacle

__all__ = [
    # Types
    "Material",
    "Obstacle",
    "Intersection",
    # Geometry
    "PARALLEL_EPSILON",
    "segment_intersection",
    "penetration_angle_factor",
    "ObstacleField",
]
