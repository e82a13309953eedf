"""
Obstacle field and line-of-sight queries.

This module implements the geometry behind wall attenuation:
- Parametric segment-segment intersection test
- Ordered list of obstacles crossed by a transmitter→receiver sight line
- Penetration angle factor (grazing vs. perpendicular incidence)

For two segments P1P2 (sight line) and P3P4 (obstacle):
    denom = (x1 - x2)(y3 - y4) - (y1 - y2)(x3 - x4)
    t = ((x1 - x3)(y3 - y4) - (y1 - y3)(x3 - x4)) / denom
    u = -((x1 - x2)(y1 - y3) - (y1 - y2)(x1 - x3)) / denom
and the segments cross iff 0 <= t <= 1 and 0 <= u <= 1.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from rssisim.obstacles.types import Intersection, Obstacle

# |denom| below this is treated as parallel (no crossing)
PARALLEL_EPSILON = 1e-10


def segment_intersection(
    p1: np.ndarray,
    p2: np.ndarray,
    p3: np.ndarray,
    p4: np.ndarray,
) -> Optional[Tuple[np.ndarray, float, float]]:
    """
    Intersect segment P1P2 with segment P3P4.

    Args:
        p1: Start of the first segment [x, y].
        p2: End of the first segment [x, y].
        p3: Start of the second segment [x, y].
        p4: End of the second segment [x, y].

    Returns:
        (point, t, u) where point = p1 + t (p2 - p1), or None if the segments
        are parallel or do not cross within both parameter ranges [0, 1].

    Example:
        >>> point, t, u = segment_intersection(
        ...     np.array([0.0, 0.0]), np.array([10.0, 0.0]),
        ...     np.array([5.0, -1.0]), np.array([5.0, 1.0]))
        >>> point
        array([5., 0.])
    """
    x1, y1 = p1
    x2, y2 = p2
    x3, y3 = p3
    x4, y4 = p4

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < PARALLEL_EPSILON:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        point = np.array([x1 + t * (x2 - x1), y1 + t * (y2 - y1)])
        return point, float(t), float(u)

    return None


def penetration_angle_factor(signal_direction: np.ndarray, obstacle: Obstacle) -> float:
    """
    Scale factor for obstacle loss based on the angle of incidence.

    The absolute cosine between the normalized signal direction and the
    obstacle's unit normal is mapped linearly from [0, 1] to [0.5, 1.0]:

        factor = 0.5 + 0.5 * |d̂ · n̂|

    Grazing incidence (signal parallel to the wall) gives 0.5, perpendicular
    incidence gives 1.0.

    Args:
        signal_direction: Direction of propagation [dx, dy] (any length > 0).
        obstacle: Crossed obstacle.

    Returns:
        Factor in [0.5, 1.0].

    Raises:
        ValueError: If signal_direction has zero length.
    """
    direction = np.asarray(signal_direction, dtype=float)
    norm = np.linalg.norm(direction)
    if norm == 0.0:
        raise ValueError("Signal direction must have non-zero length")

    cos_incidence = abs(float(direction @ obstacle.normal) / norm)
    # Guard against rounding slightly above 1
    cos_incidence = min(cos_incidence, 1.0)

    return 0.5 + 0.5 * cos_incidence


class ObstacleField:
    """
    Collection of obstacles answering line-of-sight queries.

    The field is mutated only between simulation ticks by the owning session
    (add/remove/clear). Iteration order is insertion order.

    Example:
        >>> field = ObstacleField()
        >>> field.add(Obstacle([5.0, -5.0], [5.0, 5.0], material="drywall"))
        >>> hits = field.intersections(np.array([0.0, 0.0]), np.array([10.0, 0.0]))
        >>> [h.obstacle.material.key for h in hits]
        ['drywall']
    """

    def __init__(self, obstacles: Iterable[Obstacle] = ()):
        self._obstacles: Dict[str, Obstacle] = {}
        for obstacle in obstacles:
            self.add(obstacle)

    def __len__(self) -> int:
        return len(self._obstacles)

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(list(self._obstacles.values()))

    def __contains__(self, obstacle_id: str) -> bool:
        return obstacle_id in self._obstacles

    @property
    def obstacles(self) -> List[Obstacle]:
        return list(self._obstacles.values())

    def add(self, obstacle: Obstacle) -> None:
        """
        Register an obstacle.

        Raises:
            ValueError: If an obstacle with the same id is already present.
        """
        if obstacle.obstacle_id in self._obstacles:
            raise ValueError(f"Duplicate obstacle id '{obstacle.obstacle_id}'")
        self._obstacles[obstacle.obstacle_id] = obstacle

    def remove(self, obstacle_id: str) -> Obstacle:
        """
        Remove and return an obstacle.

        Raises:
            KeyError: If no obstacle has this id.
        """
        if obstacle_id not in self._obstacles:
            raise KeyError(f"Unknown obstacle id '{obstacle_id}'")
        return self._obstacles.pop(obstacle_id)

    def get(self, obstacle_id: str) -> Optional[Obstacle]:
        return self._obstacles.get(obstacle_id)

    def clear(self) -> None:
        self._obstacles.clear()

    def intersections(
        self,
        segment_start: np.ndarray,
        segment_end: np.ndarray,
    ) -> List[Intersection]:
        """
        Find every obstacle crossed by the segment start→end.

        Args:
            segment_start: Sight line start (transmitter) [x, y].
            segment_end: Sight line end (receiver) [x, y].

        Returns:
            Intersections sorted by ascending distance from segment_start
            (nearest obstacle first). Cumulative loss depends on this order.
        """
        start = np.asarray(segment_start, dtype=float)
        end = np.asarray(segment_end, dtype=float)

        hits = []
        for obstacle in self._obstacles.values():
            crossing = segment_intersection(start, end, obstacle.start, obstacle.end)
            if crossing is None:
                continue
            point, t, u = crossing
            hits.append(
                Intersection(
                    obstacle=obstacle,
                    point=point,
                    distance=float(np.linalg.norm(point - start)),
                    t=t,
                    u=u,
                )
            )

        # sorted() is stable: equal distances keep insertion order
        return sorted(hits, key=lambda hit: hit.distance)

    def penetration_angle_factor(
        self, signal_direction: np.ndarray, obstacle: Obstacle
    ) -> float:
        """See :func:`penetration_angle_factor`."""
        return penetration_angle_factor(signal_direction, obstacle)

    def find_near(self, point: np.ndarray, threshold: float = 0.25) -> Optional[Obstacle]:
        """
        Hit-test: nearest obstacle within ``threshold`` meters of ``point``.

        Returns:
            The closest obstacle, or None if none lies within the threshold.
        """
        best = None
        best_distance = np.inf
        for obstacle in self._obstacles.values():
            distance = obstacle.distance_to_point(point)
            if distance <= threshold and distance < best_distance:
                best = obstacle
                best_distance = distance
        return best
