"""Data types for obstacles (walls, doors, windows) in the simulated floor plan.

Obstacles are 2D line segments tagged with a building material. Each
material carries a fixed penetration loss in dB (typical indoor RF loss at
2.4 GHz).
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

import numpy as np

from rssisim.utils.geometry import point_to_segment_distance


class Material(Enum):
    """Obstacle materials and their nominal penetration loss.

    Each member's value is a ``(key, attenuation_db, display_name)`` tuple.

    Attributes:
        DRYWALL: Standard drywall partition (3 dB).
        CONCRETE: Concrete wall (10 dB).
        BRICK: Brick wall (8 dB).
        GLASS: Glass pane or window (2 dB).
        METAL: Metal wall or cabinet (20 dB).
        WOOD_DOOR: Wooden door (4 dB).
        METAL_DOOR: Metal door (12 dB).
    """

    DRYWALL = ("drywall", 3.0, "Drywall")
    CONCRETE = ("concrete", 10.0, "Concrete")
    BRICK = ("brick", 8.0, "Brick")
    GLASS = ("glass", 2.0, "Glass")
    METAL = ("metal", 20.0, "Metal")
    WOOD_DOOR = ("wood_door", 4.0, "Wood Door")
    METAL_DOOR = ("metal_door", 12.0, "Metal Door")

    @property
    def key(self) -> str:
        return self.value[0]

    @property
    def attenuation(self) -> float:
        """Nominal penetration loss in dB (always >= 0)."""
        return self.value[1]

    @property
    def display_name(self) -> str:
        return self.value[2]

    @classmethod
    def from_key(cls, key: Union[str, "Material"]) -> "Material":
        """
        Look up a material by its string key (e.g. ``"concrete"``).

        Args:
            key: Material key, case-insensitive, or a Material member.

        Returns:
            Matching Material member.

        Raises:
            ValueError: If the key does not name a known material.
        """
        if isinstance(key, Material):
            return key
        key_lower = str(key).lower()
        for material in cls:
            if material.key == key_lower:
                return material
        valid = [m.key for m in cls]
        raise ValueError(f"material must be one of {valid}, got '{key}'")


def _new_obstacle_id() -> str:
    return f"obstacle_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True, eq=False)
class Obstacle:
    """A straight obstacle segment between two endpoints.

    Attributes:
        start: First endpoint [x, y] in meters.
        end: Second endpoint [x, y] in meters.
        material: Obstacle material (determines attenuation).
        obstacle_id: Unique identifier. Generated if not given.
        thickness: Physical thickness in meters. Informational only, the
                   loss model uses the material attenuation.

    Example:
        >>> wall = Obstacle(start=[5.0, 0.0], end=[5.0, 10.0], material="concrete")
        >>> wall.attenuation
        10.0
        >>> wall.length
        10.0
    """

    start: np.ndarray
    end: np.ndarray
    material: Material = Material.DRYWALL
    obstacle_id: str = field(default_factory=_new_obstacle_id)
    thickness: float = 0.15

    def __post_init__(self) -> None:
        """Validate and normalize the endpoints and material."""
        start = np.asarray(self.start, dtype=float)
        end = np.asarray(self.end, dtype=float)
        if start.shape != (2,) or end.shape != (2,):
            raise ValueError(
                f"Obstacle endpoints must have shape (2,), got {start.shape} and {end.shape}"
            )
        if not (np.all(np.isfinite(start)) and np.all(np.isfinite(end))):
            raise ValueError("Obstacle endpoints must be finite")
        if np.linalg.norm(end - start) == 0.0:
            raise ValueError("Obstacle endpoints must be distinct (zero-length obstacle)")
        if self.thickness < 0:
            raise ValueError(f"Thickness must be non-negative, got {self.thickness}")

        # frozen dataclass: normalize fields through object.__setattr__
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "material", Material.from_key(self.material))

    @property
    def attenuation(self) -> float:
        """Penetration loss of this obstacle in dB."""
        return self.material.attenuation

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))

    @property
    def midpoint(self) -> np.ndarray:
        return 0.5 * (self.start + self.end)

    @property
    def tangent(self) -> np.ndarray:
        """Unit vector pointing from start to end."""
        return (self.end - self.start) / self.length

    @property
    def normal(self) -> np.ndarray:
        """Unit normal (tangent rotated by +90 degrees)."""
        tx, ty = self.tangent
        return np.array([-ty, tx])

    def distance_to_point(self, point: np.ndarray) -> float:
        """Shortest distance from ``point`` to this segment (hit-testing)."""
        return point_to_segment_distance(point, self.start, self.end)

    def contains_point(self, point: np.ndarray, threshold: float = 0.25) -> bool:
        """True if ``point`` lies within ``threshold`` meters of the segment."""
        return self.distance_to_point(point) <= threshold


@dataclass(frozen=True, eq=False)
class Intersection:
    """Crossing between a sight segment and an obstacle.

    Attributes:
        obstacle: The obstacle that was crossed.
        point: Crossing point [x, y] in meters.
        distance: Distance from the sight segment start to the crossing (m).
        t: Parameter along the sight segment, in [0, 1].
        u: Parameter along the obstacle segment, in [0, 1].
    """

    obstacle: Obstacle
    point: np.ndarray
    distance: float
    t: float
    u: float
