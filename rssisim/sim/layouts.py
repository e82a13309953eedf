"""
Default anchor layouts for a rectangular working area.

Layouts (``n`` anchors inside a ``width`` x ``height`` area, ``margin`` from
the border):
    3: triangle (top centre, two bottom corners)
    4: square corners
    5: regular pentagon
    6: regular hexagon

Coordinates follow the screen convention of the editor: x to the right,
y downwards from the top-left corner, in meters.
"""

from typing import List

import numpy as np

from rssisim.positioning.types import Anchor

SUPPORTED_ANCHOR_COUNTS = (3, 4, 5, 6)


def create_anchor_positions(
    n_anchors: int = 4,
    width: float = 20.0,
    height: float = 15.0,
    margin: float = 2.0,
) -> np.ndarray:
    """
    Anchor positions for a default layout.

    Args:
        n_anchors: Number of anchors (3 to 6).
        width: Working area width in meters.
        height: Working area height in meters.
        margin: Distance of the layout from the border in meters.

    Returns:
        Anchor positions, shape (n_anchors, 2).

    Raises:
        ValueError: If n_anchors is unsupported or the margin leaves no room.
    """
    if n_anchors not in SUPPORTED_ANCHOR_COUNTS:
        raise ValueError(
            f"n_anchors must be one of {SUPPORTED_ANCHOR_COUNTS}, got {n_anchors}"
        )
    inner_width = width - 2 * margin
    inner_height = height - 2 * margin
    if inner_width <= 0 or inner_height <= 0:
        raise ValueError(
            f"Margin {margin} leaves no room in a {width} x {height} area"
        )

    if n_anchors == 3:
        # Triangle
        positions = np.array([
            [width / 2, margin],
            [margin, height - margin],
            [width - margin, height - margin],
        ], dtype=float)

    elif n_anchors == 4:
        # Square corners
        positions = np.array([
            [margin, margin],
            [width - margin, margin],
            [width - margin, height - margin],
            [margin, height - margin],
        ], dtype=float)

    else:
        # Regular polygon, first vertex at the top
        center = np.array([width / 2, height / 2])
        radius = min(inner_width, inner_height) / 2
        angles = np.arange(n_anchors) * 2 * np.pi / n_anchors - np.pi / 2
        positions = center + radius * np.column_stack([np.cos(angles), np.sin(angles)])

    return positions


def create_anchor_layout(
    n_anchors: int = 4,
    width: float = 20.0,
    height: float = 15.0,
    margin: float = 2.0,
) -> List[Anchor]:
    """Anchors 'R1'..'Rn' placed with :func:`create_anchor_positions`."""
    positions = create_anchor_positions(n_anchors, width, height, margin)
    return [
        Anchor(anchor_id=f"R{i + 1}", position=position)
        for i, position in enumerate(positions)
    ]
