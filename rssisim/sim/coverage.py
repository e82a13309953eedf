"""
Signal coverage map over the working area.

For every grid cell the strongest noise-free RSSI over all anchors is
computed (including obstacle loss when enabled), giving a best-server
coverage map. The normalised map (rssi + 100) / 40 clamped to [0, 1] is the
value the editor uses to colour cells from red (weak) to green (strong).
"""

from typing import Dict, Sequence

import numpy as np

from rssisim.config import SimulationConfig
from rssisim.positioning.types import Anchor
from rssisim.rf.propagation import SignalPropagationModel


def compute_coverage_map(
    model: SignalPropagationModel,
    anchors: Sequence[Anchor],
    width: float,
    height: float,
    resolution: float = 0.5,
) -> Dict[str, np.ndarray]:
    """
    Best-server RSSI on a regular grid.

    Noise is disabled for the map regardless of the model configuration, so
    the map is deterministic.

    Args:
        model: Propagation model (its obstacle field and toggles are used).
        anchors: Anchors to evaluate.
        width: Area width in meters.
        height: Area height in meters.
        resolution: Cell size in meters.

    Returns:
        Dictionary with:
            - 'x': Cell x coordinates, shape (nx,)
            - 'y': Cell y coordinates, shape (ny,)
            - 'rssi': Max RSSI per cell, shape (ny, nx), -120 dBm without anchors
            - 'normalized': clip((rssi + 100) / 40, 0, 1), shape (ny, nx)
            - 'extent': (xmin, xmax, ymin, ymax) for plotting
    """
    if resolution <= 0:
        raise ValueError(f"resolution must be positive, got {resolution}")

    xs = np.arange(0.0, width, resolution)
    ys = np.arange(0.0, height, resolution)

    noise_free = SignalPropagationModel(
        model.config.with_changes(noise_enabled=False),
        obstacle_field=model.obstacle_field,
        rng=model.rng,
    )

    rssi_grid = np.full((len(ys), len(xs)), -120.0)
    for iy, y in enumerate(ys):
        for ix, x in enumerate(xs):
            cell = np.array([x, y])
            for anchor in anchors:
                distance = float(np.linalg.norm(cell - anchor.position))
                rssi = noise_free.to_signal_strength(distance, anchor.position, cell)
                if rssi > rssi_grid[iy, ix]:
                    rssi_grid[iy, ix] = rssi

    normalized = np.clip((rssi_grid + 100.0) / 40.0, 0.0, 1.0)

    return {
        'x': xs,
        'y': ys,
        'rssi': rssi_grid,
        'normalized': normalized,
        'extent': (0.0, float(width), 0.0, float(height)),
    }
