"""
RSS measurement models for indoor positioning.

This module implements the received-signal-strength side of the simulator:
- Log-distance path-loss model and its inverse
- Gaussian RSSI noise (Box-Muller transform)
- Obstacle penetration loss along the sight line
- Clamping to the receiver's reportable range
"""

from typing import List, Optional, Tuple

import numpy as np

from rssisim.obstacles.field import penetration_angle_factor
from rssisim.obstacles.types import Intersection

# Reportable RSSI range of the simulated receiver (dBm)
RSSI_MIN_DBM = -120.0
RSSI_MAX_DBM = -30.0

# Distances below this are clamped before taking log10 (meters)
MIN_DISTANCE = 0.1

# Each additional obstacle multiplies the running loss factor by this amount
CUMULATIVE_SCATTER_FACTOR = 1.1


def rss_pathloss(
    p_ref_dbm: float,
    distance: float,
    path_loss_exp: float = 2.0,
    d_ref: float = 1.0,
) -> float:
    """
    Compute RSS using the log-distance path-loss model.

        p_R = p_ref - 10*n*log10(d / d_ref)

    where:
        p_ref: reference RSS measured at distance d_ref (dBm)
        n: path-loss exponent
        d: distance from anchor to receiver
        d_ref: reference distance (typically 1m)

    Args:
        p_ref_dbm: Reference RSS at distance d_ref in dBm (tx power).
        distance: Distance from anchor to receiver in meters.
        path_loss_exp: Path-loss exponent n. Defaults to 2.0 (free space).
                      Typical indoor values: 2.5-4.0.
        d_ref: Reference distance in meters. Defaults to 1.0.

    Returns:
        Received signal strength in dBm.

    Example:
        >>> rss = rss_pathloss(p_ref_dbm=-40.0, distance=10.0, path_loss_exp=2.5)
        >>> print(f"RSS: {rss:.2f} dBm")
        RSS: -65.00 dBm
    """
    if distance <= 0:
        raise ValueError("Distance must be positive")

    return p_ref_dbm - 10 * path_loss_exp * np.log10(distance / d_ref)


def rss_to_distance(
    rss_dbm: float,
    p_ref_dbm: float,
    path_loss_exp: float = 2.0,
    d_ref: float = 1.0,
) -> float:
    """
    Estimate distance from RSS using the inverse path-loss model.

        d = d_ref * 10^((p_ref - p_R) / (10*n))

    Obstacle loss and noise are forward-only effects and are not inverted:
    a blocked or noisy reading simply maps to a longer or shorter range.

    Args:
        rss_dbm: Received signal strength in dBm.
        p_ref_dbm: Reference RSS at distance d_ref in dBm.
        path_loss_exp: Path-loss exponent n. Defaults to 2.0.
        d_ref: Reference distance in meters. Defaults to 1.0.

    Returns:
        Estimated distance in meters.

    Example:
        >>> distance = rss_to_distance(rss_dbm=-65.0, p_ref_dbm=-40.0, path_loss_exp=2.5)
        >>> print(f"Distance: {distance:.2f} m")
        Distance: 10.00 m
    """
    exponent = (p_ref_dbm - rss_dbm) / (10 * path_loss_exp)
    return d_ref * (10**exponent)


def gaussian_noise_box_muller(
    std: float,
    rng: Optional[np.random.Generator] = None,
    mean: float = 0.0,
) -> float:
    """
    Draw one Gaussian sample using the Box-Muller transform.

        z = sqrt(-2 ln u1) * cos(2*pi*u2),   u1, u2 ~ U(0, 1]

    Args:
        std: Standard deviation (dB).
        rng: Random number generator for reproducibility.
             If None, uses np.random.default_rng().
        mean: Mean of the sample. Defaults to 0.

    Returns:
        mean + std * z
    """
    if std < 0:
        raise ValueError(f"std must be non-negative, got {std}")
    if rng is None:
        rng = np.random.default_rng()

    # Generator.random() is in [0, 1); 1 - u is in (0, 1] so log() stays finite
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    z0 = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

    return float(mean + std * z0)


def clamp_rssi(rssi_dbm: float) -> float:
    """Clamp an RSSI value to the reportable range [-120, -30] dBm."""
    return float(min(max(rssi_dbm, RSSI_MIN_DBM), RSSI_MAX_DBM))


def compute_obstacle_loss(
    intersections: List[Intersection],
    signal_direction: np.ndarray,
    angle_effect: bool = True,
    cumulative_effect: bool = True,
) -> Tuple[float, List[float]]:
    """
    Total penetration loss for an ordered list of obstacle crossings.

    For the i-th crossing (nearest first):
        loss_i = attenuation_i * angle_factor_i * c_i
    with angle_factor_i in [0.5, 1] when the angle effect is enabled, and the
    running cumulative factor c_0 = 1, c_i = 1.1 * c_(i-1) for i >= 1 when the
    cumulative effect is enabled.

    Args:
        intersections: Crossings sorted by distance from the transmitter.
        signal_direction: Transmitter→receiver vector [dx, dy].
        angle_effect: Apply the penetration angle factor.
        cumulative_effect: Apply the compounding scattering factor.

    Returns:
        total_loss: Sum of per-obstacle losses in dB (>= 0).
        per_obstacle: Individual losses in crossing order.
    """
    per_obstacle = []
    cumulative_factor = 1.0

    for index, hit in enumerate(intersections):
        loss = hit.obstacle.attenuation

        if angle_effect:
            loss *= penetration_angle_factor(signal_direction, hit.obstacle)

        if cumulative_effect and index > 0:
            cumulative_factor *= CUMULATIVE_SCATTER_FACTOR

        per_obstacle.append(loss * cumulative_factor)

    return float(sum(per_obstacle)), per_obstacle


def signal_quality(rssi_dbm: float) -> str:
    """
    Coarse quality class of an RSSI reading.

    Returns:
        "strong" (>= -60 dBm), "medium" (>= -80 dBm) or "weak".
    """
    if rssi_dbm >= -60.0:
        return "strong"
    if rssi_dbm >= -80.0:
        return "medium"
    return "weak"
