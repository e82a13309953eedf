"""
Signal propagation model: distance <-> RSSI.

Combines the log-distance path-loss model with obstacle penetration loss
and optional Gaussian noise, following the order:

1. Clamp distance to >= 0.1 m
2. Base RSSI = tx_power - 10*n*log10(d)
3. Subtract obstacle loss along the transmitter→receiver segment
4. Add Gaussian noise (Box-Muller)
5. Clamp to [-120, -30] dBm

Only the noise term is stochastic; it is drawn from an injectable
``np.random.Generator`` so that runs are reproducible under a fixed seed.
"""

from typing import Any, Dict, Optional

import numpy as np

from rssisim.config import SimulationConfig
from rssisim.obstacles.field import ObstacleField
from rssisim.rf.measurement_models import (
    MIN_DISTANCE,
    clamp_rssi,
    compute_obstacle_loss,
    gaussian_noise_box_muller,
    rss_pathloss,
    rss_to_distance,
)


class SignalPropagationModel:
    """
    Bidirectional distance↔RSSI mapping with obstacle and noise effects.

    Attributes:
        config: Active simulation configuration (tx power, n, toggles).
        obstacle_field: Obstacles consulted for penetration loss. May be None
                        for an obstacle-free environment.
        rng: Random number generator used for the noise term.

    Example:
        >>> model = SignalPropagationModel(SimulationConfig(path_loss_exponent=2.0))
        >>> model.to_signal_strength(10.0)
        -79.0
        >>> round(model.to_distance(-79.0), 6)
        10.0
    """

    def __init__(
        self,
        config: SimulationConfig,
        obstacle_field: Optional[ObstacleField] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config
        self.obstacle_field = obstacle_field
        self.rng = rng if rng is not None else np.random.default_rng()

    def base_signal_strength(self, distance: float) -> float:
        """Noise-free, obstacle-free RSSI at ``distance`` (before clamping)."""
        safe_distance = max(MIN_DISTANCE, float(distance))
        return float(
            rss_pathloss(
                self.config.tx_power,
                safe_distance,
                path_loss_exp=self.config.path_loss_exponent,
            )
        )

    def breakdown(
        self,
        distance: float,
        tx_pos: Optional[np.ndarray] = None,
        rx_pos: Optional[np.ndarray] = None,
    ) -> Dict[str, Any]:
        """
        Compute an RSSI sample together with its individual contributions.

        Args:
            distance: Transmitter-receiver distance in meters.
            tx_pos: Transmitter (anchor) position [x, y]. Required together
                    with rx_pos for obstacle loss.
            rx_pos: Receiver position [x, y].

        Returns:
            Dictionary with:
                - 'rssi': Final clamped RSSI (dBm)
                - 'base_rssi': Path-loss RSSI without obstacles/noise (dBm)
                - 'distance': Distance used, after the 0.1 m clamp (m)
                - 'total_attenuation': Obstacle loss (dB)
                - 'obstacle_losses': Per-obstacle losses in crossing order (dB)
                - 'noise': Noise sample added (dB)
                - 'intersections': Obstacles crossed, nearest first
                - 'obstacle_count': Number of obstacles crossed
        """
        safe_distance = max(MIN_DISTANCE, float(distance))
        base_rssi = self.base_signal_strength(safe_distance)

        intersections = []
        total_attenuation = 0.0
        obstacle_losses = []
        if (
            self.config.obstacles_enabled
            and self.obstacle_field is not None
            and tx_pos is not None
            and rx_pos is not None
        ):
            tx = np.asarray(tx_pos, dtype=float)
            rx = np.asarray(rx_pos, dtype=float)
            intersections = self.obstacle_field.intersections(tx, rx)
            total_attenuation, obstacle_losses = compute_obstacle_loss(
                intersections,
                signal_direction=rx - tx,
                angle_effect=self.config.angle_effect_enabled,
                cumulative_effect=self.config.cumulative_effect_enabled,
            )

        noise = 0.0
        if self.config.noise_enabled:
            noise = gaussian_noise_box_muller(self.config.noise_std, rng=self.rng)

        rssi = clamp_rssi(base_rssi - total_attenuation + noise)

        return {
            'rssi': rssi,
            'base_rssi': base_rssi,
            'distance': safe_distance,
            'total_attenuation': total_attenuation,
            'obstacle_losses': obstacle_losses,
            'noise': noise,
            'intersections': intersections,
            'obstacle_count': len(intersections),
        }

    def to_signal_strength(
        self,
        distance: float,
        tx_pos: Optional[np.ndarray] = None,
        rx_pos: Optional[np.ndarray] = None,
    ) -> float:
        """RSSI in dBm for a transmitter-receiver pair. See :meth:`breakdown`."""
        return self.breakdown(distance, tx_pos, rx_pos)['rssi']

    def to_distance(self, signal_strength: float) -> float:
        """Invert the base path-loss formula: RSSI (dBm) → distance (m)."""
        return float(
            rss_to_distance(
                signal_strength,
                self.config.tx_power,
                path_loss_exp=self.config.path_loss_exponent,
            )
        )
