"""
RF (Radio Frequency) propagation module.

This module implements the RSSI side of the simulator: the log-distance
path-loss model, obstacle penetration loss and measurement noise.

Submodules:
    measurement_models: Path loss, inverse path loss, noise, obstacle loss
    propagation: SignalPropagationModel (distance <-> RSSI)
"""

from rssisim.rf.measurement_models import (
    CUMULATIVE_SCATTER_FACTOR,
    MIN_DISTANCE,
    RSSI_MAX_DBM,
    RSSI_MIN_DBM,
    clamp_rssi,
    compute_obstacle_loss,
    gaussian_noise_box_muller,
    rss_pathloss,
    rss_to_distance,
    signal_quality,
)
from rssisim.rf.propagation import SignalPropagationModel

__all__ = [
    # Constants
    "RSSI_MIN_DBM",
    "RSSI_MAX_DBM",
    "MIN_DISTANCE",
    "CUMULATIVE_SCATTER_FACTOR",
    # Measurement models
    "rss_pathloss",
    "rss_to_distance",
    "gaussian_noise_box_muller",
    "clamp_rssi",
    "compute_obstacle_loss",
    "signal_quality",
    # Propagation
    "SignalPropagationModel",
]
