"""Simulation configuration.

A ``SimulationConfig`` bundles every parameter the propagation model, the
noise filter and the position estimator read during one tick. It is frozen:
the UI/session replaces the whole record between ticks instead of mutating it.

Configurations can be built from named presets and saved to / loaded from
JSON files in the same ``config.json`` layout the dataset scripts write.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Union


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of the RSSI model, filter and solver.

    Attributes:
        tx_power: Reference RSSI at 1 m in dBm (e.g. -59 for BLE beacons).
        path_loss_exponent: Path-loss exponent n (2.0 free space,
                            2.7-3.5 indoor).
        min_signal: Minimum detectable RSSI in dBm. Anchors below this
                    threshold are not used for positioning.
        noise_enabled: Add zero-mean Gaussian noise to each RSSI sample.
        noise_std: Noise standard deviation in dB.
        obstacles_enabled: Apply obstacle penetration loss.
        angle_effect_enabled: Scale obstacle loss by the incidence angle.
        cumulative_effect_enabled: Compound loss by 1.1 for every additional
                                   obstacle crossed.
        filter_enabled: Route each anchor's RSSI stream through its scalar
                        Kalman filter before ranging.
        filter_r: Measurement noise covariance R of the RSSI filter (dB^2).
        filter_q: Process noise covariance Q of the RSSI filter (dB^2).
        sanity_margin: Margin in meters around the working area beyond which
                       a position estimate is rejected as divergent.
        max_iterations: Gauss-Newton iteration cap.
        convergence_tol: Gauss-Newton step-size convergence threshold (m).
    """

    tx_power: float = -59.0
    path_loss_exponent: float = 2.7
    min_signal: float = -100.0
    noise_enabled: bool = False
    noise_std: float = 5.0
    obstacles_enabled: bool = True
    angle_effect_enabled: bool = True
    cumulative_effect_enabled: bool = True
    filter_enabled: bool = False
    filter_r: float = 4.0
    filter_q: float = 0.25
    sanity_margin: float = 10.0
    max_iterations: int = 100
    convergence_tol: float = 0.01

    def __post_init__(self) -> None:
        """Validate parameter ranges."""
        if self.path_loss_exponent <= 0:
            raise ValueError(
                f"path_loss_exponent must be positive, got {self.path_loss_exponent}"
            )
        if self.noise_std < 0:
            raise ValueError(f"noise_std must be non-negative, got {self.noise_std}")
        if self.filter_r <= 0:
            raise ValueError(f"filter_r must be positive, got {self.filter_r}")
        if self.filter_q < 0:
            raise ValueError(f"filter_q must be non-negative, got {self.filter_q}")
        if self.sanity_margin < 0:
            raise ValueError(f"sanity_margin must be non-negative, got {self.sanity_margin}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.convergence_tol <= 0:
            raise ValueError(f"convergence_tol must be positive, got {self.convergence_tol}")

    def with_changes(self, **changes: Any) -> "SimulationConfig":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS: Dict[str, Dict[str, Any]] = {
    'free_space': {
        'description': 'Line-of-sight propagation, no noise, no obstacle loss',
        'path_loss_exponent': 2.0,
        'noise_enabled': False,
        'obstacles_enabled': False,
    },
    'office': {
        'description': 'Typical office (n=2.7) with walls, noise-free',
        'path_loss_exponent': 2.7,
        'noise_enabled': False,
        'obstacles_enabled': True,
    },
    'noisy_office': {
        'description': 'Office with 5 dB RSSI noise and per-anchor Kalman smoothing',
        'path_loss_exponent': 2.7,
        'noise_enabled': True,
        'noise_std': 5.0,
        'filter_enabled': True,
    },
    'concrete_building': {
        'description': 'Dense construction (n=3.5), 3 dB noise',
        'path_loss_exponent': 3.5,
        'noise_enabled': True,
        'noise_std': 3.0,
        'min_signal': -110.0,
    },
}


def get_preset(name: str, **overrides: Any) -> SimulationConfig:
    """
    Build a configuration from a named preset.

    Args:
        name: Preset key (see ``PRESETS``).
        **overrides: Field values that take precedence over the preset.

    Returns:
        Validated SimulationConfig.

    Raises:
        ValueError: If the preset name is unknown.

    Example:
        >>> cfg = get_preset("noisy_office", noise_std=3.0)
        >>> cfg.noise_std
        3.0
    """
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available: {sorted(PRESETS)}")
    params = {k: v for k, v in PRESETS[name].items() if k != 'description'}
    params.update(overrides)
    return SimulationConfig(**params)


def config_to_dict(config: SimulationConfig) -> Dict[str, Any]:
    return asdict(config)


def config_from_dict(data: Dict[str, Any]) -> SimulationConfig:
    """
    Build a configuration from a plain dictionary.

    Raises:
        ValueError: If the dictionary contains unknown keys.
    """
    known = {f.name for f in fields(SimulationConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
    return SimulationConfig(**data)


def save_config(config: SimulationConfig, path: Union[str, Path]) -> Path:
    """Write the configuration as indented JSON and return the file path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config_to_dict(config), f, indent=2)
    return path


def load_config(path: Union[str, Path]) -> SimulationConfig:
    """
    Load a configuration written by :func:`save_config`.

    A dataset ``config.json`` nesting the parameters under a ``"simulation"``
    key is accepted as well.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if "simulation" in data and isinstance(data["simulation"], dict):
        data = data["simulation"]
    return config_from_dict(data)
