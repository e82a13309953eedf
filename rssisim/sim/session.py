"""
Simulation session: the per-tick driving loop.

A ``SimulationSession`` owns everything one simulation needs (anchors,
obstacle field, configuration, per-anchor filters, random generator) so that
several independent simulations can run side by side and tests can be made
deterministic with a seeded generator.

One tick:
    for each anchor:
        rssi      = propagation.to_signal_strength(d_true, anchor, receiver)
        filtered  = filters[anchor].filter(rssi)          (if enabled)
        distance  = propagation.to_distance(filtered or rssi)
    measurements = readings with rssi >= min_signal
    estimate     = estimator.estimate_measurements(measurements)
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from rssisim.config import SimulationConfig
from rssisim.estimators.kalman_filter import FilterBank
from rssisim.obstacles.field import ObstacleField
from rssisim.obstacles.types import Obstacle
from rssisim.positioning.trilateration import PositionEstimator
from rssisim.positioning.types import Anchor, Measurement, PositionEstimate
from rssisim.rf.propagation import SignalPropagationModel


@dataclass
class TickResult:
    """Output of one simulation tick.

    Attributes:
        receiver: True receiver position [x, y].
        measurements: Readings at or above ``min_signal`` (used for positioning).
        all_measurements: Readings for every anchor, in anchor order.
        estimate: Position estimate (OK or NO_SOLUTION).
        error: Distance between estimate and true position (m), None if no
               estimate.
    """

    receiver: np.ndarray
    measurements: List[Measurement]
    all_measurements: List[Measurement]
    estimate: PositionEstimate
    error: Optional[float]

    @property
    def active_count(self) -> int:
        return len(self.measurements)

    @property
    def total_count(self) -> int:
        return len(self.all_measurements)


class SimulationSession:
    """
    Context for one RSSI positioning simulation.

    Anchors and obstacles are edited between ticks through the session's
    methods; the filter mapping follows anchor identity.

    Attributes:
        config: Active configuration (replace via :meth:`set_config`).
        obstacle_field: Obstacles of the floor plan.
        filters: Per-anchor RSSI filters.
        propagation: Distance↔RSSI model bound to this session.
        estimator: Position estimator bound to this session.

    Example:
        >>> session = SimulationSession(
        ...     SimulationConfig(path_loss_exponent=2.0),
        ...     anchors=[Anchor("R1", [0, 0]), Anchor("R2", [10, 0]), Anchor("R3", [0, 10])],
        ...     rng=np.random.default_rng(0),
        ... )
        >>> result = session.tick(np.array([3.0, 4.0]))
        >>> result.estimate.ok
        True
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        anchors: Iterable[Anchor] = (),
        obstacles: Iterable[Obstacle] = (),
        rng: Optional[np.random.Generator] = None,
        area: Optional[Tuple[float, float, float, float]] = None,
    ):
        self.config = config if config is not None else SimulationConfig()
        self.area = area
        self.rng = rng if rng is not None else np.random.default_rng()

        self._anchors: Dict[str, Anchor] = {}
        self.obstacle_field = ObstacleField(obstacles)
        self.filters = FilterBank(R=self.config.filter_r, Q=self.config.filter_q)
        self.propagation = SignalPropagationModel(self.config, self.obstacle_field, rng=self.rng)
        self.estimator = PositionEstimator.from_config(self.config, area=area)

        for anchor in anchors:
            self.add_anchor(anchor)

    # ------------------------------------------------------------------
    # Anchor and obstacle editing
    # ------------------------------------------------------------------
    @property
    def anchors(self) -> List[Anchor]:
        return list(self._anchors.values())

    def get_anchor(self, anchor_id: str) -> Anchor:
        if anchor_id not in self._anchors:
            raise KeyError(f"Unknown anchor id '{anchor_id}'")
        return self._anchors[anchor_id]

    def add_anchor(self, anchor: Anchor) -> None:
        """Register an anchor and create its filter state."""
        if anchor.anchor_id in self._anchors:
            raise ValueError(f"Duplicate anchor id '{anchor.anchor_id}'")
        self._anchors[anchor.anchor_id] = anchor
        self.filters.register(anchor.anchor_id)

    def remove_anchor(self, anchor_id: str) -> Anchor:
        """Remove an anchor and discard its filter state."""
        anchor = self.get_anchor(anchor_id)
        del self._anchors[anchor_id]
        self.filters.unregister(anchor_id)
        return anchor

    def move_anchor(self, anchor_id: str, position: np.ndarray) -> Anchor:
        """Move an anchor; its filter state is kept."""
        moved = self.get_anchor(anchor_id).moved_to(position)
        self._anchors[anchor_id] = moved
        return moved

    def add_obstacle(self, obstacle: Obstacle) -> None:
        self.obstacle_field.add(obstacle)

    def remove_obstacle(self, obstacle_id: str) -> Obstacle:
        return self.obstacle_field.remove(obstacle_id)

    def set_config(self, config: SimulationConfig) -> None:
        """
        Replace the configuration between ticks.

        Filter states are reset when the filter noise parameters change.
        """
        filter_changed = (
            config.filter_r != self.config.filter_r or config.filter_q != self.config.filter_q
        )
        self.config = config
        self.propagation.config = config
        self.estimator = PositionEstimator.from_config(config, area=self.area)
        if filter_changed:
            self.filters.configure(R=config.filter_r, Q=config.filter_q)

    # ------------------------------------------------------------------
    # Driving loop
    # ------------------------------------------------------------------
    def measure(self, anchor: Anchor, receiver: np.ndarray) -> Measurement:
        """Simulate one anchor's reading at the receiver position."""
        receiver = np.asarray(receiver, dtype=float)
        true_distance = float(np.linalg.norm(receiver - anchor.position))
        sample = self.propagation.breakdown(true_distance, anchor.position, receiver)

        filtered = None
        if self.config.filter_enabled:
            filtered = self.filters.filter(anchor.anchor_id, sample['rssi'])

        ranging_rssi = sample['rssi'] if filtered is None else filtered
        return Measurement(
            anchor=anchor,
            rssi=sample['rssi'],
            distance=self.propagation.to_distance(ranging_rssi),
            filtered_rssi=filtered,
            intersections=sample['intersections'],
            true_distance=true_distance,
            obstacle_loss=sample['total_attenuation'],
        )

    def tick(self, receiver: np.ndarray) -> TickResult:
        """
        Run one simulation step for a receiver position.

        Args:
            receiver: True receiver position [x, y] in meters.

        Returns:
            TickResult with measurements, the estimate and its error.
        """
        receiver = np.asarray(receiver, dtype=float)
        if receiver.shape != (2,):
            raise ValueError(f"Receiver position must have shape (2,), got {receiver.shape}")

        all_measurements = [self.measure(anchor, receiver) for anchor in self._anchors.values()]
        measurements = [m for m in all_measurements if m.rssi >= self.config.min_signal]

        estimate = self.estimator.estimate_measurements(measurements)
        error = None
        if estimate.ok:
            error = float(np.linalg.norm(estimate.position - receiver))

        return TickResult(
            receiver=receiver,
            measurements=measurements,
            all_measurements=all_measurements,
            estimate=estimate,
            error=error,
        )

    def run(self, trajectory: np.ndarray) -> List[TickResult]:
        """Run one tick per row of a (T, 2) receiver trajectory."""
        trajectory = np.asarray(trajectory, dtype=float)
        return [self.tick(position) for position in trajectory]
